import threading
import time
from datetime import date
from datetime import time as clock
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pydantic import PrivateAttr

from rapla_proxy.config import Settings
from rapla_proxy.main import create_app
from rapla_proxy.models import Calendar
from rapla_proxy.models import Event

FIXTURES = Path(__file__).parent / "fixtures"


def sample_events():
    return [
        Event(
            date=date(2024, 3, 18),
            start=clock(8, 0),
            end=clock(10, 0),
            title="Mathematik I",
            location="Raum 1.23",
            organizer="Prof. Muster",
        ),
        Event(
            date=date(2024, 3, 19),
            start=clock(13, 0),
            end=clock(15, 30),
            title="Programmieren",
        ),
    ]


class RecordingCalendar(Calendar):
    """Calendar that logs serialization into its extractor's call log."""

    _calls: list = PrivateAttr(default_factory=list)
    _fail_after: int = PrivateAttr(default=-1)

    def iter_ical(self):
        self._calls.append(("serialize", self.name))
        for index, chunk in enumerate(super().iter_ical()):
            if index == self._fail_after:
                raise RuntimeError("serializer failed mid-stream")
            yield chunk


class FakeExtractor:
    """
    Stand-in extractor.

    Records every extract and serialize call in ``calls``. With ``unique``
    each call returns a calendar named ``<key>-<n>``.
    """

    def __init__(self, error=None, delay=0.0, unique=False, fail_serialization_after=-1):
        self.error = error
        self.delay = delay
        self.unique = unique
        self.fail_serialization_after = fail_serialization_after
        self.calls = []
        self.keys = []
        self._lock = threading.Lock()

    @property
    def extract_count(self):
        return sum(1 for call in self.calls if call[0] == "extract")

    @property
    def serialize_count(self):
        return sum(1 for call in self.calls if call[0] == "serialize")

    def extract(self, key):
        with self._lock:
            self.keys.append(key)
            name = f"{key}-{len(self.keys)}" if self.unique else key

        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            self.calls.append(("extract", name))
            raise self.error

        calendar = RecordingCalendar(name=name, events=sample_events())
        calendar._calls = self.calls
        calendar._fail_after = self.fail_serialization_after
        self.calls.append(("extract", name))
        return calendar


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, RAPLA_KEY="woo", EXTRACT_TIMEOUT_SECONDS=2.0)


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def app(test_settings, extractor):
    return create_app(config=test_settings, extractor=extractor)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def rapla_html():
    return (FIXTURES / "rapla_calendar.html").read_text(encoding="utf-8")
