import asyncio
import io
import logging

from fastapi.testclient import TestClient

from conftest import FakeExtractor, RecordingCalendar, sample_events
from rapla_proxy.errors import MalformedCalendarError, UnknownResourceError, UpstreamUnavailableError
from rapla_proxy.main import create_app


def expected_document(name):
    buffer = io.BytesIO()
    RecordingCalendar(name=name, events=sample_events()).serialize_to(buffer)
    return buffer.getvalue()


def test_get_streams_the_serialized_calendar(client, extractor):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert response.content == expected_document("woo")
    assert extractor.keys == ["woo"]


def test_extraction_precedes_serialization(client, extractor):
    client.get("/")

    assert extractor.calls == [("extract", "woo"), ("serialize", "woo")]


def test_identical_calendars_give_identical_bodies(client):
    first = client.get("/")
    second = client.get("/")

    assert first.status_code == second.status_code == 200
    assert first.content == second.content


def test_configured_key_is_passed_to_extractor(test_settings):
    extractor = FakeExtractor()
    settings = test_settings.model_copy(update={"RAPLA_KEY": "abc123"})
    client = TestClient(create_app(config=settings, extractor=extractor))

    client.get("/")

    assert extractor.keys == ["abc123"]


def test_extraction_failure_returns_bad_gateway(test_settings):
    extractor = FakeExtractor(error=UpstreamUnavailableError("Rapla is unreachable: connection refused"))
    client = TestClient(create_app(config=test_settings, extractor=extractor))

    response = client.get("/")

    assert response.status_code == 502
    assert "Rapla is unreachable" in response.text
    assert "BEGIN:VCALENDAR" not in response.text
    assert extractor.serialize_count == 0


def test_every_extraction_error_is_a_server_error(test_settings):
    for error in [UnknownResourceError("unknown key"), MalformedCalendarError("no title")]:
        client = TestClient(create_app(config=test_settings, extractor=FakeExtractor(error=error)))

        response = client.get("/")

        assert response.status_code == 502
        assert response.text == error.message


def test_unexpected_extractor_crash_is_wrapped(test_settings, caplog):
    client = TestClient(create_app(config=test_settings, extractor=FakeExtractor(error=KeyError("week"))))

    with caplog.at_level(logging.ERROR):
        response = client.get("/")

    assert response.status_code == 502
    assert response.text.startswith("Calendar extraction failed")
    assert "Extractor crashed" in caplog.text


def test_slow_extraction_hits_the_deadline(test_settings):
    settings = test_settings.model_copy(update={"EXTRACT_TIMEOUT_SECONDS": 0.05})
    extractor = FakeExtractor(delay=0.5)
    client = TestClient(create_app(config=settings, extractor=extractor))

    response = client.get("/")

    assert response.status_code == 504
    assert "BEGIN:VCALENDAR" not in response.text


def test_extractor_timeout_is_not_reported_as_the_deadline(test_settings, caplog):
    client = TestClient(create_app(config=test_settings, extractor=FakeExtractor(error=TimeoutError("read timed out"))))

    with caplog.at_level(logging.ERROR):
        response = client.get("/")

    assert response.status_code == 504
    assert response.text == "Calendar extraction timed out: read timed out"
    assert "did not finish within" not in caplog.text
    assert "Extractor timed out" in caplog.text


def run_asgi_get(app, path="/"):
    """Drive ``app`` with a bare GET and return every message it sent, plus any error it raised."""
    scope = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.3"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"testserver")],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }
    sent = []
    requested = []

    async def receive():
        if not requested:
            requested.append(True)
            return {"type": "http.request", "body": b"", "more_body": False}
        # The client stays connected; the app has to end the response itself
        await asyncio.Event().wait()

    async def send(message):
        sent.append(message)

    async def call():
        try:
            await app(scope, receive, send)
        except Exception as e:
            return e
        return None

    error = asyncio.run(call())
    return sent, error


def test_serialization_failure_truncates_the_body(test_settings, caplog):
    extractor = FakeExtractor(fail_serialization_after=2)
    app = create_app(config=test_settings, extractor=extractor)

    with caplog.at_level(logging.ERROR):
        sent, error = run_asgi_get(app)

    assert error is not None
    assert extractor.calls == [("extract", "woo"), ("serialize", "woo")]
    assert sent[0]["type"] == "http.response.start"
    assert sent[0]["status"] == 200

    bodies = [message for message in sent if message["type"] == "http.response.body"]
    body = b"".join(message.get("body", b"") for message in bodies)
    assert body.startswith(b"BEGIN:VCALENDAR")
    assert b"BEGIN:VTIMEZONE" in body
    assert b"END:VCALENDAR" not in body
    # The closing message never arrives, so the server drops the connection
    assert all(message.get("more_body", False) for message in bodies)
    assert "Serializing calendar 'woo' failed" in caplog.text


def test_json_view(client):
    response = client.get("/", params={"json": "true"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    body = response.json()
    assert body["name"] == "woo"
    assert body["events"][0]["title"] == "Mathematik I"
    assert body["events"][0]["date"] == "2024-03-18"
    assert body["events"][0]["location"] == "Raum 1.23"
    assert "location" not in body["events"][1]
    assert "organizer" not in body["events"][1]
    assert "description" not in body["events"][0]


def test_other_json_values_keep_icalendar(client):
    response = client.get("/", params={"json": "yes"})

    assert response.headers["content-type"].startswith("text/calendar")
