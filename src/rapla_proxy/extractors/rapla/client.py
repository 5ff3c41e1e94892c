"""
Rapla Calendar Client
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import requests

from rapla_proxy.config import Settings, settings
from rapla_proxy.constants import RAPLA_SETTINGS
from rapla_proxy.errors import (
    MalformedCalendarError,
    UnknownResourceError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from rapla_proxy.extractors.rapla.parser import parse_calendar
from rapla_proxy.extractors.rapla.utils.datetime_utils import lookback_date
from rapla_proxy.models import Calendar

# Set up logging
logger = logging.getLogger(__name__)


class RaplaExtractor:
    """
    Extractor backed by a Rapla calendar view.

    Each call downloads the HTML week view for the key and parses it. Nothing
    is kept between calls; a session is created per call unless one is
    injected.
    """

    def __init__(
        self,
        base_url: str = RAPLA_SETTINGS.DEFAULT_URL,
        salt: str = "",
        pages: int = RAPLA_SETTINGS.DEFAULT_PAGES,
        lookback_days: int = RAPLA_SETTINGS.DEFAULT_LOOKBACK_DAYS,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Rapla extractor.

        Args:
            base_url: URL of the Rapla calendar view
            salt: Optional salt newer Rapla instances expect next to the key
            pages: Number of weeks to request
            lookback_days: How far in the past the requested range starts
            timeout: Timeout for the upstream HTTP request in seconds
            session: Session to reuse, mainly for tests
        """
        self.base_url = base_url
        self.salt = salt
        self.pages = pages
        self.lookback_days = lookback_days
        self.timeout = timeout
        self.session = session

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "RaplaExtractor":
        return cls(
            base_url=config.RAPLA_URL,
            salt=config.RAPLA_SALT,
            pages=config.RAPLA_PAGES,
            lookback_days=config.RAPLA_LOOKBACK_DAYS,
            timeout=config.UPSTREAM_TIMEOUT_SECONDS,
        )

    def build_params(self, key: str, start: Optional[date] = None) -> Dict[str, Any]:
        if start is None:
            start = lookback_date(self.lookback_days)

        params: Dict[str, Any] = {"key": key}
        if self.salt:
            params["salt"] = self.salt
        params.update(day=start.day, month=start.month, year=start.year, pages=self.pages)
        return params

    def fetch(self, key: str) -> str:
        """
        Download the calendar view for a key.

        Raises:
            UpstreamTimeoutError: The request timed out
            UpstreamUnavailableError: Connection failure or a 5xx response
            UnknownResourceError: Rapla rejected the key with a 4xx response
        """
        session = self.session or requests.Session()
        try:
            response = session.get(
                self.base_url,
                params=self.build_params(key),
                headers={"User-Agent": RAPLA_SETTINGS.USER_AGENT},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise UpstreamTimeoutError(f"Rapla did not answer within {self.timeout}s") from e
        except requests.RequestException as e:
            raise UpstreamUnavailableError(f"Rapla is unreachable: {e}") from e
        finally:
            if self.session is None:
                session.close()

        if 400 <= response.status_code < 500:
            raise UnknownResourceError(
                f"Rapla rejected calendar key {key!r} with status {response.status_code}"
            )
        if response.status_code != 200:
            raise UpstreamUnavailableError(f"Rapla answered with status {response.status_code}")

        return response.text

    def extract(self, key: str) -> Calendar:
        if not key:
            raise UnknownResourceError("Calendar key must not be empty")

        logger.info("Fetching Rapla calendar for key %s", key)
        html = self.fetch(key)

        try:
            return parse_calendar(html)
        except MalformedCalendarError:
            logger.error("Rapla returned an unreadable calendar for key %s", key)
            raise
