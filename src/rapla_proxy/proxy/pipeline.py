"""
Proxy pipeline

validating -> extracting -> serializing -> done. Extraction runs to completion
before the response starts, so every extraction failure still becomes a clean
error response. Serialization streams straight into the response body; a
failure there can only be logged and the connection dropped.
"""

import asyncio
import logging
import time
from typing import Iterator

from fastapi.responses import Response, StreamingResponse

from rapla_proxy.constants import HTTP_SETTINGS
from rapla_proxy.errors import ExtractionError, UpstreamTimeoutError
from rapla_proxy.extractors import Extractor
from rapla_proxy.models import Calendar

logger = logging.getLogger(__name__)


class CalendarProxy:
    def __init__(self, extractor: Extractor, resource_key: str, extract_timeout: float = 30.0):
        if not resource_key:
            raise ValueError("resource_key must not be empty")

        self.extractor = extractor
        self.resource_key = resource_key
        self.extract_timeout = extract_timeout

    async def extract(self) -> Calendar:
        """
        Run the blocking extractor in a worker thread, bounded by the deadline.

        Raises:
            ExtractionError: The extractor failed; unexpected exceptions are wrapped
            UpstreamTimeoutError: The deadline passed first
        """
        start_time = time.time()
        task = asyncio.ensure_future(asyncio.to_thread(self.extractor.extract, self.resource_key))
        done, _ = await asyncio.wait({task}, timeout=self.extract_timeout)
        if not done:
            task.cancel()
            logger.error(
                "Extraction for key %s exceeded %.1f seconds", self.resource_key, self.extract_timeout
            )
            raise UpstreamTimeoutError(
                f"Calendar extraction did not finish within {self.extract_timeout}s"
            )

        try:
            calendar = task.result()
        except ExtractionError as e:
            logger.error("Extraction for key %s failed: %s", self.resource_key, e.message)
            raise
        except TimeoutError as e:
            logger.error("Extractor timed out for key %s: %s", self.resource_key, e)
            raise UpstreamTimeoutError(f"Calendar extraction timed out: {e}") from e
        except Exception as e:
            logger.exception("Extractor crashed for key %s", self.resource_key)
            raise ExtractionError(f"Calendar extraction failed: {e}") from e

        logger.info(
            "Extracted calendar %r with %d events in %.3f seconds",
            calendar.name, len(calendar.events), time.time() - start_time,
        )
        return calendar

    def stream(self, calendar: Calendar) -> Iterator[bytes]:
        """Serialize ``calendar`` chunk by chunk, logging late failures."""
        written = 0
        try:
            for chunk in calendar.iter_ical():
                written += len(chunk)
                yield chunk
        except Exception:
            # Headers and part of the body are already on the wire
            logger.exception(
                "Serializing calendar %r failed after %d bytes", calendar.name, written
            )
            raise

    async def handle(self, as_json: bool = False) -> Response:
        calendar = await self.extract()

        if as_json:
            return Response(
                calendar.model_dump_json(exclude_none=True), media_type=HTTP_SETTINGS.JSON_MEDIA_TYPE
            )

        return StreamingResponse(self.stream(calendar), media_type=HTTP_SETTINGS.ICAL_MEDIA_TYPE)
