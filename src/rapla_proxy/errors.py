"""
Proxy error hierarchy

Every error carries the HTTP status it is rendered with. Extraction errors
are raised before any calendar byte is written, so they always become a clean
plain-text error response.
"""

import logging

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rapla_proxy.constants import HTTP_SETTINGS

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MethodNotAllowedError(ProxyError):
    status_code = 405

    def __init__(self, method: str):
        super().__init__(HTTP_SETTINGS.METHOD_NOT_ALLOWED_MESSAGE)
        self.method = method


class ExtractionError(ProxyError):
    """The extractor could not produce a calendar."""
    status_code = 502


class UpstreamUnavailableError(ExtractionError):
    pass


class UnknownResourceError(ExtractionError):
    pass


class MalformedCalendarError(ExtractionError):
    pass


class UpstreamTimeoutError(ExtractionError):
    status_code = 504


def method_not_allowed_response() -> PlainTextResponse:
    return PlainTextResponse(
        HTTP_SETTINGS.METHOD_NOT_ALLOWED_MESSAGE,
        status_code=405,
        headers={"Allow": HTTP_SETTINGS.ALLOWED_METHOD},
    )


async def proxy_error_handler(request: Request, exc: ProxyError) -> PlainTextResponse:
    if isinstance(exc, MethodNotAllowedError):
        return method_not_allowed_response()
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render framework-level 405s like the request gate does."""
    if exc.status_code == 405:
        logger.info("Rejected %s %s before routing", request.method, request.url.path)
        return method_not_allowed_response()
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)
