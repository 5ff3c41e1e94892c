import logging

from fastapi import Request

from rapla_proxy.constants import HTTP_SETTINGS
from rapla_proxy.errors import MethodNotAllowedError

logger = logging.getLogger(__name__)


async def require_read_method(request: Request):
    """Reject anything but GET before the pipeline runs."""
    if request.method != HTTP_SETTINGS.ALLOWED_METHOD:
        logger.info("Rejected %s %s", request.method, request.url.path)
        raise MethodNotAllowedError(request.method)
