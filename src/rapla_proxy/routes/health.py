from fastapi import APIRouter, Request

from rapla_proxy.constants import APP_SETTINGS
from rapla_proxy.routes.dto import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def health_check(request: Request):
    """
    Health check for the proxy process.

    Does not contact Rapla; an upstream outage shows up as 502 on the calendar
    route instead.
    """
    proxy = request.app.state.proxy
    return HealthResponse(
        status="ok",
        service=APP_SETTINGS.APP_NAME,
        resource_key_configured=bool(proxy.resource_key),
    )
