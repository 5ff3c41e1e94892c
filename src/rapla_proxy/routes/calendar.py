from fastapi import APIRouter, Depends, Query

from rapla_proxy.constants import HTTP_SETTINGS
from rapla_proxy.proxy.gate import require_read_method
from rapla_proxy.proxy.pipeline import CalendarProxy


def create_router(proxy: CalendarProxy) -> APIRouter:
    """
    Build the calendar route for one proxy instance.

    The route accepts every method so the request gate, not the framework,
    decides what gets rejected.
    """
    router = APIRouter()

    @router.api_route(
        "/",
        methods=HTTP_SETTINGS.ROUTED_METHODS,
        dependencies=[Depends(require_read_method)],
    )
    async def proxy_calendar(
        json: str = Query(default="false", description="Return the calendar as JSON when 'true'"),
    ):
        """Extract the configured calendar and stream it back."""
        return await proxy.handle(as_json=json == "true")

    return router
