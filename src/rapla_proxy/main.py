import logging
from typing import Optional

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from rapla_proxy.config import Settings, settings, validate_settings
from rapla_proxy.constants import APP_SETTINGS
from rapla_proxy.errors import ProxyError, http_error_handler, proxy_error_handler
from rapla_proxy.extractors import Extractor
from rapla_proxy.extractors.rapla import RaplaExtractor
from rapla_proxy.proxy.pipeline import CalendarProxy
from rapla_proxy.routes import calendar, health

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None, extractor: Optional[Extractor] = None) -> FastAPI:
    """
    Build an application with its own router, proxy and extractor.

    Args:
        config: Settings to use, defaults to the process settings
        extractor: Extractor to use, defaults to a Rapla extractor built from ``config``
    """
    config = config or settings
    validate_settings(config)

    proxy = CalendarProxy(
        extractor=extractor or RaplaExtractor.from_settings(config),
        resource_key=config.RAPLA_KEY,
        extract_timeout=config.EXTRACT_TIMEOUT_SECONDS,
    )

    app = FastAPI(
        title=APP_SETTINGS.APP_NAME,
        version=APP_SETTINGS.VERSION,
        description=APP_SETTINGS.DESCRIPTION
    )
    app.state.proxy = proxy

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(calendar.create_router(proxy), tags=["Calendar"])

    logger.info("Proxying calendar key %s (%s)", config.RAPLA_KEY, config.APP_ENV)
    return app


app = create_app()


def main():
    import uvicorn

    logger.info("HTTP server listening on %s:%d", settings.APP_HOST, settings.APP_PORT)
    uvicorn.run(
        "rapla_proxy.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
