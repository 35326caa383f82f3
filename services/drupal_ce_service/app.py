"""Drupal CE Service - page, menu and proxy access to a headless Drupal CMS.

Provides session-scoped page and menu endpoints for the front-end and a
same-origin reverse proxy to the CMS.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dishka import make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry

from services.drupal_ce_service.api.health_routes import router as health_router
from services.drupal_ce_service.api.proxy_routes import router as proxy_router
from services.drupal_ce_service.api.v1 import router as content_router_v1
from services.drupal_ce_service.config import DrupalCeSettings, settings
from services.drupal_ce_service.di import DrupalCeProvider, RequestContextProvider
from services.drupal_ce_service.endpoint_config import resolve_endpoint_config
from services.drupal_ce_service.error_handling.fastapi import (
    register_error_handlers as register_fastapi_error_handlers,
)
from services.drupal_ce_service.logging_utils import (
    configure_service_logging,
    create_service_logger,
)
from services.drupal_ce_service.middleware import CorrelationIDMiddleware, SessionCookieMiddleware

logger = create_service_logger("drupal_ce_service")

CONTENT_API_PREFIX = "/bff/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.di_container.close()


def create_app(
    config: DrupalCeSettings | None = None, registry: CollectorRegistry | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Raises:
        ConfigError: If the CMS endpoint configuration cannot be resolved
    """
    config = config or settings
    configure_service_logging(
        config.SERVICE_NAME,
        environment=config.ENVIRONMENT.value,
        log_level=config.LOG_LEVEL,
    )

    # Resolved once; fails the startup if incomplete
    endpoint_config = resolve_endpoint_config(config)

    app = FastAPI(
        title=config.SERVICE_NAME,
        version="0.1.0",
        description="Drupal CE Service - pages, menus and CMS proxy for the front-end",
        docs_url="/docs" if config.is_development() else None,
        redoc_url=None,
        openapi_url="/openapi.json" if config.is_development() else None,
        lifespan=lifespan,
    )

    register_fastapi_error_handlers(app)

    app.add_middleware(
        SessionCookieMiddleware,
        cookie_name=config.SESSION_COOKIE_NAME,
        path_prefix=CONTENT_API_PREFIX,
        secure=config.is_production(),
    )
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=config.CORS_ALLOW_METHODS,
        allow_headers=config.CORS_ALLOW_HEADERS,
    )

    app.include_router(health_router)
    app.include_router(content_router_v1, prefix=CONTENT_API_PREFIX, tags=["Content API"])

    if endpoint_config.expose_api_route_rules:
        app.include_router(proxy_router)
        logger.info("Mounted CMS proxy routes: /api/drupal-ce/**, /api/menu/**")
    else:
        logger.info("CMS proxy routes disabled")

    container = make_async_container(
        DrupalCeProvider(config, endpoint_config, registry),
        RequestContextProvider(),
        FastapiProvider(),
    )
    setup_dishka(container, app)
    app.state.di_container = container

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.drupal_ce_service.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )
