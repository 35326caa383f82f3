"""Health and metrics routes for Drupal CE Service."""

from __future__ import annotations

from dishka import FromDishka
from dishka.integrations.fastapi import inject
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from services.drupal_ce_service.endpoint_config import EndpointConfig
from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.state.session_store import SessionStore

router = APIRouter(tags=["Health"])
logger = create_service_logger("drupal_ce.health_routes")


@router.get("/healthz")
@inject
async def health_check(
    endpoint_config: FromDishka[EndpointConfig],
    session_store: FromDishka[SessionStore],
) -> dict[str, str | dict]:
    """Health check endpoint.

    CMS availability is not probed; it is observed per request.
    """
    return {
        "service": "drupal_ce_service",
        "status": "healthy",
        "message": "Drupal CE Service is healthy",
        "version": "0.1.0",
        "checks": {
            "endpoint_config_resolved": True,
            "proxy_routes_exposed": endpoint_config.expose_api_route_rules,
            "active_sessions": len(session_store),
        },
        "dependencies": {
            "cms": {
                "base_url": endpoint_config.base_url,
                "menu_base_url": endpoint_config.menu_base_url,
                "note": "CMS availability checked on request",
            }
        },
    }


@router.get("/metrics", response_class=PlainTextResponse)
@inject
async def metrics(registry: FromDishka[CollectorRegistry]) -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    logger.debug("Metrics requested")
    return PlainTextResponse(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
