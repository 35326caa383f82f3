"""Resolution of the CMS endpoint configuration.

Derives a consistent set of absolute endpoint URLs from the partial
settings once at startup. The result is immutable and shared app-wide.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

from services.drupal_ce_service.config import MENU_NAME_PLACEHOLDER, DrupalCeSettings
from services.drupal_ce_service.error_handling import raise_configuration_error
from services.drupal_ce_service.logging_utils import create_service_logger

logger = create_service_logger("drupal_ce.endpoint_config")


class EndpointConfig(BaseModel):
    """Resolved CMS endpoints and fetch behavior."""

    base_url: str
    drupal_base_url: str
    ce_api_endpoint: str
    menu_endpoint: str = f"api/menu_items/{MENU_NAME_PLACEHOLDER}"
    menu_base_url: str
    fetch_options: dict[str, Any] = Field(default_factory=dict)
    fetch_proxy_headers: tuple[str, ...] = ()
    custom_error_pages: bool = False
    add_request_content_format: str | None = None
    expose_api_route_rules: bool = True

    model_config = ConfigDict(frozen=True)


def join_url(base: str, path: str) -> str:
    """Join a base URL and a path with exactly one slash between them."""
    if not path:
        return base.rstrip("/")
    if not base:
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _is_absolute(url: str) -> bool:
    parts = urlsplit(url)
    return bool(parts.scheme and parts.netloc)


def resolve_endpoint_config(config: DrupalCeSettings) -> EndpointConfig:
    """Resolve the endpoint URLs from partial settings.

    If BASE_URL is set, DRUPAL_BASE_URL and CE_API_ENDPOINT default to its
    origin and path. Otherwise both are required and BASE_URL is synthesized
    from them. MENU_BASE_URL defaults to DRUPAL_BASE_URL + CE_API_ENDPOINT.

    Raises:
        ConfigError: If no absolute base URL can be resolved
    """
    base_url = config.BASE_URL
    drupal_base_url = config.DRUPAL_BASE_URL
    ce_api_endpoint = config.CE_API_ENDPOINT

    if base_url:
        if not _is_absolute(base_url):
            raise_configuration_error(
                service="drupal_ce_service",
                operation="resolve_endpoint_config",
                config_key="BASE_URL",
                message=f"BASE_URL must be an absolute URL, got '{base_url}'",
            )
        parts = urlsplit(base_url)
        if not drupal_base_url:
            drupal_base_url = f"{parts.scheme}://{parts.netloc}"
        if ce_api_endpoint is None:
            ce_api_endpoint = parts.path.rstrip("/")
        base_url = base_url.rstrip("/")
    else:
        if not drupal_base_url or ce_api_endpoint is None:
            raise_configuration_error(
                service="drupal_ce_service",
                operation="resolve_endpoint_config",
                config_key="BASE_URL",
                message=(
                    "Cannot resolve the CMS endpoint: set BASE_URL or both "
                    "DRUPAL_BASE_URL and CE_API_ENDPOINT"
                ),
            )
        if not _is_absolute(drupal_base_url):
            raise_configuration_error(
                service="drupal_ce_service",
                operation="resolve_endpoint_config",
                config_key="DRUPAL_BASE_URL",
                message=f"DRUPAL_BASE_URL must be an absolute URL, got '{drupal_base_url}'",
            )
        base_url = join_url(drupal_base_url, ce_api_endpoint)

    drupal_base_url = drupal_base_url.rstrip("/")
    menu_base_url = config.MENU_BASE_URL or join_url(drupal_base_url, ce_api_endpoint)

    expose_api_route_rules = config.EXPOSE_API_ROUTE_RULES
    if config.STATIC_BUILD and expose_api_route_rules:
        # No request handling context exists for a fully static site
        logger.info("Static build: proxy routes disabled")
        expose_api_route_rules = False

    resolved = EndpointConfig(
        base_url=base_url,
        drupal_base_url=drupal_base_url,
        ce_api_endpoint=ce_api_endpoint,
        menu_endpoint=config.MENU_ENDPOINT,
        menu_base_url=menu_base_url,
        fetch_options=dict(config.FETCH_OPTIONS),
        fetch_proxy_headers=tuple(config.FETCH_PROXY_HEADERS),
        custom_error_pages=config.CUSTOM_ERROR_PAGES,
        add_request_content_format=config.ADD_REQUEST_CONTENT_FORMAT,
        expose_api_route_rules=expose_api_route_rules,
    )

    logger.info(
        "Resolved CMS endpoint configuration",
        base_url=resolved.base_url,
        menu_base_url=resolved.menu_base_url,
        expose_api_route_rules=resolved.expose_api_route_rules,
    )
    return resolved
