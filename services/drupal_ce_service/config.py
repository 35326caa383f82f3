"""Configuration for Drupal CE Service.

Uses Pydantic settings for environment-based configuration. The CMS endpoint
settings are partial on purpose: `endpoint_config.resolve_endpoint_config`
derives the complete, consistent set of URLs from them at startup.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MENU_NAME_PLACEHOLDER = "$$$NAME$$$"


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class DrupalCeSettings(BaseSettings):
    """Configuration settings for Drupal CE Service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DRUPAL_CE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Service identity
    SERVICE_NAME: str = "drupal-ce-service"

    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",
        description="Runtime environment for the service",
    )

    # HTTP server configuration
    HOST: str = Field(default="0.0.0.0", description="HTTP server host")
    PORT: int = Field(default=4200, description="HTTP server port")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # CORS configuration for frontend development
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins for the frontend dev server",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=True, description="Allow credentials in CORS requests"
    )
    CORS_ALLOW_METHODS: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods for CORS",
    )
    CORS_ALLOW_HEADERS: list[str] = Field(
        default=["*"], description="Allowed headers for CORS requests"
    )

    # CMS endpoints
    BASE_URL: str | None = Field(
        default=None,
        description="Absolute URL of the custom elements API, e.g. https://cms.example/ce-api",
    )
    DRUPAL_BASE_URL: str | None = Field(
        default=None, description="Origin of the Drupal backend, e.g. https://cms.example"
    )
    CE_API_ENDPOINT: str | None = Field(
        default=None, description="Path of the custom elements API, e.g. /ce-api"
    )
    MENU_ENDPOINT: str = Field(
        default=f"api/menu_items/{MENU_NAME_PLACEHOLDER}",
        description=f"Menu endpoint template; {MENU_NAME_PLACEHOLDER} is replaced by the menu name",
    )
    MENU_BASE_URL: str | None = Field(
        default=None, description="Base URL for menu requests (defaults to the CE API URL)"
    )
    ADD_REQUEST_CONTENT_FORMAT: str | None = Field(
        default=None,
        description="Value of the _content_format query parameter added to page requests",
    )
    CUSTOM_ERROR_PAGES: bool = Field(
        default=False,
        description="Treat every page fetch error as fatal instead of rendering CMS error content",
    )

    # Fetch behavior
    FETCH_OPTIONS: dict[str, Any] = Field(
        default_factory=lambda: {"credentials": "include"},
        description="Default fetch options merged under per-call options",
    )
    FETCH_PROXY_HEADERS: list[str] = Field(
        default_factory=lambda: ["cookie"],
        description="Inbound request headers forwarded to the CMS",
    )

    # Reverse proxy exposure
    EXPOSE_API_ROUTE_RULES: bool = Field(
        default=True, description="Mount the /api/drupal-ce and /api/menu proxy routes"
    )
    STATIC_BUILD: bool = Field(
        default=False,
        description="Fully static build; disables the proxy routes",
    )

    # Sessions
    SESSION_COOKIE_NAME: str = Field(
        default="drupal_ce_session", description="Cookie carrying the session identifier"
    )
    SESSION_MAX_COUNT: int = Field(
        default=10_000, description="Sessions kept in memory before evicting the least recent"
    )
    SESSION_TTL_SECONDS: float = Field(
        default=1800.0, description="Idle time after which a session expires"
    )

    # HTTP client configuration
    HTTP_CLIENT_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="HTTP client request timeout in seconds",
    )
    HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="HTTP client connection timeout in seconds",
    )

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION


# Global settings instance
settings = DrupalCeSettings()
