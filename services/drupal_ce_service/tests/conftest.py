"""
Shared test configuration for Drupal CE Service.

Provides settings, resolved endpoints, session state and a DrupalCe
instance wired to a real httpx client for respx mocking.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any
from uuid import UUID, uuid4

import httpx
import pytest

from services.drupal_ce_service.config import DrupalCeSettings
from services.drupal_ce_service.drupal_ce import DrupalCe
from services.drupal_ce_service.endpoint_config import EndpointConfig, resolve_endpoint_config
from services.drupal_ce_service.fetch.cms_fetcher import CmsFetcher
from services.drupal_ce_service.render_context import ExecutionContext, RenderContext
from services.drupal_ce_service.state.session_store import SessionState

CMS_ORIGIN = "https://cms.example"
CE_API_ENDPOINT = "/ce-api"
CE_API_URL = f"{CMS_ORIGIN}{CE_API_ENDPOINT}"


def make_settings(**overrides: Any) -> DrupalCeSettings:
    """Build settings isolated from the environment and .env files."""
    values: dict[str, Any] = {
        "SERVICE_NAME": "drupal_ce_service_test",
        "ENVIRONMENT": "testing",
        "DRUPAL_BASE_URL": CMS_ORIGIN,
        "CE_API_ENDPOINT": CE_API_ENDPOINT,
        **overrides,
    }
    return DrupalCeSettings(_env_file=None, **values)


@pytest.fixture
def settings_factory() -> Callable[..., DrupalCeSettings]:
    return make_settings


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    return resolve_endpoint_config(make_settings())


@pytest.fixture
def correlation_id() -> UUID:
    return uuid4()


@pytest.fixture
def session() -> SessionState:
    return SessionState(session_id="test-session")


@pytest.fixture
def render_context(session: SessionState) -> RenderContext:
    return RenderContext(
        session,
        ExecutionContext.PRESENTATION,
        inbound_headers={"cookie": "SESS123=abc", "user-agent": "pytest"},
        has_outbound_response=True,
    )


@pytest.fixture
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Real httpx client for respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def drupal_ce_factory(
    http_client: httpx.AsyncClient,
    render_context: RenderContext,
    correlation_id: UUID,
) -> Callable[..., DrupalCe]:
    """Build DrupalCe instances with optional setting overrides."""

    def _factory(context: RenderContext | None = None, **overrides: Any) -> DrupalCe:
        return DrupalCe(
            resolve_endpoint_config(make_settings(**overrides)),
            CmsFetcher(http_client),
            context or render_context,
            correlation_id,
        )

    return _factory


@pytest.fixture
def drupal_ce(drupal_ce_factory: Callable[..., DrupalCe]) -> DrupalCe:
    return drupal_ce_factory()
