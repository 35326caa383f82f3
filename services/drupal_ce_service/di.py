"""Dependency Injection providers for Drupal CE Service.

Provides Dishka DI container setup with APP-scoped infrastructure
and REQUEST-scoped render context providers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID, uuid4

import httpx
from dishka import Provider, Scope, from_context, provide
from fastapi import Request
from prometheus_client import REGISTRY, CollectorRegistry

from services.drupal_ce_service.api.proxy_routes import ProxyForwarder
from services.drupal_ce_service.config import DrupalCeSettings
from services.drupal_ce_service.drupal_ce import DrupalCe
from services.drupal_ce_service.endpoint_config import EndpointConfig, resolve_endpoint_config
from services.drupal_ce_service.fetch.cms_fetcher import CmsFetcher
from services.drupal_ce_service.fetch.options import without_cookie
from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.metrics import DrupalCeMetrics
from services.drupal_ce_service.protocols import CmsFetcherProtocol, DrupalCeProtocol
from services.drupal_ce_service.render_context import ExecutionContext, RenderContext
from services.drupal_ce_service.state.session_store import SessionStore

logger = create_service_logger("drupal_ce.di")


class DrupalCeProvider(Provider):
    """Infrastructure provider for Drupal CE Service.

    Provides APP-scoped dependencies: config, endpoints, metrics, HTTP client,
    CMS fetcher and the session store.
    """

    scope = Scope.APP

    def __init__(
        self,
        config: DrupalCeSettings,
        endpoint_config: EndpointConfig | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._endpoint_config = endpoint_config
        self._registry = registry or REGISTRY

    @provide
    def get_config(self) -> DrupalCeSettings:
        """Provide settings."""
        return self._config

    @provide
    def get_endpoint_config(self, config: DrupalCeSettings) -> EndpointConfig:
        """Provide the resolved endpoint configuration."""
        return self._endpoint_config or resolve_endpoint_config(config)

    @provide
    def get_metrics(self) -> DrupalCeMetrics:
        return DrupalCeMetrics(self._registry)

    @provide
    def get_registry(self) -> CollectorRegistry:
        return self._registry

    @provide(scope=Scope.APP)
    async def get_http_client(self, config: DrupalCeSettings) -> AsyncIterator[httpx.AsyncClient]:
        """Provide shared HTTP client with connection pooling."""
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(
                config.HTTP_CLIENT_TIMEOUT_SECONDS,
                connect=config.HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS,
            ),
            follow_redirects=False,
        ) as client:
            yield client

    @provide(scope=Scope.APP)
    def provide_cms_fetcher(
        self, http_client: httpx.AsyncClient, metrics: DrupalCeMetrics
    ) -> CmsFetcherProtocol:
        """Provide CMS fetcher singleton."""
        return CmsFetcher(http_client, metrics)

    @provide(scope=Scope.APP)
    def provide_proxy_forwarder(
        self, http_client: httpx.AsyncClient, metrics: DrupalCeMetrics
    ) -> ProxyForwarder:
        """Provide the reverse proxy forwarder; it holds no per-request state."""
        return ProxyForwarder(http_client, metrics)

    @provide(scope=Scope.APP)
    def provide_session_store(self, config: DrupalCeSettings) -> SessionStore:
        return SessionStore(
            max_sessions=config.SESSION_MAX_COUNT, ttl_seconds=config.SESSION_TTL_SECONDS
        )


class RequestContextProvider(Provider):
    """Request-scoped provider for the render context.

    Extracts the correlation ID (set by CorrelationIDMiddleware) and the
    requested session ID (set by SessionCookieMiddleware) from request state.
    """

    request = from_context(provides=Request, scope=Scope.REQUEST)

    @provide(scope=Scope.REQUEST)
    def provide_correlation_id(self, request: Request) -> UUID:
        """Provide correlation ID from request state."""
        return getattr(request.state, "correlation_id", uuid4())

    @provide(scope=Scope.REQUEST)
    def provide_render_context(
        self, request: Request, store: SessionStore, config: DrupalCeSettings
    ) -> RenderContext:
        """Provide a presentation render context bound to the caller's session.

        The session ID used is written back to request state so that
        SessionCookieMiddleware can issue the cookie for it.
        """
        session = store.get_or_create(getattr(request.state, "requested_session_id", None))
        request.state.session_id = session.session_id

        # The service's own session cookie is never forwarded to the CMS
        inbound_headers = dict(request.headers)
        if "cookie" in inbound_headers:
            cookie = without_cookie(inbound_headers.pop("cookie"), config.SESSION_COOKIE_NAME)
            if cookie:
                inbound_headers["cookie"] = cookie

        return RenderContext(
            session,
            ExecutionContext.PRESENTATION,
            inbound_headers=inbound_headers,
            has_outbound_response=True,
        )

    @provide(scope=Scope.REQUEST)
    def provide_drupal_ce(
        self,
        endpoint_config: EndpointConfig,
        fetcher: CmsFetcherProtocol,
        context: RenderContext,
        correlation_id: UUID,
    ) -> DrupalCeProtocol:
        return DrupalCe(endpoint_config, fetcher, context, correlation_id)
