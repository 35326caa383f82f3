"""CMS reverse proxy routes.

Forwards /api/drupal-ce/* to the Drupal origin and /api/menu/* to the menu
base URL. Requests and responses are relayed byte for byte: the payload is
never interpreted, and no session state or message queue is touched.
"""

from __future__ import annotations

from urllib.parse import quote
from uuid import UUID

import httpx
from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from services.drupal_ce_service.endpoint_config import EndpointConfig, join_url
from services.drupal_ce_service.error_handling import (
    raise_external_service_error,
    raise_timeout_error,
)
from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.metrics import DrupalCeMetrics

logger = create_service_logger("drupal_ce.proxy_routes")

DRUPAL_CE_PREFIX = "/api/drupal-ce/"
MENU_PREFIX = "/api/menu/"

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)


def _forwardable(headers: list[tuple[str, str]], *, drop: frozenset[str] = frozenset()):
    return [
        (name, value)
        for name, value in headers
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() not in drop
    ]


def _upstream_path(request: Request, prefix: str, path: str) -> str:
    """The inbound path after `prefix`, still percent-encoded as received."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        # Some servers include the query string in raw_path
        raw = raw_path.split(b"?", 1)[0].decode("latin-1")
        if raw.startswith(prefix):
            return raw[len(prefix) :]
    return quote(path, safe="/")


class ProxyForwarder:
    """Forwards inbound requests to the CMS and streams the response back."""

    def __init__(
        self, http_client: httpx.AsyncClient, metrics: DrupalCeMetrics | None = None
    ) -> None:
        self._client = http_client
        self._metrics = metrics

    async def forward(
        self, request: Request, target_url: str, *, route: str, correlation_id: UUID
    ) -> StreamingResponse:
        """Forward `request` to `target_url`, keeping method, headers and body.

        Raises:
            DrupalCeError: TIMEOUT or EXTERNAL_SERVICE_ERROR if the CMS cannot be reached
        """
        if request.url.query:
            target_url = f"{target_url}?{request.url.query}"
        headers = _forwardable(request.headers.items(), drop=frozenset({"host"}))
        has_body = "content-length" in request.headers or "transfer-encoding" in request.headers

        upstream_request = self._client.build_request(
            method=request.method,
            url=target_url,
            headers=headers,
            content=request.stream() if has_body else None,
        )

        logger.info(f"Proxying {request.method} request to CMS: {target_url}")

        try:
            if self._metrics is not None:
                with self._metrics.proxy_request_duration_seconds.labels(
                    route=route, method=request.method
                ).time():
                    upstream = await self._client.send(upstream_request, stream=True)
            else:
                upstream = await self._client.send(upstream_request, stream=True)
        except httpx.TimeoutException as e:
            self._record(route, request.method, "504")
            logger.error(f"Timeout proxying {request.method} {target_url}: {e}")
            raise_timeout_error(
                service="drupal_ce_service",
                operation=f"proxy_{route}",
                timeout_seconds=None,
                message=f"CMS request timed out: {request.method} {target_url}",
                correlation_id=correlation_id,
                method=request.method,
            )
        except httpx.HTTPError as e:
            self._record(route, request.method, "502")
            logger.error(f"Error proxying {request.method} {target_url}: {e}", exc_info=True)
            raise_external_service_error(
                service="drupal_ce_service",
                operation=f"proxy_{route}",
                external_service="drupal_cms",
                message=f"Error proxying request to the CMS: {e}",
                correlation_id=correlation_id,
                method=request.method,
            )

        self._record(route, request.method, str(upstream.status_code))
        logger.info(
            f"Proxied {request.method} request completed: {target_url}, "
            f"status: {upstream.status_code}"
        )

        response = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        # Raw list keeps repeated headers such as set-cookie
        response.raw_headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in _forwardable(upstream.headers.multi_items())
        ]
        return response

    def _record(self, route: str, method: str, status_code: str) -> None:
        if self._metrics is not None:
            self._metrics.proxy_requests_total.labels(
                route=route, method=method, status_code=status_code
            ).inc()


router = APIRouter(route_class=DishkaRoute, tags=["CMS Proxy"])


@router.api_route(
    DRUPAL_CE_PREFIX + "{path:path}",
    methods=PROXY_METHODS,
    summary="CMS content proxy",
    description="Forward requests to the Drupal backend origin",
)
async def proxy_drupal_ce(
    path: str,
    request: Request,
    forwarder: FromDishka[ProxyForwarder],
    endpoint_config: FromDishka[EndpointConfig],
    correlation_id: FromDishka[UUID],
) -> StreamingResponse:
    target_url = join_url(
        endpoint_config.drupal_base_url, _upstream_path(request, DRUPAL_CE_PREFIX, path)
    )
    return await forwarder.forward(
        request, target_url, route="drupal-ce", correlation_id=correlation_id
    )


@router.api_route(
    MENU_PREFIX + "{path:path}",
    methods=PROXY_METHODS,
    summary="CMS menu proxy",
    description="Forward requests to the CMS menu base URL",
)
async def proxy_menu(
    path: str,
    request: Request,
    forwarder: FromDishka[ProxyForwarder],
    endpoint_config: FromDishka[EndpointConfig],
    correlation_id: FromDishka[UUID],
) -> StreamingResponse:
    target_url = join_url(
        endpoint_config.menu_base_url, _upstream_path(request, MENU_PREFIX, path)
    )
    return await forwarder.forward(request, target_url, route="menu", correlation_id=correlation_id)
