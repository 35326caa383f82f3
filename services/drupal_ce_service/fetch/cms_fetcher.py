"""CMS HTTP fetch primitive.

Issues one GET per call and reports the outcome as a `FetchResult` of
`{data, error}` instead of raising, so callers can classify failures.
No retries are performed here; timeouts come from the shared client or the
per-call `timeout` option.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from services.drupal_ce_service.endpoint_config import join_url
from services.drupal_ce_service.fetch.options import FetchOptions
from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.metrics import DrupalCeMetrics

logger = create_service_logger("drupal_ce.cms_fetcher")


@dataclass(frozen=True)
class FetchError:
    """A failed CMS fetch.

    `status_code` is None when no response was received; `data` holds the
    decoded error body, if any.
    """

    status_code: int | None
    message: str
    data: Any = None


@dataclass(frozen=True)
class FetchResult:
    data: Any = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class CmsFetcher:
    """GET requests against the CMS using a shared httpx AsyncClient."""

    def __init__(
        self, http_client: httpx.AsyncClient, metrics: DrupalCeMetrics | None = None
    ) -> None:
        """Initialize with shared HTTP client.

        Args:
            http_client: Shared httpx AsyncClient instance
            metrics: Optional metrics container
        """
        self._client = http_client
        self._metrics = metrics

    async def get(self, path: str, options: FetchOptions, *, kind: str = "page") -> FetchResult:
        """Fetch `path` relative to `options["base_url"]`.

        Args:
            path: CMS path, e.g. "/node/1" or "api/menu_items/main"
            options: Merged fetch options
            kind: Label for metrics and logs ("page" or "menu")

        Returns:
            FetchResult with decoded JSON data or a FetchError
        """
        url = join_url(options.get("base_url") or "", path)
        request_kwargs: dict[str, Any] = {
            "params": options.get("query") or None,
            "headers": options.get("headers") or None,
        }
        if "timeout" in options:
            request_kwargs["timeout"] = options["timeout"]

        logger.debug("Fetching from CMS", kind=kind, url=url, key=options.get("key"))

        if self._metrics is not None:
            with self._metrics.cms_fetch_duration_seconds.labels(kind=kind).time():
                result = await self._send(url, request_kwargs)
            outcome = "success" if result.ok else "error"
            self._metrics.cms_fetches_total.labels(kind=kind, outcome=outcome).inc()
        else:
            result = await self._send(url, request_kwargs)

        return result

    async def _send(self, url: str, request_kwargs: dict[str, Any]) -> FetchResult:
        try:
            response = await self._client.get(url, **request_kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"CMS request failed: GET {url}: {e}")
            return FetchResult(error=FetchError(status_code=None, message=f'[GET] "{url}": {e}'))

        if response.is_error:
            message = f'[GET] "{url}": {response.status_code} {response.reason_phrase}'
            logger.info(
                "CMS responded with error status",
                url=url,
                status_code=response.status_code,
            )
            return FetchResult(
                error=FetchError(
                    status_code=response.status_code,
                    message=message,
                    data=_decode_body(response),
                )
            )

        return FetchResult(data=_decode_body(response))
