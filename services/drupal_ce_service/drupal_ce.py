"""Page and menu fetching from the Drupal custom elements API.

`DrupalCe` is created per request with the render context of that request.
Page fetches classify each result as exactly one of: redirect (navigation
supersedes rendering), fatal error (raised), or payload (returned and
cached). Menu failures never propagate; they become a queued message.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError

from services.drupal_ce_service.config import MENU_NAME_PLACEHOLDER
from services.drupal_ce_service.endpoint_config import EndpointConfig
from services.drupal_ce_service.error_handling import (
    create_menu_fetch_error,
    create_soft_page_error,
    raise_page_fetch_error,
)
from services.drupal_ce_service.fetch.cms_fetcher import FetchError
from services.drupal_ce_service.fetch.options import FetchOptions, build_fetch_options
from services.drupal_ce_service.logging_utils import create_service_logger
from services.drupal_ce_service.protocols import CmsFetcherProtocol
from services.drupal_ce_service.render_context import Redirect, RenderContext
from services.drupal_ce_service.state.messages import Message, MessageType

logger = create_service_logger("drupal_ce.fetch")


def page_state_key(path: str) -> str:
    return f"page-{path}"


def menu_state_key(name: str) -> str:
    return f"menu-{name}"


def _has_renderable_content(data: Any) -> bool:
    return isinstance(data, Mapping) and bool(data.get("content"))


class DrupalCe:
    """Fetches CMS pages and menus on behalf of one request."""

    def __init__(
        self,
        endpoint_config: EndpointConfig,
        fetcher: CmsFetcherProtocol,
        context: RenderContext,
        correlation_id: UUID | None = None,
    ) -> None:
        self._config = endpoint_config
        self._fetcher = fetcher
        self._context = context
        self._correlation_id = correlation_id or uuid4()

    @property
    def context(self) -> RenderContext:
        return self._context

    def process_fetch_options(
        self, options: Mapping[str, Any] | None = None, *, base_url: str | None = None
    ) -> FetchOptions:
        """Apply module defaults and forwarded request headers to caller options."""
        return build_fetch_options(
            options,
            base_url=base_url or self._config.base_url,
            defaults=self._config.fetch_options,
            proxy_headers=self._config.fetch_proxy_headers,
            inbound_headers=self._context.inbound_headers,
        )

    async def fetch_page(self, path: str, options: Mapping[str, Any] | None = None) -> Any:
        """Fetch page data, handling redirects, errors and messages.

        Args:
            path: Path of the Drupal page, e.g. "/node/1"
            options: Optional per-call fetch options

        Returns:
            The page payload, or None when the CMS answered with a redirect

        Raises:
            PageFetchError: If the fetch failed without renderable error content,
                or on any failure when custom error pages are enabled
        """
        key = page_state_key(path)
        # Created before the fetch so repeated calls in one render share the cell
        page_state = self._context.get_state(key)

        fetch_options = self.process_fetch_options({**(options or {}), "key": key})
        if self._config.add_request_content_format:
            query = dict(fetch_options.get("query") or {})
            query["_content_format"] = self._config.add_request_content_format
            fetch_options["query"] = query

        result = await self._fetcher.get(path, fetch_options, kind="page")
        page = result.data

        if isinstance(page, Mapping) and page.get("redirect"):
            await self._context.navigate_to(self._parse_redirect(path, page))
            return None

        if result.error is not None:
            page = self._recover_page_error(path, result.error)

        if isinstance(page, Mapping) and page.get("messages"):
            self._context.push_messages(page["messages"])

        page_state.value = page
        return page

    def _parse_redirect(self, path: str, page: Mapping[str, Any]) -> Redirect:
        try:
            return Redirect.model_validate(page["redirect"])
        except ValidationError as e:
            logger.error(
                "Invalid redirect in CMS response",
                path=path,
                error=str(e),
                correlation_id=str(self._correlation_id),
            )
            raise_page_fetch_error(
                service="drupal_ce_service",
                operation="fetch_page",
                status_code=None,
                message="Invalid redirect in CMS response",
                data=dict(page),
                correlation_id=self._correlation_id,
                path=path,
            )

    def _recover_page_error(self, path: str, error: FetchError) -> Any:
        if not _has_renderable_content(error.data) or self._config.custom_error_pages:
            logger.error(
                "Page fetch failed",
                path=path,
                status_code=error.status_code,
                error=error.message,
                correlation_id=str(self._correlation_id),
            )
            raise_page_fetch_error(
                service="drupal_ce_service",
                operation="fetch_page",
                status_code=error.status_code,
                message=error.message,
                data=error.data,
                correlation_id=self._correlation_id,
                path=path,
            )

        soft_error = create_soft_page_error(
            service="drupal_ce_service",
            operation="fetch_page",
            status_code=error.status_code,
            message=error.message,
            data=error.data,
            correlation_id=self._correlation_id,
            path=path,
        )
        logger.warning(
            "Rendering CMS error content",
            path=path,
            status_code=soft_error.status_code,
            correlation_id=soft_error.correlation_id,
        )
        if soft_error.status_code is not None:
            self._context.set_response_status(soft_error.status_code)
        return soft_error.data

    async def fetch_menu(self, name: str, options: Mapping[str, Any] | None = None) -> Any:
        """Fetch menu data configured by the menu endpoint template.

        Args:
            name: Menu name, substituted into the menu endpoint
            options: Optional per-call fetch options

        Returns:
            The menu payload, or None if the fetch failed
        """
        menu_path = self._config.menu_endpoint.replace(MENU_NAME_PLACEHOLDER, name)
        key = menu_state_key(name)
        fetch_options = self.process_fetch_options(options, base_url=self._config.menu_base_url)
        fetch_options["key"] = key

        result = await self._fetcher.get(menu_path, fetch_options, kind="menu")

        if result.error is not None:
            menu_error = create_menu_fetch_error(
                service="drupal_ce_service",
                operation="fetch_menu",
                status_code=result.error.status_code,
                message=result.error.message,
                data=result.error.data,
                correlation_id=self._correlation_id,
                menu=name,
            )
            logger.warning(
                "Menu fetch failed",
                menu=name,
                status_code=menu_error.status_code,
                correlation_id=menu_error.correlation_id,
            )
            self._context.add_message(
                Message(type=MessageType.ERROR, message=menu_error.user_message)
            )
            return None

        self._context.get_state(key).value = result.data
        return result.data

    def get_messages(self) -> list[Message]:
        """Messages queued for the current session."""
        return self._context.messages.get()

    def get_page(self, path: str) -> Any:
        """Page data cached for `path` in the current session."""
        return self._context.get_state(page_state_key(path)).value
