"""Protocol definitions for Drupal CE Service.

Defines interfaces used in dependency injection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from services.drupal_ce_service.fetch.cms_fetcher import FetchResult
    from services.drupal_ce_service.fetch.options import FetchOptions
    from services.drupal_ce_service.state.messages import Message


class CmsFetcherProtocol(Protocol):
    """Protocol for the CMS HTTP fetch primitive."""

    async def get(self, path: str, options: FetchOptions, *, kind: str = "page") -> FetchResult:
        """Fetch a CMS path.

        Args:
            path: Path relative to options["base_url"]
            options: Merged fetch options
            kind: "page" or "menu"

        Returns:
            FetchResult with either data or error set
        """
        ...


class DrupalCeProtocol(Protocol):
    """Protocol for page and menu fetching on behalf of one request."""

    async def fetch_page(self, path: str, options: dict[str, Any] | None = None) -> Any:
        """Fetch a page, handling redirects, errors and messages."""
        ...

    async def fetch_menu(self, name: str, options: dict[str, Any] | None = None) -> Any:
        """Fetch a menu; failures become queued messages."""
        ...

    def get_messages(self) -> list[Message]:
        """Messages queued for the current session."""
        ...

    def get_page(self, path: str) -> Any:
        """Page data cached for a path in the current session."""
        ...
