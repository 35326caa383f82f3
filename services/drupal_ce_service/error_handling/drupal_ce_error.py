"""Exception classes wrapping ErrorDetail.

`DrupalCeError` is the base for every structured error of the service. The
subclasses name the failure categories of content fetching:

- `ConfigError`: endpoint configuration cannot be resolved (fatal at startup)
- `PageFetchError`: a page fetch failed without renderable fallback (fatal)
- `SoftPageError`: a page fetch failed but returned renderable content;
  recorded and recovered locally, never raised to the rendering boundary
- `MenuFetchError`: a menu fetch failed; recovered as a queued message
"""

from __future__ import annotations

from typing import Any

from services.drupal_ce_service.error_handling.error_models import ErrorCode, ErrorDetail

# Error codes to HTTP status codes for errors without an upstream status
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.TIMEOUT: 504,
    ErrorCode.PAGE_FETCH_ERROR: 500,
    ErrorCode.MENU_FETCH_ERROR: 502,
    ErrorCode.UNKNOWN_ERROR: 500,
}


class DrupalCeError(Exception):
    """Base exception carrying a structured ErrorDetail."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        super().__init__(f"[{error_detail.error_code.value}] {error_detail.message}")
        self.error_detail = error_detail

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    @property
    def http_status(self) -> int:
        """HTTP status used when the error is rendered as a response."""
        return ERROR_CODE_TO_HTTP_STATUS.get(self.error_detail.error_code, 500)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "code": self.error_code,
            "message": self.error_detail.message,
            "correlation_id": self.correlation_id,
            "service": self.service,
            "operation": self.operation,
            "timestamp": self.error_detail.timestamp.isoformat(),
            "details": self.error_detail.details,
        }


class ConfigError(DrupalCeError):
    """Endpoint configuration could not be resolved."""


class _UpstreamFetchError(DrupalCeError):
    """Common accessors for errors that carry an upstream CMS response."""

    @property
    def status_code(self) -> int | None:
        return self.error_detail.details.get("status_code")

    @property
    def status_message(self) -> str:
        return self.error_detail.details.get("status_message", self.error_detail.message)

    @property
    def data(self) -> Any:
        return self.error_detail.details.get("data")


class PageFetchError(_UpstreamFetchError):
    """Page fetch failed and no renderable fallback exists."""

    @property
    def http_status(self) -> int:
        return self.status_code or super().http_status


class SoftPageError(_UpstreamFetchError):
    """Page fetch failed but the CMS returned renderable error content."""


class MenuFetchError(_UpstreamFetchError):
    """Menu fetch failed; always recovered locally."""

    @property
    def user_message(self) -> str:
        """Message shown to the user in the message queue."""
        return f"Menu error: {self.status_message}."
