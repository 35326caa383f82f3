"""Factory functions for structured errors.

The `raise_*` helpers build an ErrorDetail with full context and raise the
matching exception. `create_*` helpers build errors that are recovered
locally and never raised.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any, NoReturn
from uuid import UUID, uuid4

from services.drupal_ce_service.error_handling.drupal_ce_error import (
    ConfigError,
    DrupalCeError,
    MenuFetchError,
    PageFetchError,
    SoftPageError,
)
from services.drupal_ce_service.error_handling.error_models import ErrorCode, ErrorDetail


def create_error_detail_with_context(
    error_code: ErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    capture_stack: bool = True,
) -> ErrorDetail:
    """Create an ErrorDetail, generating a correlation ID when none is given.

    Args:
        error_code: Error classification
        message: Human-readable error message
        service: Service raising the error
        operation: Operation that failed
        correlation_id: Request correlation ID
        details: Additional structured context
        capture_stack: Whether to record the current stack trace

    Returns:
        Immutable ErrorDetail instance
    """
    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id or uuid4(),
        timestamp=datetime.now(timezone.utc),
        service=service,
        operation=operation,
        details=details or {},
        stack_trace="".join(traceback.format_stack()[:-1]) if capture_stack else None,
    )


def raise_configuration_error(
    service: str,
    operation: str,
    config_key: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    detail = create_error_detail_with_context(
        error_code=ErrorCode.CONFIGURATION_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details={"config_key": config_key, **additional_context},
    )
    raise ConfigError(detail)


def raise_external_service_error(
    service: str,
    operation: str,
    external_service: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    detail = create_error_detail_with_context(
        error_code=ErrorCode.EXTERNAL_SERVICE_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details={"external_service": external_service, **additional_context},
    )
    raise DrupalCeError(detail)


def raise_timeout_error(
    service: str,
    operation: str,
    timeout_seconds: float | None,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    detail = create_error_detail_with_context(
        error_code=ErrorCode.TIMEOUT,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details={"timeout_seconds": timeout_seconds, **additional_context},
    )
    raise DrupalCeError(detail)


def _upstream_details(
    status_code: int | None, status_message: str, data: Any, **additional_context: Any
) -> dict[str, Any]:
    return {
        "status_code": status_code,
        "status_message": status_message,
        "data": data,
        **additional_context,
    }


def raise_page_fetch_error(
    service: str,
    operation: str,
    status_code: int | None,
    message: str,
    data: Any,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a fatal PageFetchError preserving upstream status, message and body."""
    detail = create_error_detail_with_context(
        error_code=ErrorCode.PAGE_FETCH_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=_upstream_details(status_code, message, data, **additional_context),
    )
    raise PageFetchError(detail)


def create_soft_page_error(
    service: str,
    operation: str,
    status_code: int | None,
    message: str,
    data: Any,
    correlation_id: UUID,
    **additional_context: Any,
) -> SoftPageError:
    detail = create_error_detail_with_context(
        error_code=ErrorCode.PAGE_FETCH_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=_upstream_details(status_code, message, data, **additional_context),
        capture_stack=False,
    )
    return SoftPageError(detail)


def create_menu_fetch_error(
    service: str,
    operation: str,
    status_code: int | None,
    message: str,
    data: Any,
    correlation_id: UUID,
    **additional_context: Any,
) -> MenuFetchError:
    detail = create_error_detail_with_context(
        error_code=ErrorCode.MENU_FETCH_ERROR,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=_upstream_details(status_code, message, data, **additional_context),
        capture_stack=False,
    )
    return MenuFetchError(detail)
