"""Structured error handling for the Drupal CE service."""

from services.drupal_ce_service.error_handling.drupal_ce_error import (
    ConfigError,
    DrupalCeError,
    MenuFetchError,
    PageFetchError,
    SoftPageError,
)
from services.drupal_ce_service.error_handling.error_models import ErrorCode, ErrorDetail
from services.drupal_ce_service.error_handling.factories import (
    create_error_detail_with_context,
    create_menu_fetch_error,
    create_soft_page_error,
    raise_configuration_error,
    raise_external_service_error,
    raise_page_fetch_error,
    raise_timeout_error,
)

__all__ = [
    "ConfigError",
    "DrupalCeError",
    "ErrorCode",
    "ErrorDetail",
    "MenuFetchError",
    "PageFetchError",
    "SoftPageError",
    "create_error_detail_with_context",
    "create_menu_fetch_error",
    "create_soft_page_error",
    "raise_configuration_error",
    "raise_external_service_error",
    "raise_page_fetch_error",
    "raise_timeout_error",
]
