"""
Structured error data models for the Drupal CE service.

These models contain only data fields and no behavior; the exception classes
in `drupal_ce_error` wrap them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    TIMEOUT = "TIMEOUT"

    # CMS content errors
    PAGE_FETCH_ERROR = "PAGE_FETCH_ERROR"
    MENU_FETCH_ERROR = "MENU_FETCH_ERROR"


class ErrorDetail(BaseModel):
    """
    The canonical data model for an error raised by the Drupal CE service.
    """

    error_code: ErrorCode
    message: str
    correlation_id: UUID
    timestamp: datetime
    service: str
    operation: str
    details: dict[str, Any] = Field(default_factory=dict)
    stack_trace: str | None = None

    model_config = ConfigDict(frozen=True)
