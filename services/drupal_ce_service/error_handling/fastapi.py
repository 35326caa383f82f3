"""FastAPI integration for structured error handling."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from services.drupal_ce_service.error_handling.drupal_ce_error import DrupalCeError
from services.drupal_ce_service.error_handling.error_models import ErrorCode
from services.drupal_ce_service.error_handling.factories import (
    create_error_detail_with_context,
)
from services.drupal_ce_service.logging_utils import create_service_logger

logger = create_service_logger("drupal_ce.error_handlers")


def _request_correlation_id(request: Request) -> UUID:
    return getattr(request.state, "correlation_id", None) or uuid4()


def register_error_handlers(app: FastAPI) -> None:
    """Register handlers rendering errors as `{"error": {...}}` JSON responses."""

    @app.exception_handler(DrupalCeError)
    async def handle_drupal_ce_error(request: Request, exc: DrupalCeError) -> JSONResponse:
        logger.warning(
            "Request failed with structured error",
            error_code=exc.error_code,
            operation=exc.operation,
            path=request.url.path,
            correlation_id=exc.correlation_id,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content={"error": exc.to_dict()},
            headers={"X-Correlation-ID": exc.correlation_id},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = DrupalCeError(
            create_error_detail_with_context(
                error_code=ErrorCode.VALIDATION_ERROR,
                message="Request validation failed",
                service="drupal_ce_service",
                operation=f"{request.method.lower()} {request.url.path}",
                correlation_id=_request_correlation_id(request),
                details={"errors": jsonable_encoder(exc.errors())},
                capture_stack=False,
            )
        )
        return JSONResponse(status_code=400, content={"error": error.to_dict()})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True
        )
        error = DrupalCeError(
            create_error_detail_with_context(
                error_code=ErrorCode.UNKNOWN_ERROR,
                message="An unexpected error occurred",
                service="drupal_ce_service",
                operation=f"{request.method.lower()} {request.url.path}",
                correlation_id=_request_correlation_id(request),
                details={"error_type": type(exc).__name__},
                capture_stack=False,
            )
        )
        return JSONResponse(status_code=500, content={"error": error.to_dict()})
