"""Translate typed errors into JSON error bodies."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from identity_manager.core.exceptions import (
    IdentityManagerError,
    UnauthorizedError,
    ValidationError,
)
from identity_manager.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def error_body(
    status_code: int,
    error: str,
    message: str,
    path: str,
    errors: dict[str, str] | None = None,
) -> dict:
    """Build the ``{timestamp, status, error, message, path}`` body."""
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        error=error,
        message=message,
        path=path,
        errors=errors,
    )
    return jsonable_encoder(body, exclude_none=True)


def field_errors_from(exc: RequestValidationError | PydanticValidationError) -> dict[str, str]:
    """Flatten pydantic errors into one message per field."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "request"
        message = str(err.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        errors.setdefault(field, message)
    return errors


async def handle_application_error(request: Request, exc: IdentityManagerError) -> JSONResponse:
    errors = exc.field_errors if isinstance(exc, ValidationError) else None
    headers = {"WWW-Authenticate": 'Basic realm="identity-manager"'} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.error, exc.message, request.url.path, errors),
        headers=headers,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            status.HTTP_400_BAD_REQUEST,
            "Validation Failed",
            "Validation failed",
            request.url.path,
            field_errors_from(exc),
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            "An unexpected error occurred",
            request.url.path,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the API exception handlers on the application."""
    app.add_exception_handler(IdentityManagerError, handle_application_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
