"""Global exception handlers for the FastAPI application.

Every error response has the same shape:

    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Staff record 'abc' not found",
            "user_message": "Staff record 'abc' not found",
            "details": {...},
            "request_id": "1f2e3d4c",
            "timestamp": "2025-03-16T10:00:00+00:00"
        }
    }

Usage:
    from homecrew.api.exception_handlers import register_exception_handlers
    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from homecrew.core.exceptions import HomeCrewError
from homecrew.core.logging import get_logger, sanitize_error
from homecrew.services.error_messages import user_message

logger = get_logger(__name__)

_STATUS_TO_CODE = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_REQUIRED",
    403: "ACCESS_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}


def get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        request_id: str = request.state.request_id
        return request_id
    return request.headers.get("X-Request-ID")


def build_error_response(
    error_code: str,
    message: str,
    status_code: int,
    request: Request | None = None,
    details: dict[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build a standardized error response."""
    error_body: dict[str, Any] = {
        "code": error_code,
        "message": message,
    }
    if extra:
        error_body.update(extra)
    if details:
        error_body["details"] = details

    if request:
        request_id = get_request_id(request)
        if request_id:
            error_body["request_id"] = request_id

    error_body["timestamp"] = datetime.now(UTC).isoformat()

    return JSONResponse(
        status_code=status_code,
        content={"error": error_body},
        headers=headers,
    )


def _log_context(request: Request, **fields: Any) -> dict[str, Any]:
    context = {"path": str(request.url.path), "method": request.method, **fields}
    request_id = get_request_id(request)
    if request_id:
        context["request_id"] = request_id
    return context


async def homecrew_exception_handler(request: Request, exc: HomeCrewError) -> JSONResponse:
    """Render HomeCrewError and its subclasses."""
    log_context = _log_context(request, error_code=exc.error_code, status_code=exc.status_code)

    if exc.status_code >= 500:
        logger.error(f"Request failed: {sanitize_error(exc)}", extra=log_context)
    else:
        logger.info(f"Client error: {sanitize_error(exc)}", extra=log_context)

    return build_error_response(
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        request=request,
        details=exc.details or None,
        extra={"user_message": user_message(exc)},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (unknown routes, wrong methods) in the standard shape."""
    error_code = _STATUS_TO_CODE.get(exc.status_code, "ERROR")
    message = str(exc.detail) if exc.detail else "An error occurred"

    if exc.status_code >= 500:
        logger.error(f"HTTP error: {message}", extra=_log_context(request))

    return build_error_response(
        error_code=error_code,
        message=message,
        status_code=exc.status_code,
        request=request,
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request parsing errors with field-level details."""
    errors = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "unknown"
        errors.append({"field": field, "message": error.get("msg", "Validation error")})

    logger.info(
        "Request validation failed", extra=_log_context(request, error_count=len(errors))
    )

    return build_error_response(
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=422,
        request=request,
        extra={"errors": errors},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler. The response never includes the exception text."""
    logger.error(
        f"Unhandled exception: {sanitize_error(exc)}",
        extra=_log_context(request, exception_type=type(exc).__name__),
        exc_info=True,
    )
    return build_error_response(
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=500,
        request=request,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    # Starlette's handler typing does not account for exception subclasses
    app.add_exception_handler(
        HomeCrewError,
        homecrew_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        StarletteHTTPException,
        http_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
