"""
Error handling middleware with error sanitization.

Maps roster domain errors and store failures to the JSON error envelope
``{"error": {"code", "message", "path", "method"}}`` without leaking tokens
or connection strings into responses.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    RosterError,
    StaleStateError,
)

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', re.IGNORECASE),
    re.compile(r'token["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\']?\s*[:=]\s*["\']?[^"\'\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\']?\s*:\s*["\']?[^"\'\s,}]+', re.IGNORECASE),
    re.compile(r'(postgres(?:ql)?(?:\+\w+)?://)[^@\s]+@', re.IGNORECASE),
]

DOMAIN_STATUS_CODES: dict[type[RosterError], int] = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    StaleStateError: status.HTTP_409_CONFLICT,
}


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (only in dev)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def domain_error_status(exc: RosterError) -> int:
    """HTTP status for a domain error, walking the class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in DOMAIN_STATUS_CODES:
            return DOMAIN_STATUS_CODES[cls]
    return status.HTTP_400_BAD_REQUEST


def error_envelope(
    code: str,
    message: str,
    path: str,
    method: str,
    details: Optional[Any] = None,
) -> dict[str, Any]:
    body = {
        "error": {
            "code": code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        body["error"]["details"] = details
    return body


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a user-friendly structure.

    Args:
        exc: The validation exception

    Returns:
        List of formatted validation errors
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        # Include simple, non-sensitive inputs only
        if "input" in error:
            input_value = error["input"]
            if isinstance(input_value, (str, int, float, bool)):
                input_str = str(input_value)
                if not any(pattern.search(input_str) for pattern in SENSITIVE_PATTERNS):
                    error_dict["input"] = input_value
        errors.append(error_dict)
    return errors


def classify_exception(
    exc: Exception, debug: bool = False
) -> tuple[int, str, str, Optional[Any]]:
    """
    Status code, error code, public message and optional details for an exception.

    Store failures never expose their own text; in debug mode a sanitized
    traceback is attached instead.
    """
    if isinstance(exc, RosterError):
        return domain_error_status(exc), exc.code, sanitize_error_message(exc.message), None

    details = get_safe_error_details(exc, include_details=True) if debug else None
    if isinstance(exc, IntegrityError):
        # Unique (job, user) pairs and directory names
        return status.HTTP_409_CONFLICT, "CONFLICT", "The change conflicts with existing data", details
    if isinstance(exc, OperationalError):
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "DATABASE_UNAVAILABLE",
            "Database service temporarily unavailable",
            None,
        )
    if isinstance(exc, SQLAlchemyError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "A database error occurred", details
    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        details,
    )


def _log_failure(method: str, path: str, exc: Exception, status_code: int, code: str) -> None:
    if status_code < 500:
        logger.warning(f"{method} {path} failed with {code}: {sanitize_error_message(exc)}")
        return
    logger.error(
        f"{method} {path} failed with {code}: "
        f"{type(exc).__name__}: {sanitize_error_message(exc)}",
        exc_info=True,
    )


def _error_response(
    exc: Exception,
    path: str,
    method: str,
    request_id: Optional[str] = None,
    debug: bool = False,
) -> JSONResponse:
    status_code, code, message, details = classify_exception(exc, debug)
    _log_failure(method, path, exc, status_code, code)
    body = error_envelope(code, message, path, method, details)
    if request_id:
        body["error"]["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=body)


class ErrorHandlingMiddleware:
    """
    Last-resort error handling for exceptions that escape the routers.

    Domain errors, HTTP exceptions and validation errors are normally turned
    into responses by the handlers from ``setup_error_handlers``; this layer
    catches what is left (store failures, bugs) before the server does.
    """

    def __init__(self, app: Callable, debug: bool = False):
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            # Echo the request ID if the client sent one
            request_id = dict(scope.get("headers") or []).get(b"x-request-id")
            response = _error_response(
                exc,
                scope.get("path", "unknown"),
                scope.get("method", "unknown"),
                request_id.decode() if request_id else None,
                self.debug,
            )
            await response(scope, receive, send)


def setup_error_handlers(app, debug: bool = False):
    """
    Register the envelope-producing exception handlers on a FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Attach sanitized tracebacks to store and server errors
    """

    async def envelope_handler(request: Request, exc: Exception):
        return _error_response(
            exc,
            str(request.url.path),
            request.method,
            request.headers.get("x-request-id"),
            debug,
        )

    # Domain errors, store outages and anything else share one code path
    app.add_exception_handler(RosterError, envelope_handler)
    app.add_exception_handler(OperationalError, envelope_handler)
    app.add_exception_handler(Exception, envelope_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(
                "HTTP_EXCEPTION",
                sanitize_error_message(exc.detail),
                str(request.url.path),
                request.method,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = format_validation_errors(exc)
        logger.warning(f"Validation error: {request.method} {request.url.path} - {details}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_envelope(
                "VALIDATION_ERROR",
                "Request validation failed",
                str(request.url.path),
                request.method,
                details,
            ),
        )
