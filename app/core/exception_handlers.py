"""Global exception handlers for consistent error responses.

Every failure leaves the API in the same envelope the site's forms expect::

    {"success": false, "error": "<message>", "code": "<code>", "request_id": "..."}

Design:
- AppError subclasses map to their HTTP status (400, 404, 410, 429, 500)
- Rate limit rejections also carry Retry-After and the window reset time
- Unexpected Exception returns a generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    AppError,
    EmailDeliveryAppError,
    GoneAppError,
    NotFoundAppError,
    RateLimitedAppError,
    StoreAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (NotFoundAppError, 404),
    (GoneAppError, 410),
    (RateLimitedAppError, 429),
    (StoreAppError, 500),
    (EmailDeliveryAppError, 500),
)


def status_for_error(exc: AppError) -> int:
    """Return the HTTP status for a domain error (400 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _rate_limit_headers(exc: RateLimitedAppError) -> dict[str, str]:
    details = exc.details or {}
    headers = {"Retry-After": str(details.get("retry_after", 0))}
    if settings.app.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(details.get("limit", 0))
        headers["X-RateLimit-Remaining"] = str(details.get("remaining", 0))
        headers["X-RateLimit-Reset"] = str(details.get("reset_time", 0))
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the shared JSON envelope.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = status_for_error(exc)
    request_id = get_request_id()

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
            "request_id": request_id,
        },
    )

    content: dict = {
        "success": False,
        "error": exc.message,
        "code": exc.code,
        "request_id": request_id,
    }

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitedAppError):
        content["resetTime"] = (exc.details or {}).get("reset_time")
        headers = _rate_limit_headers(exc)
    elif exc.details and status_code < 500:
        # Server-side failures keep their details in the logs only
        content["details"] = exc.details

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message; no stack traces or
    exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred. Please try again.",
            "code": "internal_server_error",
            "request_id": get_request_id(),
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
