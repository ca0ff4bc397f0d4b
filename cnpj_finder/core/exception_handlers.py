"""Global exception handlers for consistent error responses.

Every failure leaves the API as ``{"error": true, "message": ...}`` with a
status code derived from the error type. Raw failure details are attached as
``details`` only when ``APP_EXPOSE_ERROR_DETAILS`` is enabled outside production.

Design:
- AppError subclasses → mapped status (400, 404, 408, 429, 500, 503)
- Starlette HTTP errors (405 method not allowed, unknown routes) → same shape
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cnpj_finder.core.config import settings
from cnpj_finder.core.errors import (
    AppError,
    InternalAppError,
    NotFoundAppError,
    RateLimitedAppError,
    RegistryAppError,
    UpstreamRateLimitedAppError,
    UpstreamTimeoutAppError,
    UpstreamUnavailableAppError,
    ValidationAppError,
)
from cnpj_finder.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Erro interno do servidor"

HTTP_ERROR_MESSAGES = {
    404: "Recurso não encontrado",
    405: "Método não permitido",
}

# Checked in order; first match wins.
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (NotFoundAppError, 404),
    (UpstreamTimeoutAppError, 408),
    (RateLimitedAppError, 429),
    (UpstreamRateLimitedAppError, 429),
    (UpstreamUnavailableAppError, 503),
    (InternalAppError, 500),
    (RegistryAppError, 500),
)


def status_for_error(exc: AppError) -> int:
    """HTTP status code for a domain error (500 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_body(message: str, cause: str | None = None) -> dict:
    """Build the failure envelope, adding ``details`` only when explicitly enabled."""
    body: dict = {"error": True, "message": message}
    if cause and settings.expose_error_details:
        body["details"] = cause
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code. Local rate-limit rejections
        also carry ``Retry-After`` and ``X-RateLimit-*`` headers.
    """
    status_code = status_for_error(exc)
    details = exc.details or {}

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedAppError) and settings.app.rate_limit_include_headers:
        if "retry_after" in details:
            headers["Retry-After"] = str(details["retry_after"])
        if "limit" in details:
            headers["X-RateLimit-Limit"] = str(details["limit"])
            headers["X-RateLimit-Remaining"] = "0"

    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.message, details.get("cause")),
        headers=headers or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing-level HTTP errors (405, 404...) in the API's shape."""
    if exc.status_code == 405:
        logger.warning("method_not_allowed", extra={"request_method": request.method})

    message = HTTP_ERROR_MESSAGES.get(exc.status_code)
    if message is None:
        message = exc.detail if isinstance(exc.detail, str) else GENERIC_FAILURE_MESSAGE

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces reach the client.
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
        content=error_body(GENERIC_FAILURE_MESSAGE, str(exc)),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
