"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    reason: str
    http_status: int
    retry_after: int
    family: str
    limit: int
    upstream_status: int
    error_type: str
    cause: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (returned to clients).
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when the request input is missing or malformed."""


class RateLimitedAppError(AppError):
    """Raised when the local rate limiter rejects a request."""


class NotFoundAppError(AppError):
    """Raised when the registry reports no such company."""


class UpstreamTimeoutAppError(AppError):
    """Raised when the registry took longer than the configured budget."""


class UpstreamRateLimitedAppError(AppError):
    """Raised when the registry itself throttled us."""


class UpstreamUnavailableAppError(AppError):
    """Raised when the registry could not be reached."""


class InternalAppError(AppError):
    """Raised for any other failure, including invalid mapped records."""


class RegistryAppError(AppError):
    """Base for failures raised by registry client adapters."""


class RegistryTimeoutError(RegistryAppError):
    """The upstream call exceeded its time budget and was cancelled."""


class RegistryTransportError(RegistryAppError):
    """Network/transport failure or undecodable upstream body."""


class RegistryStatusError(RegistryAppError):
    """The registry answered with a non-success HTTP status."""

    @property
    def status(self) -> int:
        return int((self.details or {}).get("upstream_status", 0))
