"""Application-level exception types.

Domain errors shared by services and adapters. The exception handlers map
each subclass to an HTTP status so routes can simply let them propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    field: str
    allowed_values: list[str]
    retry_after: int
    reset_time: int
    limit: int
    remaining: int
    endpoint: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class NotFoundAppError(AppError):
    """Raised when a waitlist entry cannot be located."""


class GoneAppError(AppError):
    """Raised when an entry exists but can no longer be acted on."""


class RateLimitedAppError(AppError):
    """Raised when a client exceeds its request budget."""


class StoreAppError(AppError):
    """Raised when the waitlist store is unavailable or misbehaves."""


class DuplicateEmailError(StoreAppError):
    """Raised by stores when an email is already on the waitlist."""


class EmailDeliveryAppError(AppError):
    """Raised when an outbound email cannot be sent."""
