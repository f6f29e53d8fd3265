"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill all of them.
    """

    code: str
    message: str
    hint: str
    limit: int
    window_seconds: float
    http_status: int
    doc_id: str
    request_id: str
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
    """Raised when input/config validation fails."""


class InvalidConfigurationError(ValidationAppError):
    """Raised when a rate limiter is built with a non-positive limit or window."""


class AcquireCancelledError(AppError):
    """Raised when a blocked acquire is interrupted by a cancellation token.

    No permit is granted to a cancelled caller.
    """


class TransportAppError(AppError):
    """Raised when the outbound document API cannot be reached."""
