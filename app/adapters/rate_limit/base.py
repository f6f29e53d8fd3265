"""Rate limiter interfaces.

Callers should depend on these abstractions (not the concrete
implementations) so the thread-based and asyncio-based limiters stay
interchangeable behind the document client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.adapters.rate_limit.cancellation import CancellationToken


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Read-only view of a limiter's sliding window at one instant.

    Attributes:
        limit: Max permits per window.
        window_seconds: Window length in seconds.
        in_window: Permits granted within the trailing window.
        available: Permits that could be granted right now.
        retry_after_seconds: Time until the next permit frees up (0.0 when
            one is available now).
    """

    limit: int
    window_seconds: float
    in_window: int
    available: int
    retry_after_seconds: float


class AbstractRateLimiter(ABC):
    """Interface for blocking, thread-safe rate limiters."""

    @abstractmethod
    def acquire(self, *, cancel_token: CancellationToken | None = None) -> None:
        """Block until a permit is granted and record it.

        Args:
            cancel_token: Optional token; cancelling it aborts the wait.

        Raises:
            AcquireCancelledError: If the token is cancelled before a permit
                is granted. No permit is recorded in that case.
        """
        raise NotImplementedError

    @abstractmethod
    def try_acquire(self) -> bool:
        """Grant and record a permit only if one is available right now."""
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> RateLimitSnapshot:
        """Describe the current window without granting anything."""
        raise NotImplementedError


class AbstractAsyncRateLimiter(ABC):
    """Interface for asyncio rate limiters.

    Cancellation is the awaiting task's own ``asyncio.CancelledError``.
    """

    @abstractmethod
    async def acquire(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def try_acquire(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def snapshot(self) -> RateLimitSnapshot:
        raise NotImplementedError

    async def __aenter__(self) -> AbstractAsyncRateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
