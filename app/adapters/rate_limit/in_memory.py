"""In-memory sliding-window rate limiter for threads.

Notes:
- Per-process only: separate processes each enforce their own limit.
- Thread-safe: evict + check + record runs under one condition lock, and
  waiting happens on the condition with the lock released.
- No FIFO guarantee unless ``fair=True``: admission is decided when a waiter
  wakes up, not when it arrived.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import timedelta
from typing import Any, Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitSnapshot
from app.adapters.rate_limit.cancellation import CancellationToken
from app.adapters.rate_limit.window import SlidingWindow
from app.core.errors import AcquireCancelledError

logger = logging.getLogger(__name__)

# Called with the limiter's condition held; must release it while blocking
# for at most ``timeout`` seconds (None: until notified).
Waiter = Callable[[threading.Condition, "float | None"], Any]


def _condition_wait(condition: threading.Condition, timeout: float | None) -> Any:
    return condition.wait(timeout)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Blocking limiter allowing ``limit`` permits per trailing window.

    Example:
        >>> limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=1.0)
        >>> limiter.acquire()  # granted immediately
        >>> limiter.try_acquire()
        False
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float | timedelta,
        clock: Callable[[], float] = time.monotonic,
        waiter: Waiter | None = None,
        fair: bool = False,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum permits per window.
            window_seconds: Window length in seconds (or a timedelta).
            clock: Monotonic time source returning seconds.
            waiter: Suspend strategy used while the window is full.
            fair: Grant permits strictly in arrival order.

        Raises:
            InvalidConfigurationError: If limit or window are not positive.
        """
        self._window = SlidingWindow(limit=limit, window_seconds=window_seconds)
        self._clock = clock
        self._wait = waiter or _condition_wait
        self._fair = fair
        self._condition = threading.Condition(threading.RLock())
        self._queue: deque[object] = deque()

    @classmethod
    def per_interval(
        cls, limit: int, interval: timedelta, **kwargs: Any
    ) -> InMemorySlidingWindowRateLimiter:
        """Build a limiter allowing ``limit`` permits per ``interval``."""
        return cls(limit=limit, window_seconds=interval, **kwargs)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemorySlidingWindowRateLimiter(limit={self.limit}, "
            f"window_seconds={self.window_seconds}, fair={self._fair})"
        )

    @property
    def limit(self) -> int:
        return self._window.limit

    @property
    def window_seconds(self) -> float:
        return self._window.window_seconds

    def acquire(self, *, cancel_token: CancellationToken | None = None) -> None:
        """Block until a permit is granted, then record it.

        Args:
            cancel_token: Optional token; cancelling it wakes this caller and
                aborts the wait.

        Raises:
            AcquireCancelledError: If the token is cancelled first.
        """
        if cancel_token is None:
            self._acquire(None)
            return

        handle = cancel_token.register(self._wake_all)
        try:
            self._acquire(cancel_token)
        finally:
            cancel_token.unregister(handle)

    def try_acquire(self) -> bool:
        """Grant a permit only if one is free now; never blocks."""
        with self._condition:
            if self._fair and self._queue:
                return False
            return self._window.try_record(self._clock())

    def snapshot(self) -> RateLimitSnapshot:
        with self._condition:
            return self._window.snapshot(self._clock())

    def _acquire(self, cancel_token: CancellationToken | None) -> None:
        ticket = object()
        waits = 0
        granted = False
        started = self._clock()

        with self._condition:
            if self._fair:
                self._queue.append(ticket)
            try:
                while True:
                    if cancel_token is not None and cancel_token.cancelled:
                        break

                    now = self._clock()
                    my_turn = not self._fair or self._queue[0] is ticket

                    if my_turn and self._window.try_record(now):
                        if not self._window.history.is_full():
                            # Spare capacity left; let other waiters re-check.
                            self._condition.notify_all()
                        granted = True
                        break

                    timeout = self._window.wait_seconds(now) if my_turn else None
                    if timeout == 0.0:
                        continue

                    waits += 1
                    self._wait(self._condition, timeout)
            finally:
                if self._fair:
                    self._queue.remove(ticket)
                    self._condition.notify_all()

        # Logging happens with the condition released.
        waited_s = max(0.0, self._clock() - started)
        if not granted:
            self._raise_cancelled(waits, waited_s)
        logger.debug(
            "rate_limit.granted",
            extra={
                "limit": self.limit,
                "window_s": self.window_seconds,
                "waits": waits,
                "waited_s": round(waited_s, 3),
            },
        )

    def _raise_cancelled(self, waits: int, waited_s: float) -> None:
        logger.info(
            "rate_limit.cancelled",
            extra={
                "limit": self.limit,
                "window_s": self.window_seconds,
                "waits": waits,
                "waited_s": round(waited_s, 3),
            },
        )
        raise AcquireCancelledError(
            code="rate_limit_acquire_cancelled",
            message="Waiting for a rate limit permit was cancelled",
            details={"limit": self.limit, "window_seconds": self.window_seconds},
        )

    def _wake_all(self) -> None:
        with self._condition:
            self._condition.notify_all()
