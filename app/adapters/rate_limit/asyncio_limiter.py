"""Sliding-window rate limiter for asyncio tasks.

Same admission rules as the thread-based limiter. Waiting tasks block on an
``asyncio.Condition`` with a timeout equal to the time until the oldest
permit expires. Cancelling a waiting task raises ``asyncio.CancelledError``
out of ``acquire`` and records nothing.

Instances are bound to the event loop they are first used on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from datetime import timedelta
from typing import Any, Callable

from app.adapters.rate_limit.base import AbstractAsyncRateLimiter, RateLimitSnapshot
from app.adapters.rate_limit.window import SlidingWindow

logger = logging.getLogger(__name__)


class AsyncSlidingWindowRateLimiter(AbstractAsyncRateLimiter):
    """Async limiter allowing ``limit`` permits per trailing window.

    Usage:
        limiter = AsyncSlidingWindowRateLimiter(limit=5, window_seconds=1.0)
        async with limiter:
            await send()
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float | timedelta,
        clock: Callable[[], float] = time.monotonic,
        fair: bool = False,
    ) -> None:
        """Initialize the limiter.

        Raises:
            InvalidConfigurationError: If limit or window are not positive.
        """
        self._window = SlidingWindow(limit=limit, window_seconds=window_seconds)
        self._clock = clock
        self._fair = fair
        self._condition: asyncio.Condition | None = None
        self._queue: deque[object] = deque()

    @classmethod
    def per_interval(
        cls, limit: int, interval: timedelta, **kwargs: Any
    ) -> AsyncSlidingWindowRateLimiter:
        """Build a limiter allowing ``limit`` permits per ``interval``."""
        return cls(limit=limit, window_seconds=interval, **kwargs)

    @property
    def limit(self) -> int:
        return self._window.limit

    @property
    def window_seconds(self) -> float:
        return self._window.window_seconds

    def _get_condition(self) -> asyncio.Condition:
        # Created lazily so the limiter can be built outside a running loop.
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition

    async def acquire(self) -> None:
        """Wait until a permit is granted, then record it."""
        condition = self._get_condition()
        ticket = object()
        waits = 0
        started = self._clock()

        try:
            async with condition:
                if self._fair:
                    self._queue.append(ticket)
                try:
                    while True:
                        now = self._clock()
                        my_turn = not self._fair or self._queue[0] is ticket

                        if my_turn and self._window.try_record(now):
                            if not self._window.history.is_full():
                                condition.notify_all()
                            break

                        timeout = self._window.wait_seconds(now) if my_turn else None
                        if timeout == 0.0:
                            continue

                        waits += 1
                        await self._wait(condition, timeout)
                finally:
                    if self._fair:
                        self._queue.remove(ticket)
                        condition.notify_all()
        except asyncio.CancelledError:
            # The condition is already released here.
            logger.info(
                "rate_limit.cancelled",
                extra={
                    "limit": self.limit,
                    "window_s": self.window_seconds,
                    "waits": waits,
                    "waited_s": round(max(0.0, self._clock() - started), 3),
                },
            )
            raise

        logger.debug(
            "rate_limit.granted",
            extra={
                "limit": self.limit,
                "window_s": self.window_seconds,
                "waits": waits,
                "waited_s": round(max(0.0, self._clock() - started), 3),
            },
        )

    @staticmethod
    async def _wait(condition: asyncio.Condition, timeout: float | None) -> None:
        # On timeout the condition lock is re-acquired before wait_for returns.
        try:
            await asyncio.wait_for(condition.wait(), timeout)
        except asyncio.TimeoutError:
            pass

    def try_acquire(self) -> bool:
        """Grant a permit only if one is free now; never waits.

        Safe without the condition lock: ``acquire`` never awaits between
        evicting and recording, so no other task can interleave there.
        """
        if self._fair and self._queue:
            return False
        return self._window.try_record(self._clock())

    def snapshot(self) -> RateLimitSnapshot:
        return self._window.snapshot(self._clock())
