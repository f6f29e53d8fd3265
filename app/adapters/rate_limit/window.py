"""Sliding-window admission logic shared by the sync and asyncio limiters.

A window counts the permits granted in the trailing interval
``(now - window_seconds, now]``. Eviction is lazy: it happens on every
admission attempt or snapshot, never in a background task.

``SlidingWindow`` is not thread-safe. Each limiter drives it while holding
its own lock so that evict + check + record is a single critical section.
"""

from __future__ import annotations

import math
from datetime import timedelta

from app.adapters.rate_limit.base import RateLimitSnapshot
from app.adapters.rate_limit.ring_buffer import TimestampRingBuffer
from app.core.errors import InvalidConfigurationError


def normalize_window(window_seconds: float | timedelta) -> float:
    """Convert a window given as seconds or ``timedelta`` to float seconds."""
    if isinstance(window_seconds, timedelta):
        return window_seconds.total_seconds()
    return float(window_seconds)


def validate_limit_config(limit: int, window_seconds: float) -> None:
    """Reject limiter configurations that could never grant a permit.

    Raises:
        InvalidConfigurationError: If limit or window are not positive.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidConfigurationError(
            code="invalid_rate_limit_config",
            message="limit must be a positive integer",
            details={"hint": f"got limit={limit!r}"},
        )
    if not (window_seconds > 0) or math.isinf(window_seconds):
        raise InvalidConfigurationError(
            code="invalid_rate_limit_config",
            message="window_seconds must be a positive, finite duration",
            details={"hint": f"got window_seconds={window_seconds!r}"},
        )


class SlidingWindow:
    """Permit history plus the evict/check/record algorithm.

    Attributes:
        limit: Maximum permits per window.
        window_seconds: Window length in seconds.
        history: Granted permit timestamps, oldest first.
    """

    def __init__(self, *, limit: int, window_seconds: float | timedelta) -> None:
        window = normalize_window(window_seconds)
        validate_limit_config(limit, window)

        self.limit = limit
        self.window_seconds = window
        self.history = TimestampRingBuffer(limit)

    def evict(self, now: float) -> int:
        """Drop timestamps that fell out of the window ending at ``now``.

        Returns:
            Number of evicted timestamps.
        """
        evicted = 0
        # Same expression as wait_seconds() so "not evicted" implies wait > 0.
        while self.history and self.history.oldest() + self.window_seconds <= now:
            self.history.popleft()
            evicted += 1
        return evicted

    def try_record(self, now: float) -> bool:
        """Record a permit at ``now`` if the window has room.

        A clock reading older than the newest recorded timestamp is clamped
        up to it so the history stays non-decreasing.
        """
        self.evict(now)
        if self.history.is_full():
            return False

        if self.history and now < self.history.newest():
            now = self.history.newest()
        self.history.append(now)
        return True

    def wait_seconds(self, now: float) -> float:
        """Time until the oldest permit leaves the window (0.0 if not full)."""
        if not self.history.is_full():
            return 0.0
        return max(0.0, self.history.oldest() + self.window_seconds - now)

    def snapshot(self, now: float) -> RateLimitSnapshot:
        self.evict(now)
        in_window = len(self.history)
        return RateLimitSnapshot(
            limit=self.limit,
            window_seconds=self.window_seconds,
            in_window=in_window,
            available=self.limit - in_window,
            retry_after_seconds=self.wait_seconds(now),
        )
