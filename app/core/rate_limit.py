"""Rate limiter wiring from settings.

Design goals:
- One shared budget: every caller in the process takes permits from the
  same limiter, so the configured rate holds across threads and tasks.
- Fixed configuration: a limiter keeps the limit it was built with;
  settings changes only affect limiters built afterwards.
"""

from __future__ import annotations

import logging
import threading

from app.adapters.rate_limit.asyncio_limiter import AsyncSlidingWindowRateLimiter
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import RateLimitSettings, settings

logger = logging.getLogger(__name__)


_limiter: InMemorySlidingWindowRateLimiter | None = None
_limiter_lock = threading.Lock()


def build_rate_limiter(
    config: RateLimitSettings | None = None,
) -> InMemorySlidingWindowRateLimiter:
    """Build a new thread-based limiter from settings."""

    cfg = config or settings.rate_limit
    logger.info(
        "rate_limit.configured",
        extra={"limit": cfg.requests, "window_s": cfg.window_seconds, "fair": cfg.fair, "kind": "thread"},
    )
    return InMemorySlidingWindowRateLimiter(
        limit=cfg.requests,
        window_seconds=cfg.window_seconds,
        fair=cfg.fair,
    )


def build_async_rate_limiter(
    config: RateLimitSettings | None = None,
) -> AsyncSlidingWindowRateLimiter:
    """Build a new asyncio limiter from settings.

    Async limiters bind to the event loop they first run on, so each
    application lifespan builds its own instead of sharing a module global.
    """

    cfg = config or settings.rate_limit
    logger.info(
        "rate_limit.configured",
        extra={"limit": cfg.requests, "window_s": cfg.window_seconds, "fair": cfg.fair, "kind": "asyncio"},
    )
    return AsyncSlidingWindowRateLimiter(
        limit=cfg.requests,
        window_seconds=cfg.window_seconds,
        fair=cfg.fair,
    )


def get_rate_limiter() -> InMemorySlidingWindowRateLimiter:
    """Return the process-wide thread-based limiter, building it on first use."""

    global _limiter

    with _limiter_lock:
        if _limiter is None:
            _limiter = build_rate_limiter()
        return _limiter


def reset_rate_limiter() -> None:
    """Drop the process-wide limiter (tests use this between cases)."""

    global _limiter

    with _limiter_lock:
        _limiter = None
