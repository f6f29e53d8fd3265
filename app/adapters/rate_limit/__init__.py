"""Rate limiting adapters.

Sliding-window limiters that gate an outbound action so no more than
``limit`` calls happen in any trailing window, for threads and for asyncio.
"""

from app.adapters.rate_limit.asyncio_limiter import AsyncSlidingWindowRateLimiter
from app.adapters.rate_limit.base import (
    AbstractAsyncRateLimiter,
    AbstractRateLimiter,
    RateLimitSnapshot,
)
from app.adapters.rate_limit.cancellation import CancellationToken
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter

__all__ = [
    "AbstractAsyncRateLimiter",
    "AbstractRateLimiter",
    "AsyncSlidingWindowRateLimiter",
    "CancellationToken",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitSnapshot",
]
