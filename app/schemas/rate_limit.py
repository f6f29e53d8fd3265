"""Pydantic schema for the outbound rate limit status endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.adapters.rate_limit.base import RateLimitSnapshot


class RateLimitStatus(BaseModel):
    """Usage of the shared outbound rate limit window."""

    limit: int = Field(..., ge=1, description="Permits allowed per window.")
    window_seconds: float = Field(..., gt=0, description="Window length in seconds.")
    in_window: int = Field(..., ge=0, description="Permits granted in the current window.")
    available: int = Field(..., ge=0, description="Permits that can be granted right now.")
    retry_after_seconds: float = Field(
        ...,
        ge=0,
        description="Seconds until the next permit frees up; 0 when one is available.",
    )

    @classmethod
    def from_snapshot(cls, snapshot: RateLimitSnapshot) -> RateLimitStatus:
        return cls(
            limit=snapshot.limit,
            window_seconds=snapshot.window_seconds,
            in_window=snapshot.in_window,
            available=snapshot.available,
            retry_after_seconds=round(snapshot.retry_after_seconds, 3),
        )
