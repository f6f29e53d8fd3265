from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the rate limiter or the remote document API, so it stays
    fast while submissions are waiting for permits.
    """

    return {"status": "ok"}
