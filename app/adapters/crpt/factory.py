"""Factory functions building document API clients from settings."""

from app.adapters.crpt.client import AsyncCrptDocumentClient, CrptDocumentClient
from app.adapters.rate_limit.base import AbstractAsyncRateLimiter
from app.core.config import settings
from app.core.rate_limit import build_async_rate_limiter, get_rate_limiter


def create_document_client() -> CrptDocumentClient:
    """Create a blocking client sharing the process-wide thread limiter.

    Reads configuration from app.core.config.settings (Pydantic Settings).
    """
    return CrptDocumentClient(
        base_url=settings.crpt.base_url,
        create_path=settings.crpt.create_path,
        timeout_seconds=settings.crpt.timeout_seconds,
        rate_limiter=get_rate_limiter(),
    )


def create_async_document_client(
    rate_limiter: AbstractAsyncRateLimiter | None = None,
) -> AsyncCrptDocumentClient:
    """Create an asyncio client.

    Args:
        rate_limiter: Limiter to share; a new one is built from settings
            when omitted.
    """
    return AsyncCrptDocumentClient(
        base_url=settings.crpt.base_url,
        create_path=settings.crpt.create_path,
        timeout_seconds=settings.crpt.timeout_seconds,
        rate_limiter=rate_limiter or build_async_rate_limiter(),
    )
