"""Document submission service.

Thin orchestration between the HTTP layer and the rate-limited document
client: validates the caller's signature, submits, and logs the outcome.
"""

from __future__ import annotations

import logging
import time

from app.adapters.crpt.base import AbstractAsyncDocumentClient
from app.adapters.rate_limit.base import RateLimitSnapshot
from app.core.errors import ValidationAppError
from app.schemas.document import Document, DocumentCreateResult

logger = logging.getLogger(__name__)


class DocumentService:
    """Submits documents through a shared, rate-limited client.

    Attributes:
        client: Async document API client (owns the rate limiter).
    """

    def __init__(self, client: AbstractAsyncDocumentClient) -> None:
        self.client = client

    async def submit(self, document: Document, signature: str | None) -> DocumentCreateResult:
        """Submit one document.

        Waits for a rate limit permit before the remote call; the wait time
        is included in ``duration_ms``.

        Raises:
            ValidationAppError: If the signature is missing or blank.
            TransportAppError: If the remote API could not be reached.
        """
        if not signature or not signature.strip():
            raise ValidationAppError(
                code="missing_signature",
                message="A document signature is required",
                details={"doc_id": document.doc_id, "hint": "Send it in the X-Signature header"},
            )

        start = time.perf_counter()
        result = await self.client.create_document(document, signature.strip())
        logger.info(
            "document.submitted",
            extra={
                "doc_id": document.doc_id,
                "accepted": result.accepted,
                "status_code": result.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return result

    def rate_limit_snapshot(self) -> RateLimitSnapshot:
        """Current state of the outbound rate limit window."""
        return self.client.rate_limiter.snapshot()
