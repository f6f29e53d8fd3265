"""HTTP clients for the create-document API.

Every request first takes a permit from a shared sliding-window limiter, so
any number of concurrent callers stay under the configured request rate.
"""

from __future__ import annotations

import logging

import httpx

from app.adapters.crpt.base import (
    AbstractAsyncDocumentClient,
    AbstractDocumentClient,
    build_headers,
)
from app.adapters.rate_limit.base import AbstractAsyncRateLimiter, AbstractRateLimiter
from app.adapters.rate_limit.cancellation import CancellationToken
from app.core.errors import TransportAppError
from app.schemas.document import Document, DocumentCreateResult

logger = logging.getLogger(__name__)

DEFAULT_CREATE_PATH = "/api/v3/lk/documents/create"


def _to_result(document: Document, response: httpx.Response) -> DocumentCreateResult:
    """Turn a response into a result and log the outcome."""
    accepted = response.status_code == 200
    if accepted:
        logger.info(
            "document.created",
            extra={"doc_id": document.doc_id, "status_code": response.status_code},
        )
    else:
        logger.warning(
            "document.rejected",
            extra={
                "doc_id": document.doc_id,
                "status_code": response.status_code,
                "body_chars": len(response.text),
            },
        )
    return DocumentCreateResult(
        doc_id=document.doc_id,
        status_code=response.status_code,
        accepted=accepted,
        body=response.text,
    )


def _transport_error(document: Document, exc: httpx.HTTPError) -> TransportAppError:
    logger.error(
        "document.transport_failed",
        extra={"doc_id": document.doc_id, "error_type": type(exc).__name__},
    )
    return TransportAppError(
        code="document_transport_failed",
        message=f"Document API request failed: {exc}",
        details={"doc_id": document.doc_id},
    )


class CrptDocumentClient(AbstractDocumentClient):
    """Blocking client; safe to share between threads."""

    def __init__(
        self,
        *,
        base_url: str,
        rate_limiter: AbstractRateLimiter,
        create_path: str = DEFAULT_CREATE_PATH,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Scheme and host of the document API.
            rate_limiter: Limiter shared by every caller of this API.
            create_path: Path of the create-document endpoint.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.rate_limiter = rate_limiter
        self.create_path = create_path
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> CrptDocumentClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def create_document(
        self,
        document: Document,
        signature: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> DocumentCreateResult:
        payload = document.to_wire_json()

        self.rate_limiter.acquire(cancel_token=cancel_token)

        try:
            response = self.client.post(
                self.create_path,
                content=payload,
                headers=build_headers(signature),
            )
        except httpx.HTTPError as exc:
            raise _transport_error(document, exc) from exc

        return _to_result(document, response)


class AsyncCrptDocumentClient(AbstractAsyncDocumentClient):
    """Asyncio client; safe to share between tasks on one event loop."""

    def __init__(
        self,
        *,
        base_url: str,
        rate_limiter: AbstractAsyncRateLimiter,
        create_path: str = DEFAULT_CREATE_PATH,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.create_path = create_path
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> AsyncCrptDocumentClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def create_document(self, document: Document, signature: str) -> DocumentCreateResult:
        """Submit a document once the shared rate limit allows it.

        Raises:
            asyncio.CancelledError: If the task is cancelled while waiting.
            TransportAppError: If the remote API could not be reached.
        """
        payload = document.to_wire_json()

        await self.rate_limiter.acquire()

        try:
            response = await self.client.post(
                self.create_path,
                content=payload,
                headers=build_headers(signature),
            )
        except httpx.HTTPError as exc:
            raise _transport_error(document, exc) from exc

        return _to_result(document, response)
