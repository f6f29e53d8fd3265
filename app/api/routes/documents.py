from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from app.schemas.document import Document, DocumentCreateResult
from app.schemas.rate_limit import RateLimitStatus
from app.services.document_service import DocumentService

router = APIRouter(tags=["Documents"])


def get_document_service(request: Request) -> DocumentService:
    """Return the service built for this application's lifespan."""
    return request.app.state.document_service


@router.post("/documents", response_model=DocumentCreateResult)
async def create_document(
    document: Document,
    service: Annotated[DocumentService, Depends(get_document_service)],
    x_signature: Annotated[str | None, Header(alias="X-Signature")] = None,
) -> DocumentCreateResult:
    """Forward a document to the remote create-document API.

    The call waits for a permit from the shared rate limiter, so concurrent
    requests are spread out to respect the configured rate instead of being
    rejected.
    """
    return await service.submit(document, x_signature)


@router.get("/rate-limit", response_model=RateLimitStatus)
async def rate_limit_status(
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> RateLimitStatus:
    """Current usage of the outbound rate limit window."""
    return RateLimitStatus.from_snapshot(service.rate_limit_snapshot())
