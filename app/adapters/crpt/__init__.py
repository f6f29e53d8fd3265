"""Document API adapter layer - rate-limited clients for the create-document endpoint."""

from app.adapters.crpt.base import AbstractAsyncDocumentClient, AbstractDocumentClient
from app.adapters.crpt.client import AsyncCrptDocumentClient, CrptDocumentClient
from app.adapters.crpt.factory import create_async_document_client, create_document_client

__all__ = [
    "AbstractAsyncDocumentClient",
    "AbstractDocumentClient",
    "AsyncCrptDocumentClient",
    "CrptDocumentClient",
    "create_async_document_client",
    "create_document_client",
]
