"""Application factory for the FastAPI app.

Centralizes app construction (lifespan resources, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from app.adapters.crpt.base import AbstractAsyncDocumentClient
from app.adapters.crpt.factory import create_async_document_client
from app.api.routes import documents_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.services.document_service import DocumentService

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], AbstractAsyncDocumentClient]


def create_app(client_factory: ClientFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        client_factory: Builds the document client at startup; defaults to
            one configured from settings with its own rate limiter.

    Returns:
        Configured FastAPI app.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    build_client = client_factory or create_async_document_client

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client = build_client()
        app.state.document_service = DocumentService(client)
        logger.info(
            "app.started",
            extra={"limit": client.rate_limiter.snapshot().limit, "app_env": settings.app_env},
        )
        try:
            yield
        finally:
            await client.aclose()
            logger.info("app.stopped")

    app = FastAPI(
        title="CRPT Document Gateway",
        description=(
            "Forwards documents to the remote create-document API while keeping "
            "all callers under one shared request rate."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(documents_router, prefix="/v1")
    app.include_router(health_router)

    return app
