"""
FastAPI application factory for catalog search service.

Creates and configures the FastAPI application with routes, dependencies
and the start-up index rebuild.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from catalog_search import __version__
from catalog_search.api.dependencies import ServiceContainer, build_services
from catalog_search.core.config import Settings, get_settings
from catalog_search.core.logging import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

_REQUEST_ID_HEADER = "X-Request-ID"


async def rebuild_from_catalog(services: ServiceContainer) -> None:
    """Initial rebuild from the catalog loader.

    A failure is logged and the service starts with an empty corpus.
    Cancellation is not a failure and propagates.
    """
    if services.catalog_loader is None:
        logger.info("No catalog loader configured, starting with an empty index")
        return

    try:
        items = await services.catalog_loader.load()
        result = await services.index.rebuild(
            items,
            timeout=services.settings.rebuild_timeout_seconds,
        )
    except Exception:
        logger.exception("Initial rebuild failed, serving an empty index")
        return

    logger.info("Initial rebuild indexed %d items", result.indexed)


def create_app(
    settings: Settings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings (defaults to environment settings)
        services: Optional pre-configured service container

    Returns:
        Configured FastAPI application
    """
    if services is None:
        services = build_services(settings or get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await rebuild_from_catalog(app.state.services)
        yield

    app = FastAPI(
        title="Catalog Search Service",
        description="Hybrid semantic + fuzzy catalog search API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(_REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[_REQUEST_ID_HEADER] = correlation_id
        return response

    # Store services in app state for dependency injection
    app.state.services = services

    # Import routes here to avoid circular imports
    from catalog_search.api.routes import get_services, router

    def _get_services() -> ServiceContainer:
        return app.state.services

    app.dependency_overrides[get_services] = _get_services

    app.include_router(router)

    return app
