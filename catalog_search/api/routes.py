"""
API routes for catalog search service.

Provides endpoints for hybrid catalog search, index rebuilds and health.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status

from catalog_search import __version__
from catalog_search.api.dependencies import ServiceContainer
from catalog_search.api.models import (
    ErrorResponse,
    HealthResponse,
    NormalizedQuery,
    ReindexRequest,
    ReindexResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from catalog_search.search.exceptions import (
    AllVariantsFailedError,
    CatalogLoadError,
    OperationTimeoutError,
    RebuildError,
)
from catalog_search.search.rewrite import QueryRewrite, rewrite_or_fallback

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services() -> ServiceContainer:
    """Get service container - injected at runtime."""
    # This is overridden by dependency injection in create_app
    msg = "Services not configured"
    raise RuntimeError(msg)


@router.post(
    "/v1/search",
    response_model=SearchResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Validation error"},
        502: {"model": ErrorResponse, "description": "Embedding provider failed"},
        504: {"model": ErrorResponse, "description": "Embedding provider timed out"},
    },
    tags=["search"],
    summary="Hybrid semantic + fuzzy catalog search",
)
async def search(
    request: SearchRequest,
    services: ServiceContainer = Depends(get_services),  # noqa: B008
) -> SearchResponse:
    """
    Search the catalog with the query and its rewritten variants.

    Each variant is ranked by:
    `score = semantic_weight * cosine + fuzzy_weight * jaro_winkler`

    Variants are merged by keeping each item's best score. A failing
    variant is skipped; the request only fails when every variant fails.

    Args:
        request: Query, limit and optional caller-supplied alternatives
        services: Injected service container

    Returns:
        SearchResponse with the merged ranking
    """
    start_time = time.perf_counter()
    settings = services.settings
    limit = request.limit if request.limit is not None else settings.default_limit

    if request.alternatives is not None:
        rewrite = QueryRewrite.normalize(
            request.query,
            request.alternatives,
            raw=request.query,
            max_alternatives=settings.max_alternatives,
        )
    else:
        rewrite = await rewrite_or_fallback(
            services.rewriter,
            request.query,
            max_alternatives=settings.max_alternatives,
        )

    try:
        merged = await services.merger.merge(
            rewrite,
            limit=limit,
            timeout=settings.search_timeout_seconds,
            require_any=True,
        )
    except AllVariantsFailedError as e:
        timed_out = all(isinstance(c, OperationTimeoutError) for c in e.causes)
        raise HTTPException(
            status_code=(
                status.HTTP_504_GATEWAY_TIMEOUT if timed_out else status.HTTP_502_BAD_GATEWAY
            ),
            detail={"error": "embedding_unavailable", "message": str(e)},
        ) from e

    results = [SearchResultItem.from_result(r) for r in merged]
    latency_ms = (time.perf_counter() - start_time) * 1000

    return SearchResponse(
        query=request.query,
        normalized=NormalizedQuery(
            primary=rewrite.primary,
            alternatives=list(rewrite.alternatives),
        ),
        results=results,
        total=len(results),
        latency_ms=latency_ms,
    )


@router.post(
    "/v1/reindex",
    response_model=ReindexResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Rebuild failed"},
        503: {"model": ErrorResponse, "description": "No catalog loader configured"},
        504: {"model": ErrorResponse, "description": "Rebuild timed out"},
    },
    tags=["index"],
    summary="Rebuild the index from a full item set",
)
async def reindex(
    request: ReindexRequest,
    services: ServiceContainer = Depends(get_services),  # noqa: B008
) -> ReindexResponse:
    """
    Replace the corpus.

    Uses the supplied items, or reloads from the catalog loader when the
    body carries none. On failure the previous corpus keeps serving.

    Args:
        request: Optional replacement items
        services: Injected service container

    Returns:
        ReindexResponse with indexed/skipped counts
    """
    if request.items is not None:
        items = [m.to_item() for m in request.items]
    elif services.catalog_loader is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "catalog_unavailable", "message": "No catalog loader configured"},
        )
    else:
        try:
            items = await services.catalog_loader.load()
        except CatalogLoadError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": "catalog_load_error", "message": str(e)},
            ) from e

    try:
        result = await services.index.rebuild(
            items,
            timeout=services.settings.rebuild_timeout_seconds,
        )
    except OperationTimeoutError as e:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"error": "rebuild_timeout", "message": str(e), "item_id": e.item_id},
        ) from e
    except RebuildError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "rebuild_error", "message": str(e), "item_id": e.item_id},
        ) from e

    return ReindexResponse(
        indexed=result.indexed,
        skipped=result.skipped,
        latency_ms=result.latency_ms,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check endpoint",
)
async def health_check(
    services: ServiceContainer = Depends(get_services),  # noqa: B008
) -> HealthResponse:
    """
    Report corpus size and embedding model.

    The service is "degraded" while the corpus is empty.
    """
    index = services.index
    rebuilt_at = index.last_rebuilt_at

    return HealthResponse(
        status="healthy" if index.size > 0 else "degraded",
        documents=index.size,
        embedding_model=services.embedding_service.model_name,
        last_rebuilt_at=rebuilt_at.isoformat() if rebuilt_at else None,
        version=__version__,
    )
