"""
Dependency injection for API services.

The index is constructed once per process and handed to the routes
through the ServiceContainer; nothing is held in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from catalog_search.core.config import Settings
from catalog_search.search.catalog import CatalogLoaderProtocol, StaticCatalogLoader, demo_catalog
from catalog_search.search.embeddings import (
    EmbeddingServiceProtocol,
    SentenceTransformerEmbeddingService,
)
from catalog_search.search.hybrid import HybridIndex
from catalog_search.search.ranker import ResultMerger
from catalog_search.search.rewrite import PassthroughRewriter, QueryRewriterProtocol


@dataclass
class ServiceContainer:
    """Container for all service dependencies."""

    index: HybridIndex
    merger: ResultMerger
    embedding_service: EmbeddingServiceProtocol
    settings: Settings = field(default_factory=Settings)
    rewriter: QueryRewriterProtocol | None = None
    catalog_loader: CatalogLoaderProtocol | None = None


def build_services(
    settings: Settings,
    embedding_service: EmbeddingServiceProtocol | None = None,
    rewriter: QueryRewriterProtocol | None = None,
    catalog_loader: CatalogLoaderProtocol | None = None,
) -> ServiceContainer:
    """
    Wire the index, merger and collaborators from settings.

    Args:
        settings: Application settings
        embedding_service: Provider override (defaults to sentence-transformers)
        rewriter: Rewriter override (defaults to passthrough)
        catalog_loader: Loader override (defaults to the demo catalog when
                        ``settings.seed_demo_catalog`` is set)

    Returns:
        Configured ServiceContainer
    """
    if embedding_service is None:
        embedding_service = SentenceTransformerEmbeddingService(settings.embedding_model)
    if catalog_loader is None and settings.seed_demo_catalog:
        catalog_loader = StaticCatalogLoader(demo_catalog())

    index = HybridIndex(
        embedding_service=embedding_service,
        semantic_weight=settings.semantic_weight,
        fuzzy_weight=settings.fuzzy_weight,
    )

    return ServiceContainer(
        index=index,
        merger=ResultMerger(index),
        embedding_service=embedding_service,
        settings=settings,
        rewriter=rewriter or PassthroughRewriter(),
        catalog_loader=catalog_loader,
    )
