"""
Search module for catalog-search.

Provides the hybrid semantic + fuzzy catalog index and the multi-query
result merger.

- fuzzy.py: Jaro-Winkler field scorer
- vector.py: Cosine similarity
- embeddings.py: Embedding provider boundary (sentence-transformers)
- hybrid.py: Item/Document model and HybridIndex
- ranker.py: Ranking and max-wins result merging
- rewrite.py: Query rewrite contract
- catalog.py: Catalog loader boundary
"""

from __future__ import annotations

from catalog_search.search.catalog import CatalogLoaderProtocol, StaticCatalogLoader, demo_catalog
from catalog_search.search.embeddings import (
    EmbeddingServiceProtocol,
    SentenceTransformerEmbeddingService,
)
from catalog_search.search.hybrid import (
    Document,
    HybridIndex,
    Item,
    RebuildResult,
    ScoredResult,
)
from catalog_search.search.ranker import ResultMerger, merge_results, rank_results
from catalog_search.search.rewrite import (
    PassthroughRewriter,
    QueryRewrite,
    QueryRewriterProtocol,
    rewrite_or_fallback,
)

__all__ = [
    "CatalogLoaderProtocol",
    "Document",
    "EmbeddingServiceProtocol",
    "HybridIndex",
    "Item",
    "PassthroughRewriter",
    "QueryRewrite",
    "QueryRewriterProtocol",
    "RebuildResult",
    "ResultMerger",
    "ScoredResult",
    "SentenceTransformerEmbeddingService",
    "StaticCatalogLoader",
    "demo_catalog",
    "merge_results",
    "rank_results",
    "rewrite_or_fallback",
]
