"""
Hybrid catalog index.

Ranks a corpus of catalog items against a free-text query by combining
semantic similarity (cosine over embeddings) with fuzzy string similarity
(Jaro-Winkler over title, brand and description):

    score = semantic_weight * semantic + fuzzy_weight * fuzzy

Corpus consistency:
- The corpus is an immutable tuple of Documents published by a single
  reference assignment, so a search that binds it once sees one complete
  snapshot from start to finish.
- Rebuild embeds every item before touching the published corpus. Any
  failure, timeout or cancellation leaves the previous corpus serving.
- Rebuilds are serialized by an asyncio.Lock that searches never take.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from catalog_search.search.embeddings import EmbeddingServiceProtocol
from catalog_search.search.exceptions import (
    EmbeddingError,
    EmbeddingProviderError,
    OperationTimeoutError,
    RebuildError,
)
from catalog_search.search.fuzzy import field_similarity
from catalog_search.search.ranker import rank_results
from catalog_search.search.vector import cosine_similarity

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

_DEFAULT_SEMANTIC_WEIGHT = 0.7
_DEFAULT_FUZZY_WEIGHT = 0.3
_DEFAULT_LIMIT = 10


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Item:
    """Catalog record as supplied by the catalog loader.

    Attributes:
        id: Unique item identity
        seller_id: Owning seller
        category_id: Catalog category
        title: Display title
        description: Free-text description
        brand: Brand name
        status: Listing status code
        score: Relevance score field carried from the catalog
    """

    id: int
    seller_id: int = 0
    category_id: int = 0
    title: str = ""
    description: str = ""
    brand: str = ""
    status: int = 0
    score: int = 0

    @property
    def search_text(self) -> str:
        """Title, brand and description joined and stripped."""
        return " ".join([self.title, self.brand, self.description]).strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "category_id": self.category_id,
            "title": self.title,
            "description": self.description,
            "brand": self.brand,
            "status": self.status,
            "score": self.score,
        }


@dataclass(frozen=True)
class Document:
    """An indexed item with its embedding and derived search text."""

    item: Item
    embedding: tuple[float, ...]
    search_text: str


@dataclass(frozen=True)
class ScoredResult:
    """A ranked item with the sub-scores that produced its combined score.

    Attributes:
        item: The matched catalog item
        score: Combined score (semantic_weight*semantic + fuzzy_weight*fuzzy)
        semantic: Cosine similarity sub-score [0, 1]
        fuzzy: Best per-field Jaro-Winkler sub-score [0, 1]
    """

    item: Item
    score: float
    semantic: float
    fuzzy: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "score": self.score,
            "why": {"semantic": self.semantic, "fuzzy": self.fuzzy},
        }


@dataclass(frozen=True)
class RebuildResult:
    """Summary of a successful rebuild."""

    indexed: int
    skipped: int
    latency_ms: float


# =============================================================================
# HybridIndex
# =============================================================================


class HybridIndex:
    """In-memory hybrid semantic + fuzzy index over catalog items.

    Usage:
        index = HybridIndex(
            embedding_service=embedder,
            semantic_weight=0.7,
            fuzzy_weight=0.3,
        )
        await index.rebuild(items)
        results = await index.search("iphone 14", limit=10)
    """

    def __init__(
        self,
        embedding_service: EmbeddingServiceProtocol,
        semantic_weight: float = _DEFAULT_SEMANTIC_WEIGHT,
        fuzzy_weight: float = _DEFAULT_FUZZY_WEIGHT,
    ) -> None:
        """Initialize an empty index.

        Args:
            embedding_service: Provider used for item and query embeddings
            semantic_weight: Weight of the cosine sub-score
            fuzzy_weight: Weight of the fuzzy sub-score

        Raises:
            ValueError: If either weight is negative
        """
        if semantic_weight < 0 or fuzzy_weight < 0:
            raise ValueError(
                f"Weights must be non-negative, got semantic={semantic_weight}, "
                f"fuzzy={fuzzy_weight}"
            )

        self._embedding_service = embedding_service
        self._semantic_weight = float(semantic_weight)
        self._fuzzy_weight = float(fuzzy_weight)
        self._corpus: tuple[Document, ...] = ()
        self._last_rebuilt_at: datetime | None = None
        self._rebuild_lock = asyncio.Lock()

    @property
    def semantic_weight(self) -> float:
        """Get the semantic sub-score weight."""
        return self._semantic_weight

    @property
    def fuzzy_weight(self) -> float:
        """Get the fuzzy sub-score weight."""
        return self._fuzzy_weight

    @property
    def documents(self) -> tuple[Document, ...]:
        """Currently published corpus."""
        return self._corpus

    @property
    def size(self) -> int:
        """Number of documents in the published corpus."""
        return len(self._corpus)

    @property
    def last_rebuilt_at(self) -> datetime | None:
        """Time of the last successful rebuild (UTC)."""
        return self._last_rebuilt_at

    async def rebuild(
        self,
        items: Iterable[Item],
        timeout: float | None = None,
    ) -> RebuildResult:
        """Replace the corpus with documents built from ``items``.

        Items whose search text is empty are skipped. All embedding calls
        happen before the new corpus is published; readers keep using the
        old corpus until the final swap.

        The deadline starts when this call is made, so time spent queued
        behind another rebuild counts against it.

        Args:
            items: Full replacement item set
            timeout: Deadline in seconds for the whole rebuild

        Returns:
            RebuildResult with indexed and skipped counts

        Raises:
            RebuildError: If any item embedding fails
            OperationTimeoutError: If the deadline expires
        """
        start_time = time.perf_counter()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        try:
            await asyncio.wait_for(self._rebuild_lock.acquire(), timeout)
        except asyncio.TimeoutError as e:
            raise self._rebuild_timeout(timeout) from e

        try:
            return await self._rebuild_locked(items, deadline, timeout, start_time)
        finally:
            self._rebuild_lock.release()

    async def _rebuild_locked(
        self,
        items: Iterable[Item],
        deadline: float | None,
        timeout: float | None,
        start_time: float,
    ) -> RebuildResult:
        loop = asyncio.get_running_loop()

        pending: list[tuple[Item, str]] = []
        skipped = 0
        for item in items:
            text = item.search_text
            if not text:
                skipped += 1
                continue
            pending.append((item, text))

        logger.info(
            "Rebuilding index: %d items to embed, %d skipped with empty text",
            len(pending),
            skipped,
        )

        documents: list[Document] = []
        for item, text in pending:
            remaining = None
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise self._rebuild_timeout(timeout, item.id)
            try:
                vector = await self._embed(text, remaining)
            except asyncio.TimeoutError as e:
                raise self._rebuild_timeout(timeout, item.id) from e
            except Exception as e:
                logger.error("Rebuild aborted: embedding failed for item %d: %s", item.id, e)
                raise RebuildError(
                    f"Failed to embed item {item.id}: {e}",
                    item_id=item.id,
                    cause=e,
                ) from e
            documents.append(
                Document(item=item, embedding=tuple(vector), search_text=text)
            )

        self._corpus = tuple(documents)
        self._last_rebuilt_at = datetime.now(timezone.utc)

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Index rebuilt: %d documents in %.1f ms", len(documents), latency_ms
        )
        return RebuildResult(indexed=len(documents), skipped=skipped, latency_ms=latency_ms)

    async def search(
        self,
        query: str,
        limit: int = _DEFAULT_LIMIT,
        timeout: float | None = None,
    ) -> list[ScoredResult]:
        """Rank the corpus against ``query``.

        An empty query matches nothing and returns an empty list without
        calling the embedding provider.

        Args:
            query: Free-text query
            limit: Maximum number of results; non-positive means no limit
            timeout: Deadline in seconds for the query embedding

        Returns:
            ScoredResult list sorted by combined score descending

        Raises:
            EmbeddingError: If the query embedding fails
            OperationTimeoutError: If the deadline expires
        """
        q = (query or "").strip()
        if not q:
            return []

        try:
            query_vector = await self._embed(q, timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Search aborted: deadline of %ss expired for query '%s'", timeout, q)
            raise OperationTimeoutError(
                f"Query embedding timed out after {timeout}s",
                operation="search",
                timeout=timeout,
                query=q,
            ) from e
        except Exception as e:
            raise EmbeddingError(
                f"Failed to embed query '{q}': {e}",
                query=q,
                cause=e,
            ) from e

        corpus = self._corpus
        results = [self._score(q, query_vector, doc) for doc in corpus]
        return rank_results(results, limit)

    def _score(self, query: str, query_vector: list[float], doc: Document) -> ScoredResult:
        item = doc.item
        semantic = cosine_similarity(query_vector, doc.embedding)
        fuzzy = field_similarity(query, item.title, item.brand, item.description)
        score = self._semantic_weight * semantic + self._fuzzy_weight * fuzzy
        return ScoredResult(item=item, score=score, semantic=semantic, fuzzy=fuzzy)

    async def _embed(self, text: str, timeout: float | None) -> list[float]:
        """Embed ``text``, raising asyncio.TimeoutError only when ``timeout`` expires.

        A TimeoutError raised by the provider itself is re-raised as
        EmbeddingProviderError so callers never mistake it for this
        index's own deadline.
        """
        if timeout is None:
            return await self._provider_embed(text)
        return await asyncio.wait_for(self._provider_embed(text), timeout)

    async def _provider_embed(self, text: str) -> list[float]:
        try:
            return await self._embedding_service.embed(text)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise EmbeddingProviderError(
                f"Embedding provider timed out: {e}",
                cause=e,
            ) from e

    def _rebuild_timeout(
        self, timeout: float | None, item_id: int | None = None
    ) -> OperationTimeoutError:
        if item_id is None:
            logger.error(
                "Rebuild aborted: deadline of %ss expired waiting for a running rebuild",
                timeout,
            )
        else:
            logger.error(
                "Rebuild aborted: deadline of %ss expired while embedding item %d",
                timeout,
                item_id,
            )
        return OperationTimeoutError(
            f"Rebuild timed out after {timeout}s",
            operation="rebuild",
            timeout=timeout,
            item_id=item_id,
        )
