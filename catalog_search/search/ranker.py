"""
Result ranking and multi-query merging.

rank_results() is the single ordering rule used by both the index and
the merger:
- Sort by combined score descending
- Break exact ties by item id ascending (deterministic)
- Truncate to ``limit`` only when ``limit > 0``

ResultMerger fans a QueryRewrite out to the index (primary first, then
each alternative) and keeps, per item id, the result with the highest
score. On an exact score tie the first-seen result is kept, so the
primary's sub-scores win over an alternative's.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from catalog_search.search.exceptions import AllVariantsFailedError, CatalogSearchError

if TYPE_CHECKING:
    from catalog_search.search.hybrid import HybridIndex, ScoredResult
    from catalog_search.search.rewrite import QueryRewrite

logger = logging.getLogger(__name__)

_DEFAULT_LIMIT = 10


def rank_results(results: Iterable[ScoredResult], limit: int) -> list[ScoredResult]:
    """Sort results by score descending and apply top-K truncation.

    Args:
        results: Scored results in any order
        limit: Maximum number of results; non-positive means no limit

    Returns:
        New ranked list
    """
    ranked = sorted(results, key=lambda r: (-r.score, r.item.id))
    if limit > 0:
        return ranked[:limit]
    return ranked


def merge_results(result_lists: Iterable[Iterable[ScoredResult]]) -> list[ScoredResult]:
    """Deduplicate results by item id, keeping the highest score.

    Args:
        result_lists: Result lists in variant order

    Returns:
        One result per item id, in first-seen order (unranked)
    """
    best: dict[int, ScoredResult] = {}
    for results in result_lists:
        for result in results:
            current = best.get(result.item.id)
            if current is None or result.score > current.score:
                best[result.item.id] = result
    return list(best.values())


class ResultMerger:
    """Searches every query variant and reconciles the rankings.

    Usage:
        merger = ResultMerger(index)
        results = await merger.merge(rewrite, limit=10)
    """

    def __init__(self, index: HybridIndex) -> None:
        self._index = index

    @property
    def index(self) -> HybridIndex:
        """Get the underlying index."""
        return self._index

    async def merge(
        self,
        rewrite: QueryRewrite,
        limit: int = _DEFAULT_LIMIT,
        timeout: float | None = None,
        require_any: bool = False,
    ) -> list[ScoredResult]:
        """Search each variant of ``rewrite`` and merge by max score.

        A variant whose search fails is skipped; its contribution is
        simply absent.

        Args:
            rewrite: Primary query plus alternatives
            limit: Per-variant and final result limit; non-positive means
                   no limit
            timeout: Deadline in seconds for each variant search
            require_any: Raise if every variant failed

        Returns:
            Merged ScoredResult list sorted by score descending

        Raises:
            AllVariantsFailedError: If ``require_any`` is set and no
                variant search succeeded
        """
        variants = rewrite.variants
        collected: list[list[ScoredResult]] = []
        failed: list[str] = []
        causes: list[Exception] = []

        for variant in variants:
            try:
                results = await self._index.search(variant, limit=limit, timeout=timeout)
            except CatalogSearchError as e:
                logger.warning("Skipping query variant '%s': %s", variant, e)
                failed.append(variant)
                causes.append(e)
                continue
            collected.append(results)

        if not collected and failed and require_any:
            raise AllVariantsFailedError(
                f"All {len(failed)} query variants failed",
                variants=failed,
                causes=causes,
            )

        merged = merge_results(collected)
        logger.debug(
            "Merged %d variants (%d failed) into %d results",
            len(variants),
            len(failed),
            len(merged),
        )
        return rank_results(merged, limit)
