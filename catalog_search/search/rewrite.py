"""
Query rewrite contract.

A rewriter turns a raw user query into a corrected primary string plus a
few alternatives. The rewriting heuristics live outside this service;
this module defines the normalized shape the merger consumes and the
caller-owned fallback to the raw query.

Usage:
    rewrite = await rewrite_or_fallback(rewriter, "iphnoe 14")
    results = await merger.merge(rewrite, limit=10)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 3


@dataclass(frozen=True)
class QueryRewrite:
    """Primary query plus ordered alternatives.

    Attributes:
        primary: Corrected query searched first
        alternatives: Up to MAX_ALTERNATIVES further variants, non-empty
                      and unique case-insensitively
    """

    primary: str
    alternatives: tuple[str, ...] = ()

    @property
    def variants(self) -> tuple[str, ...]:
        """All query strings in search order."""
        return (self.primary, *self.alternatives)

    @classmethod
    def passthrough(cls, raw: str) -> QueryRewrite:
        """Use the raw query unchanged as the sole variant."""
        return cls(primary=(raw or "").strip())

    @classmethod
    def normalize(
        cls,
        primary: str | None,
        alternatives: Iterable[str] | None = None,
        raw: str | None = None,
        max_alternatives: int = MAX_ALTERNATIVES,
    ) -> QueryRewrite:
        """Build a rewrite from untrusted rewriter output.

        Strings are stripped, empties dropped and duplicates removed
        case-insensitively (the primary counts). A primary that ends up
        empty falls back to ``raw``.

        Args:
            primary: Proposed primary query
            alternatives: Proposed alternatives, in preference order
            raw: Original user query used when the primary is blank
            max_alternatives: Cap on the number of alternatives kept

        Returns:
            Normalized QueryRewrite
        """
        seen: set[str] = set()

        def clean(value: str | None) -> str | None:
            value = (value or "").strip()
            if not value or value.lower() in seen:
                return None
            seen.add(value.lower())
            return value

        kept_primary = clean(primary)
        if kept_primary is None:
            kept_primary = (raw or "").strip()
            seen.add(kept_primary.lower())

        kept: list[str] = []
        for alternative in alternatives or ():
            if len(kept) >= max_alternatives:
                break
            value = clean(alternative)
            if value is not None:
                kept.append(value)

        return cls(primary=kept_primary, alternatives=tuple(kept))


@runtime_checkable
class QueryRewriterProtocol(Protocol):
    """Protocol for query rewriters."""

    async def rewrite(self, raw: str) -> QueryRewrite:
        """Rewrite a raw user query."""
        ...


class PassthroughRewriter:
    """Rewriter that performs no rewriting."""

    async def rewrite(self, raw: str) -> QueryRewrite:
        return QueryRewrite.passthrough(raw)


async def rewrite_or_fallback(
    rewriter: QueryRewriterProtocol | None,
    raw: str,
    max_alternatives: int = MAX_ALTERNATIVES,
) -> QueryRewrite:
    """Rewrite ``raw`` or fall back to it unchanged.

    Any rewriter failure is logged and replaced by the passthrough
    rewrite; cancellation still propagates.
    """
    if rewriter is None:
        return QueryRewrite.passthrough(raw)

    try:
        rewrite = await rewriter.rewrite(raw)
    except Exception as e:
        logger.warning("Query rewrite failed, using raw query: %s", e)
        return QueryRewrite.passthrough(raw)

    return QueryRewrite.normalize(
        rewrite.primary,
        rewrite.alternatives,
        raw=raw,
        max_alternatives=max_alternatives,
    )
