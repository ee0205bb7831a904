"""
Custom exceptions for the search module.

Exception naming avoids shadowing Python builtins (TimeoutError,
ConnectionError): OperationTimeoutError, EmbeddingProviderError.
"""

from __future__ import annotations

from collections.abc import Sequence


class CatalogSearchError(Exception):
    """Base exception for all catalog search errors."""

    pass


class EmbeddingProviderError(CatalogSearchError):
    """Raised by an embedding provider adapter when it cannot embed text."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize with message and optional cause.

        Args:
            message: Human-readable error description
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.cause = cause


class EmbeddingError(CatalogSearchError):
    """Raised when the query embedding fails during a search.

    The index never substitutes a fallback vector; the caller decides
    what to do with a failed query.
    """

    def __init__(
        self,
        message: str,
        query: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with message, failed query, and optional cause.

        Args:
            message: Human-readable error description
            query: The search query that failed
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.query = query
        self.cause = cause


class RebuildError(CatalogSearchError):
    """Raised when a corpus rebuild fails.

    The previously published corpus keeps serving queries.
    """

    def __init__(
        self,
        message: str,
        item_id: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with message, failing item, and optional cause.

        Args:
            message: Human-readable error description
            item_id: Identity of the item whose embedding failed
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.item_id = item_id
        self.cause = cause


class OperationTimeoutError(CatalogSearchError):
    """Raised when a deadline expires while waiting on the embedding provider."""

    def __init__(
        self,
        message: str,
        operation: str,
        timeout: float | None,
        item_id: int | None = None,
        query: str | None = None,
    ) -> None:
        """Initialize with the expired operation and what it was waiting on.

        Args:
            message: Human-readable error description
            operation: Which operation ran out of time ("rebuild" or "search")
            timeout: Deadline in seconds that expired
            item_id: Item being embedded when a rebuild deadline expired
            query: Query being embedded when a search deadline expired
        """
        super().__init__(message)
        self.operation = operation
        self.timeout = timeout
        self.item_id = item_id
        self.query = query


class AllVariantsFailedError(CatalogSearchError):
    """Raised when every query variant of a merge failed."""

    def __init__(
        self,
        message: str,
        variants: Sequence[str] = (),
        causes: Sequence[Exception] = (),
    ) -> None:
        super().__init__(message)
        self.variants = list(variants)
        self.causes = list(causes)


class CatalogLoadError(CatalogSearchError):
    """Raised when a catalog loader cannot supply items."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
