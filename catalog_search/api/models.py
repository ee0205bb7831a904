"""
Pydantic models for API request/response validation.

These models define the contract for the catalog search API endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from catalog_search.search.hybrid import Item, ScoredResult


class ItemModel(BaseModel):
    """Catalog item as accepted and returned by the API."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(ge=0, description="Unique item identity")
    seller_id: int = Field(default=0, description="Owning seller")
    category_id: int = Field(default=0, description="Catalog category")
    title: str = Field(default="", description="Display title")
    description: str = Field(default="", description="Free-text description")
    brand: str = Field(default="", description="Brand name")
    status: int = Field(default=0, description="Listing status code")
    score: int = Field(default=0, description="Relevance score field")

    def to_item(self) -> Item:
        return Item(**self.model_dump())

    @classmethod
    def from_item(cls, item: Item) -> ItemModel:
        return cls(**item.to_dict())


class ReindexRequest(BaseModel):
    """Request model for the reindex endpoint."""

    model_config = ConfigDict(extra="forbid")

    items: list[ItemModel] | None = Field(
        default=None,
        description="Full replacement item set; omit to reload from the catalog loader",
    )


class ReindexResponse(BaseModel):
    """Response model for the reindex endpoint."""

    indexed: int = Field(description="Documents in the new corpus")
    skipped: int = Field(description="Items skipped because their search text was empty")
    latency_ms: float = Field(description="Rebuild latency in milliseconds")


class SearchRequest(BaseModel):
    """Request model for the search endpoint."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(
        description="Free-text query; empty matches nothing",
        max_length=1000,
    )
    limit: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Maximum number of results (0 = no limit, omitted = service default)",
    )
    alternatives: list[str] | None = Field(
        default=None,
        description="Caller-supplied alternative queries; bypasses the rewriter",
    )


class ScoreBreakdown(BaseModel):
    """Sub-scores behind a combined score."""

    semantic: float = Field(description="Cosine similarity sub-score")
    fuzzy: float = Field(description="Best per-field Jaro-Winkler sub-score")


class SearchResultItem(BaseModel):
    """Individual search result item."""

    item: ItemModel
    score: float = Field(description="Combined relevance score")
    why: ScoreBreakdown

    @classmethod
    def from_result(cls, result: ScoredResult) -> SearchResultItem:
        return cls(
            item=ItemModel.from_item(result.item),
            score=result.score,
            why=ScoreBreakdown(semantic=result.semantic, fuzzy=result.fuzzy),
        )


class NormalizedQuery(BaseModel):
    """Query variants actually searched."""

    primary: str
    alternatives: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Response model for the search endpoint."""

    query: str = Field(description="Original query text")
    normalized: NormalizedQuery
    results: list[SearchResultItem] = Field(default_factory=list)
    total: int = Field(description="Number of results returned")
    latency_ms: float = Field(description="Search latency in milliseconds")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(description="Overall service status")
    documents: int = Field(description="Documents in the published corpus")
    embedding_model: str = Field(description="Embedding model name")
    last_rebuilt_at: str | None = Field(default=None, description="Last successful rebuild (UTC)")
    version: str = Field(description="Service version")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error details")
