"""
Configuration module for catalog-search.

Uses pydantic-settings for environment-based configuration of the
hybrid index weights, embedding model and request deadlines.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Score weights:
    - semantic_weight: weight of the embedding cosine sub-score
    - fuzzy_weight: weight of the Jaro-Winkler sub-score
    The weights are not required to sum to 1.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # SERVICE CONFIGURATION
    # ===========================================
    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="sentence-transformers model for embeddings",
    )

    # ===========================================
    # SCORING
    # ===========================================
    semantic_weight: float = Field(
        default=0.70,
        ge=0.0,
        description="Weight of the semantic (cosine) sub-score",
    )
    fuzzy_weight: float = Field(
        default=0.30,
        ge=0.0,
        description="Weight of the fuzzy (Jaro-Winkler) sub-score",
    )
    default_limit: int = Field(default=10, ge=0, description="Default result limit")
    max_alternatives: int = Field(
        default=3,
        ge=0,
        le=3,
        description="Maximum rewritten alternatives searched per query",
    )

    # ===========================================
    # DEADLINES
    # ===========================================
    search_timeout_seconds: float = Field(
        default=20.0,
        gt=0.0,
        description="Deadline for each query embedding",
    )
    rebuild_timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Deadline for a full index rebuild",
    )

    # ===========================================
    # CATALOG
    # ===========================================
    seed_demo_catalog: bool = Field(
        default=True,
        description="Rebuild from the demo catalog at start-up",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
