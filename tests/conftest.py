"""
Pytest configuration and fixtures for catalog-search tests.
"""

import pytest

from catalog_search.core.config import Settings
from catalog_search.search.catalog import demo_catalog
from catalog_search.search.hybrid import Item


@pytest.fixture
def settings() -> Settings:
    """Provide test settings without the demo catalog seed."""
    return Settings(
        embedding_model="fake-model",
        semantic_weight=0.7,
        fuzzy_weight=0.3,
        default_limit=10,
        search_timeout_seconds=5.0,
        rebuild_timeout_seconds=5.0,
        seed_demo_catalog=False,
    )


@pytest.fixture
def demo_items() -> list[Item]:
    """The four sample phones."""
    return demo_catalog()
