"""
Catalog loader boundary.

The service does not own catalog storage. A loader supplies the full
item list handed to HybridIndex.rebuild at start-up and on demand.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from catalog_search.search.hybrid import Item


@runtime_checkable
class CatalogLoaderProtocol(Protocol):
    """Protocol for catalog loaders."""

    async def load(self) -> list[Item]:
        """Return the full current item list."""
        ...


class StaticCatalogLoader:
    """Loader serving a fixed in-memory item list."""

    def __init__(self, items: Iterable[Item] | None = None) -> None:
        self._items = list(items or [])

    async def load(self) -> list[Item]:
        await asyncio.sleep(0)  # Yield to event loop
        return list(self._items)

    def set_items(self, items: Iterable[Item]) -> None:
        """Replace the items served by subsequent loads."""
        self._items = list(items)


def demo_catalog() -> list[Item]:
    """Four sample phones used to seed a fresh service."""
    return [
        Item(
            id=1,
            title="Apple iPhone 14 Pro",
            brand="Apple",
            description="6.1-inch, A16 Bionic, 48MP camera",
        ),
        Item(
            id=2,
            title="Samsung Galaxy S23",
            brand="Samsung",
            description="Dynamic AMOLED 2X, Snapdragon",
        ),
        Item(
            id=3,
            title="Google Pixel 8",
            brand="Google",
            description="Tensor G3, excellent camera",
        ),
        Item(
            id=4,
            title="Nokia Lumia 950",
            brand="Nokia",
            description="PureView camera, AMOLED display",
        ),
    ]
