"""
Embedding provider boundary.

The index consumes any object implementing EmbeddingServiceProtocol.
SentenceTransformerEmbeddingService is the production adapter: the model
is loaded lazily on first use and encoding runs in a worker thread so the
event loop keeps serving searches while a rebuild is embedding items.

Usage:
    embedder = SentenceTransformerEmbeddingService("all-MiniLM-L6-v2")
    vector = await embedder.embed("apple iphone")
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Protocol, runtime_checkable

from catalog_search.search.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "all-MiniLM-L6-v2"


@runtime_checkable
class EmbeddingServiceProtocol(Protocol):
    """Protocol for embedding service."""

    @property
    def model_name(self) -> str:
        """Get the embedding model name."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text."""
        ...


class SentenceTransformerEmbeddingService:
    """Embedding adapter backed by a sentence-transformers model.

    Vector dimensionality is fixed by the model; the index does not
    depend on it.
    """

    def __init__(self, model_name: str = _DEFAULT_MODEL, device: str | None = None) -> None:
        """Initialize adapter without loading the model.

        Args:
            model_name: sentence-transformers model identifier
            device: Optional torch device ("cpu", "cuda"); None lets the
                    library choose
        """
        self._model_name = model_name
        self._device = device
        self._model: Any = None
        self._load_lock = threading.Lock()

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._model_name

    @property
    def is_loaded(self) -> bool:
        """Check if the model has been loaded."""
        return self._model is not None

    def _load_model(self) -> Any:
        with self._load_lock:
            if self._model is None:
                from sentence_transformers import SentenceTransformer

                logger.info("Loading embedding model: %s", self._model_name)
                self._model = SentenceTransformer(self._model_name, device=self._device)
        return self._model

    def _encode(self, text: str) -> list[float]:
        model = self._load_model()
        vector = model.encode(text, convert_to_numpy=True, show_progress_bar=False)
        return [float(v) for v in vector.tolist()]

    async def embed(self, text: str) -> list[float]:
        """Embed text with the configured model.

        Raises:
            EmbeddingProviderError: If the model cannot be loaded or
                encoding fails
        """
        try:
            return await asyncio.to_thread(self._encode, text)
        except Exception as e:
            raise EmbeddingProviderError(
                f"Embedding failed with model '{self._model_name}': {e}",
                cause=e,
            ) from e
