"""Vectorizers for the semantic expense index.

The abstraction hides:
- Which embedding service turns expense text into vectors
- Request batching
- Vector normalization (callers always receive unit vectors, so cosine
  similarity reduces to a dot product)
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from numpy.typing import NDArray
from openai import AsyncOpenAI

Vector = NDArray[np.float32]


def unit(vector: Vector) -> Vector:
    """Scale ``vector`` to length 1; the zero vector is returned unchanged."""
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return vector
    return (vector / norm).astype(np.float32)


class ExpenseEmbedder(ABC):
    """Turns expense documents and search queries into unit vectors."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector length produced by the configured model."""

    @abstractmethod
    async def embed_documents(self, documents: list[str]) -> list[Vector]:
        """Embed expense documents, preserving order.

        Args:
            documents: Text of each expense (description and category)

        Returns:
            One unit vector per document
        """

    async def embed_query(self, query: str) -> Vector:
        """Embed a user's search query.

        Args:
            query: Free-text query such as "coffee last week"

        Returns:
            Unit vector comparable with document vectors
        """
        vectors = await self.embed_documents([query])
        return vectors[0]

    async def close(self) -> None:
        """Release client resources."""


class OpenAIExpenseEmbedder(ExpenseEmbedder):
    """OpenAI embeddings for expense descriptions.

    Hidden design decisions:
    - AsyncOpenAI client initialization
    - Splitting large document lists into requests of ``batch_size``
    - Reordering response items by their ``index``
    """

    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = 256,
        base_url: str | None = None,
        client: Any | None = None,
        **client_kwargs: Any
    ):
        """Initialize the OpenAI expense embedder.

        Args:
            api_key: OpenAI API key
            model: Embedding model (default: text-embedding-3-small)
            batch_size: Maximum documents per embeddings request
            base_url: Optional custom API base URL
            client: Pre-built client (mainly for tests)
            **client_kwargs: Additional kwargs for AsyncOpenAI

        Raises:
            ValueError: If the model or batch size is not supported
        """
        if model not in self.MODEL_DIMENSIONS:
            raise ValueError(
                f"Unknown model: {model}. "
                f"Supported models: {list(self.MODEL_DIMENSIONS)}"
            )
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._model = model
        self._batch_size = batch_size
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, **client_kwargs)

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS[self._model]

    async def embed_documents(self, documents: list[str]) -> list[Vector]:
        vectors: list[Vector] = []
        for start in range(0, len(documents), self._batch_size):
            batch = documents[start:start + self._batch_size]
            response = await self._client.embeddings.create(input=batch, model=self._model)
            ordered = sorted(response.data, key=lambda item: item.index)
            vectors.extend(unit(np.asarray(item.embedding, dtype=np.float32)) for item in ordered)
        return vectors

    async def close(self) -> None:
        await self._client.close()


def create_expense_embedder(provider: str, **config: Any) -> ExpenseEmbedder:
    """Create the embedder behind the semantic expense index.

    Args:
        provider: Provider type ('openai')
        **config: Provider-specific configuration
            For OpenAI:
                - api_key: str (required)
                - model: str (default: 'text-embedding-3-small')
                - batch_size: int (default: 256)

    Returns:
        ExpenseEmbedder instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing
    """
    if provider.lower() == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI embedder requires 'api_key' in config")
        return OpenAIExpenseEmbedder(**config)

    raise ValueError(
        f"Unsupported embedder: {provider}. "
        f"Supported embedders: 'openai'"
    )
