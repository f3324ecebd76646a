"""Abstract base class for text-embedding service providers.

Embeddings are computed once per accepted snippet at ingestion time and
once per query at search time.  The model identifier is stored next to
every vector so that vectors from different models are never compared.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider - text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider  - nomic-embed-text via Ollama (local)
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Returns
        -------
        list[list[float]]
            Vectors positionally matching *texts*, each of length
            :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.EmbeddingError
            If the embedding API call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for one text (snippet or query)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the fixed dimensionality of produced vectors."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the model identifier recorded alongside each vector."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
