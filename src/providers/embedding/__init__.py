"""Embedding provider implementations.

Two implementations of IEmbeddingProvider, in selection priority order:
    1. OpenAIEmbeddingProvider - text-embedding-3-small (1536 dims), needs a key.
    2. NomicEmbeddingProvider  - nomic-embed-text via Ollama (768 dims), local.

Vectors from different models are never mixed at query time: the model id
is stored with each vector and passed to the store's vector search.
"""

from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
