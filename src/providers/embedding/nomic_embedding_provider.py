"""Local snippet embeddings with ``nomic-embed-text`` served by Ollama.

Requests go through Ollama's OpenAI-compatible ``/v1`` endpoint, so the
adapter shares its error mapping with the hosted provider.  Snippets are
embedded one call at a time by the embedding generator; no batching here.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)

NOMIC_MODEL = "nomic-embed-text"
NOMIC_DIMENSION = 768


class NomicEmbeddingProvider(IEmbeddingProvider):
    def __init__(self, settings: Settings) -> None:
        self._ollama_url = settings.ollama_base_url.rstrip("/")
        # Ollama ignores the key but the SDK requires one.
        self._client = openai.AsyncOpenAI(base_url=f"{self._ollama_url}/v1", api_key="ollama")

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            response = await self._client.embeddings.create(input=texts, model=NOMIC_MODEL)
        except openai.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"Ollama unreachable at {self._ollama_url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{NOMIC_MODEL} embedding failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        vectors = [item.embedding for item in response.data]
        if len(vectors) != len(texts):
            raise EmbeddingError(
                message=f"{NOMIC_MODEL} returned {len(vectors)} vectors for {len(texts)} texts",
                provider_name=self.get_provider_name(),
            )
        logger.debug("snippet_texts_embedded", model=NOMIC_MODEL, count=len(vectors))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        [vector] = await self.embed([text])
        return vector

    def get_dimension(self) -> int:
        return NOMIC_DIMENSION

    def get_model_name(self) -> str:
        return NOMIC_MODEL

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` when Ollama answers and has the model pulled."""
        if not self._ollama_url:
            return False
        try:
            response = httpx.get(f"{self._ollama_url}/api/tags", timeout=3.0)
            response.raise_for_status()
            models = response.json().get("models", [])
        except (httpx.HTTPError, ValueError):
            return False
        # Ollama reports pulled models with a tag suffix, e.g. "nomic-embed-text:latest".
        return any(m.get("name", "").split(":")[0] == NOMIC_MODEL for m in models)
