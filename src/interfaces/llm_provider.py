"""Abstract base class for LLM service providers.

Defines the contract for any chat-completion backend used by the
extraction provider and the section classifier.  Implementations wrap the
OpenAI API (or any OpenAI-compatible host such as Groq) or a local Ollama
server; callers never import an SDK directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementations: OpenAILLMProvider, OllamaLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        response_schema: dict[str, Any] | None = None,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user message carrying the data to process.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on the number of tokens in the response.
        response_schema:
            Optional ``{"name": ..., "schema": {...}}`` JSON schema.  Providers
            that support structured output constrain the response to it;
            others ignore it and rely on the prompt.

        Returns
        -------
        str
            The model's raw text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or the response is empty.
        src.utils.errors.ProviderUnavailableError
            If the call times out or the host cannot be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm the provider answers."""
