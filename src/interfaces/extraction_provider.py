"""Abstract base class for snippet extraction providers.

An extraction provider takes one chunk's index-tagged text and returns
zero or more validated :class:`~src.models.snippet.ExtractionResult`
items.  The orchestrator only ever sees this contract, so tests drive it
with fakes instead of a network-backed model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.snippet import ExtractionResult


# Concrete implementation: LLMExtractionProvider (src/providers/extraction/)
class IExtractionProvider(ABC):
    """Contract for the per-chunk extraction call."""

    @abstractmethod
    async def extract(self, chunk_text: str) -> list[ExtractionResult]:
        """Extract snippet candidates from one chunk.

        Parameters
        ----------
        chunk_text:
            ``<n>sentence</n>`` fragments joined by spaces.

        Returns
        -------
        list[ExtractionResult]
            Schema-validated results; empty when the model found nothing.

        Raises
        ------
        src.utils.errors.MalformedExtractionOutputError
            If the response cannot be parsed or validated.
        src.utils.errors.LLMError
            If the underlying completion call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
