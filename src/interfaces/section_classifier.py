"""Abstract base class for section classifiers.

A classifier decides whether a structural section (cover, copyright page,
table of contents, index, ...) should be kept out of segmentation.  It is
optional: the pipeline runs unfiltered when none is configured.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import RawSection


# Concrete implementation: LLMSectionClassifier (src/providers/classification/)
class ISectionClassifier(ABC):
    """Contract for the reject/accept decision on one section."""

    @abstractmethod
    async def should_reject(self, section: RawSection) -> bool:
        """Return ``True`` if the section is boilerplate or front/back matter.

        Raises
        ------
        src.utils.errors.BookBitesError
            Any provider failure; the caller applies its failure policy.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this classifier."""
