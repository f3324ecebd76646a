"""Abstract base class for document sources.

A document source opens a container file and yields its metadata plus an
ordered list of raw structural sections.  Parsing of the container format
stays behind this interface; the pipeline only sees
:class:`~src.models.document.SourceBook`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import SourceBook


# Concrete implementation: EPUBDocumentSource (src/providers/document_source/)
class IDocumentSource(ABC):
    """Contract for reading one document into raw sections."""

    @abstractmethod
    def read(self, file_path: str) -> SourceBook:
        """Read *file_path* and return its title, author and sections in order.

        Raises
        ------
        src.utils.errors.DocumentSourceError
            If the file cannot be opened or parsed.
        src.utils.errors.EmptyDocumentError
            If the container holds no sections.
        """

    @abstractmethod
    def supports(self, file_path: str) -> bool:
        """Return ``True`` if this source can read *file_path*."""
