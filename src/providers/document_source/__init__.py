"""Document source implementations (container formats)."""

from src.providers.document_source.epub_source import EPUBDocumentSource

__all__ = ["EPUBDocumentSource"]
