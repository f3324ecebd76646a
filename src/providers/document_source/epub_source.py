"""EPUB document source.

Reads an EPUB container with ebooklib and returns the book's Dublin Core
title/author plus one :class:`RawSection` per XHTML document in spine
(reading) order.  The markup is passed through untouched; segmentation
happens later in :class:`~src.services.segmenter.SentenceSegmenter`.
"""

from __future__ import annotations

from pathlib import Path

import ebooklib
import structlog
from ebooklib import epub

from src.interfaces.document_source import IDocumentSource
from src.models.document import RawSection, SourceBook
from src.utils.errors import DocumentSourceError, EmptyDocumentError

logger = structlog.get_logger(logger_name=__name__)

_UNKNOWN_AUTHOR = "Unknown"


class EPUBDocumentSource(IDocumentSource):
    """Reads ``.epub`` files into a :class:`SourceBook`."""

    def read(self, file_path: str) -> SourceBook:
        try:
            book = epub.read_epub(file_path, options={"ignore_ncx": True})
        except Exception as exc:
            # ebooklib raises a mix of EpubException, KeyError, zipfile and
            # lxml errors for damaged containers.
            logger.error("epub_open_failed", file_path=file_path, error=str(exc))
            raise DocumentSourceError(
                message=f"Could not read EPUB {file_path}: {exc}",
                provider_name="epub",
            ) from exc

        title = self._first_metadata(book, "title") or Path(file_path).stem
        author = self._first_metadata(book, "creator") or _UNKNOWN_AUTHOR

        sections: list[RawSection] = []
        for item in self._spine_documents(book):
            markup = item.get_content().decode("utf-8", errors="replace")
            sections.append(
                RawSection(
                    section_id=item.get_id() or item.get_name(),
                    raw_markup=markup,
                    position=len(sections),
                )
            )

        if not sections:
            raise EmptyDocumentError(
                message=f"EPUB {file_path} has no readable sections",
                provider_name="epub",
            )

        logger.info(
            "epub_read",
            file_path=file_path,
            title=title,
            author=author,
            sections=len(sections),
        )
        return SourceBook(title=title, author=author, sections=sections)

    def supports(self, file_path: str) -> bool:
        return Path(file_path).suffix.lower() == ".epub"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _first_metadata(book: epub.EpubBook, name: str) -> str:
        entries = book.get_metadata("DC", name)
        if not entries:
            return ""
        value = entries[0][0]
        return " ".join(str(value).split()) if value else ""

    @staticmethod
    def _spine_documents(book: epub.EpubBook) -> list[epub.EpubItem]:
        """Return the XHTML items in spine order.

        Falls back to manifest order when the spine references nothing
        usable (some converters emit an empty spine).
        """
        items: list[epub.EpubItem] = []
        for entry in book.spine:
            idref = entry[0] if isinstance(entry, tuple) else entry
            item = book.get_item_with_id(idref)
            if item is not None and item.get_type() == ebooklib.ITEM_DOCUMENT:
                items.append(item)
        if items:
            return items
        return list(book.get_items_of_type(ebooklib.ITEM_DOCUMENT))
