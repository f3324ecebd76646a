"""Read and delete operations on persisted documents."""

from __future__ import annotations

from bisect import bisect_left, bisect_right

from src.interfaces.snippet_store import ISnippetStore
from src.models.feed import DocumentSummary, SentenceWindow
from src.utils.errors import DocumentNotFoundError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class DocumentService:
    def __init__(self, store: ISnippetStore) -> None:
        self._store = store

    async def get_sentence_window(self, document_id: int, start: int, end: int) -> SentenceWindow:
        """Return the text of ``[start, end]`` plus the sentence on each side.

        Bounds are swapped if given in reverse.  ``previous_text`` and
        ``next_text`` are empty at the document edges.

        Raises
        ------
        DocumentNotFoundError
            If *document_id* does not exist.
        """
        if start > end:
            start, end = end, start

        document = await self._store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(message=f"Document {document_id} not found")

        indices = document.sorted_indices
        before = bisect_left(indices, start) - 1
        after = bisect_right(indices, end)

        return SentenceWindow(
            document_id=document_id,
            document_title=document.title,
            document_author=document.author,
            start_index=start,
            end_index=end,
            full_text=document.text_for_range(start, end),
            previous_text=document.sentences[indices[before]] if before >= 0 else "",
            next_text=document.sentences[indices[after]] if after < len(indices) else "",
        )

    async def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        return await self._store.list_documents(owner_id=owner_id)

    async def delete_document(self, document_id: int) -> None:
        """Delete a document with its snippets and vectors; themes are kept."""
        if not await self._store.delete_document(document_id):
            raise DocumentNotFoundError(message=f"Document {document_id} not found")
        logger.info("document_removed", document_id=document_id)
