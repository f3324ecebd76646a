"""Abstract base class for the snippet persistence store.

The store holds documents, snippets, themes and snippet embeddings, and
answers the three kinds of read queries the retrieval layer needs: an
id-cursor range scan, a full-text relevance query and a vector similarity
query.  Relations are resolved by id inside the store (joins), never via
in-memory back-references.

**Scope filters** shared by the read methods:

* ``document_id`` - restrict to snippets of one document.
* ``theme`` - case-insensitive substring match on any of a snippet's theme
  names (``"grow"`` matches ``"growth"``).
* ``owner_id`` - restrict to documents owned by one user (optional).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import DocumentStatus, SourceDocument
from src.models.feed import DocumentSummary, FeedItem
from src.models.snippet import Snippet, Theme


# Concrete implementation: SQLiteSnippetStore (src/providers/store/)
class ISnippetStore(ABC):
    """Contract for document/snippet/theme persistence and retrieval."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: SourceDocument) -> int:
        """Persist *document* (sentences and status) and return its new id."""

    @abstractmethod
    async def get_document(self, document_id: int) -> SourceDocument | None:
        """Return the document with its full sentence map, or ``None``."""

    @abstractmethod
    async def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        """Return summaries (no sentence payload) ordered by id."""

    @abstractmethod
    async def update_document_status(self, document_id: int, status: DocumentStatus) -> None:
        """Set the document's lifecycle status."""

    @abstractmethod
    async def delete_document(self, document_id: int) -> bool:
        """Delete a document and, by cascade, its snippets and vectors.

        Theme rows are left in place.  Returns ``False`` if no such document.
        """

    # ------------------------------------------------------------------
    # Snippets and themes
    # ------------------------------------------------------------------

    @abstractmethod
    async def upsert_themes(self, names: list[str]) -> dict[str, Theme]:
        """Insert missing theme names and return canonical rows keyed by name.

        Duplicate names are never an error.
        """

    @abstractmethod
    async def insert_snippets(self, document_id: int, snippets: list[Snippet]) -> list[int]:
        """Insert all snippets of one document in a single transaction.

        Theme links are created by name (themes must already exist, see
        :meth:`upsert_themes`).  Embeddings present on a snippet are stored
        alongside it.  Returns the new snippet ids in input order.
        """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_snippets_after(
        self,
        cursor: int,
        limit: int,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> list[FeedItem]:
        """Return up to *limit* items with id strictly greater than *cursor*,
        ordered by id ascending."""

    @abstractmethod
    async def get_max_snippet_id(
        self,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> int | None:
        """Return the largest snippet id in scope, or ``None`` if the scope is empty."""

    @abstractmethod
    async def random_snippets(
        self,
        limit: int,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> list[FeedItem]:
        """Return up to *limit* items sampled at random from the scope."""

    @abstractmethod
    async def get_feed_items(self, snippet_ids: list[int]) -> list[FeedItem]:
        """Return items for the given ids (missing ids are skipped), in id order."""

    @abstractmethod
    async def lexical_search(
        self,
        query: str,
        limit: int,
        document_id: int | None = None,
        owner_id: str | None = None,
    ) -> dict[int, float]:
        """Full-text relevance: ``snippet_id -> score`` (higher is better, > 0)."""

    @abstractmethod
    async def vector_search(
        self,
        vector: list[float],
        limit: int,
        model: str | None = None,
        document_id: int | None = None,
        owner_id: str | None = None,
    ) -> dict[int, float]:
        """Cosine similarity: ``snippet_id -> similarity`` over snippets that
        have a stored vector (of *model*, when given)."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
