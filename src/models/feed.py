"""Read-side models: feed items, feed pages, search hits and sentence windows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import DocumentStatus

# Number of leading words of ``sentence_text`` that clients use to locate a
# snippet inside the reader.
TEXT_TO_SEARCH_WORDS = 8


class FeedItem(BaseModel):
    """One snippet joined with its document's title/author and theme names."""

    model_config = ConfigDict(frozen=True)

    snippet_id: int
    document_id: int
    document_title: str = ""
    document_author: str = ""
    snippet_text: str
    context: str = ""
    start_index: int
    end_index: int
    sentence_text: str
    themes: list[str] = Field(default_factory=list)

    @property
    def text_to_search(self) -> str:
        return " ".join(self.sentence_text.split()[:TEXT_TO_SEARCH_WORDS])


class FeedPage(BaseModel):
    """A cursor-paginated page of feed items."""

    model_config = ConfigDict(frozen=True)

    items: list[FeedItem] = Field(default_factory=list)
    next_cursor: int | None = None
    has_more: bool = False


class SearchHit(BaseModel):
    """A search result with the two input signals and the fused score."""

    model_config = ConfigDict(frozen=True)

    item: FeedItem
    fused_score: float
    semantic_score: float = 0.0
    lexical_score: float = 0.0


class SentenceWindow(BaseModel):
    """A sentence range plus its immediate neighbours, for the reader view."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    document_title: str = ""
    document_author: str = ""
    start_index: int
    end_index: int
    full_text: str
    previous_text: str = ""
    next_text: str = ""


class DocumentSummary(BaseModel):
    """A document listing row (no sentence payload)."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    author: str
    status: DocumentStatus
    snippet_count: int = 0
