"""Source document models for the bookbites pipeline.

Defines Pydantic v2 models for the raw structural sections yielded by a
document source, the sentence units produced by segmentation, and the
assembled :class:`SourceDocument` that the extraction phase reads from.

Flow:
    1. A document source (EPUB) yields ordered RawSections  -> SourceBook
    2. SentenceSegmenter turns each section into SentenceUnits
    3. The units are collected into one global index -> SourceDocument

``SourceDocument.sentences`` is the ground truth that every snippet's
``sentence_text`` is rebuilt from.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(str, Enum):  # noqa: UP042
    """Lifecycle of a persisted document (also used as job status)."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RawSection(BaseModel):
    """One structural section (spine item) as delivered by a document source."""

    model_config = ConfigDict(frozen=True)

    section_id: str
    # Marked-up (X)HTML as found in the container.
    raw_markup: str
    # Spine position, zero-based.
    position: int = Field(default=0, ge=0)


class SourceBook(BaseModel):
    """A document source's output: metadata plus ordered raw sections."""

    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    sections: list[RawSection] = Field(default_factory=list)


class SentenceUnit(BaseModel):
    """One normalized, globally indexed block of source text."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    text: str


class SourceDocument(BaseModel):
    """A segmented document: metadata plus the global ``index -> text`` map.

    Indices are unique and strictly increasing in order of appearance.  They
    are not guaranteed to be contiguous, so range lookups go through
    :meth:`indices_between` rather than ``range(start, end + 1)``.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    title: str
    author: str
    sentences: dict[int, str] = Field(default_factory=dict)
    status: DocumentStatus = DocumentStatus.PROCESSING
    owner_id: str | None = None

    @classmethod
    def from_units(
        cls,
        title: str,
        author: str,
        units: list[SentenceUnit],
        owner_id: str | None = None,
    ) -> SourceDocument:
        return cls(
            title=title,
            author=author,
            sentences={u.index: u.text for u in units},
            owner_id=owner_id,
        )

    @property
    def sorted_indices(self) -> list[int]:
        return sorted(self.sentences)

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    def indices_between(self, start: int, end: int) -> list[int]:
        """Return the document's indices ``i`` with ``start <= i <= end``, ascending."""
        return [i for i in self.sorted_indices if start <= i <= end]

    def text_for_range(self, start: int, end: int) -> str:
        """Space-join the sentences in ``[start, end]`` in index order."""
        return " ".join(self.sentences[i] for i in self.indices_between(start, end))
