"""bookbites domain models - re-exports all public model classes.

Submodules by concern:
    - document.py - raw sections, sentence units, the segmented SourceDocument
    - snippet.py  - chunks, extraction results, snippets, embeddings, themes
    - feed.py     - read-side feed items, pages, search hits, sentence windows
    - pipeline.py - ingestion job phases, status snapshots and results
"""

from __future__ import annotations

from src.models.document import (
    DocumentStatus,
    RawSection,
    SentenceUnit,
    SourceBook,
    SourceDocument,
)
from src.models.feed import (
    DocumentSummary,
    FeedItem,
    FeedPage,
    SearchHit,
    SentenceWindow,
)
from src.models.pipeline import (
    IngestionResult,
    JobPhase,
    JobStatus,
)
from src.models.snippet import (
    Chunk,
    EmbeddingVector,
    ExtractionPayload,
    ExtractionResult,
    Snippet,
    Theme,
)

__all__ = [
    "Chunk",
    "DocumentStatus",
    "DocumentSummary",
    "EmbeddingVector",
    "ExtractionPayload",
    "ExtractionResult",
    "FeedItem",
    "FeedPage",
    "IngestionResult",
    "JobPhase",
    "JobStatus",
    "RawSection",
    "SearchHit",
    "SentenceUnit",
    "SentenceWindow",
    "Snippet",
    "SourceBook",
    "SourceDocument",
    "Theme",
]
