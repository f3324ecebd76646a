"""Shared pytest fixtures and fake providers for the bookbites test suite.

The fakes implement the provider interfaces without any network access so
the pipeline and services can be driven deterministically.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest
import pytest_asyncio

from src.interfaces.document_source import IDocumentSource
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.extraction_provider import IExtractionProvider
from src.interfaces.section_classifier import ISectionClassifier
from src.models.document import RawSection, SourceBook, SourceDocument
from src.models.snippet import ExtractionResult
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.store.sqlite_snippet_store import SQLiteSnippetStore
from src.utils.errors import EmbeddingError, ProviderUnavailableError

# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeExtractionProvider(IExtractionProvider):
    """Extraction provider driven by a ``chunk_text -> results`` callable.

    ``fail_when`` marks chunks (by a substring of their text) whose call
    raises :class:`ProviderUnavailableError`.  ``delay`` lets tests make
    calls overlap.
    """

    def __init__(
        self,
        respond: Callable[[str], list[ExtractionResult]] | None = None,
        fail_when: tuple[str, ...] = (),
        delay: float = 0.0,
    ) -> None:
        self._respond = respond or (lambda _text: [])
        self._fail_when = fail_when
        self._delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def extract(self, chunk_text: str) -> list[ExtractionResult]:
        self.calls.append(chunk_text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            if any(marker in chunk_text for marker in self._fail_when):
                raise ProviderUnavailableError(message="extraction timed out", provider_name="fake")
            return self._respond(chunk_text)
        finally:
            self.in_flight -= 1

    def get_provider_name(self) -> str:
        return "fake_extraction"


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic 4-dim vectors from simple text statistics."""

    def __init__(self, fail_texts: tuple[str, ...] = (), model: str = "fake-embed") -> None:
        self._fail_texts = fail_texts
        self._model = model
        self.calls: list[str] = []

    @staticmethod
    def vector_for(text: str) -> list[float]:
        lowered = text.lower()
        return [
            float(lowered.count("a") + 1),
            float(lowered.count("e") + 1),
            float(lowered.count("o") + 1),
            float(len(lowered.split())),
        ]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(marker in text for marker in self._fail_texts):
            raise EmbeddingError(message="embedding failed", provider_name="fake")
        return self.vector_for(text)

    def get_dimension(self) -> int:
        return 4

    def get_model_name(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


class FakeSectionClassifier(ISectionClassifier):
    def __init__(self, reject_ids: tuple[str, ...] = (), fail_ids: tuple[str, ...] = ()) -> None:
        self._reject_ids = reject_ids
        self._fail_ids = fail_ids

    async def should_reject(self, section: RawSection) -> bool:
        if section.section_id in self._fail_ids:
            raise ProviderUnavailableError(message="classifier down", provider_name="fake")
        return section.section_id in self._reject_ids

    def get_provider_name(self) -> str:
        return "fake_classifier"


class FakeDocumentSource(IDocumentSource):
    def __init__(self, book: SourceBook) -> None:
        self._book = book

    def read(self, file_path: str) -> SourceBook:
        return self._book

    def supports(self, file_path: str) -> bool:
        return True


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_result(
    tagged_span: str,
    snippet_text: str = "A snippet worth keeping.",
    themes: list[str] | None = None,
    context: str = "From the opening chapter.",
) -> ExtractionResult:
    return ExtractionResult(
        snippet_text=snippet_text,
        context=context,
        themes=themes if themes is not None else ["focus"],
        tagged_span=tagged_span,
    )


def paragraph(words: int, seed: str = "word") -> str:
    return " ".join(f"{seed}{i}" for i in range(words))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sample_document() -> SourceDocument:
    """A persisted-looking document with ten sentences indexed 1..10."""
    return SourceDocument(
        id=7,
        title="Meditations",
        author="Marcus Aurelius",
        sentences={i: f"Sentence number {i} of the book." for i in range(1, 11)},
    )


@pytest.fixture
def sample_book() -> SourceBook:
    """A three-section book: a copyright page and two chapters."""
    return SourceBook(
        title="Meditations",
        author="Marcus Aurelius",
        sections=[
            RawSection(
                section_id="copyright",
                raw_markup="<html><body><p>Copyright 2024 by the publisher, all rights reserved.</p></body></html>",
                position=0,
            ),
            RawSection(
                section_id="chapter1",
                raw_markup=(
                    "<html><body><h1>Book One</h1>"
                    "<p>From my grandfather Verus I learned good morals and the government of my temper.</p>"
                    "<p>From the reputation and remembrance of my father, modesty and a manly character.</p>"
                    "</body></html>"
                ),
                position=1,
            ),
            RawSection(
                section_id="chapter2",
                raw_markup=(
                    "<html><body>"
                    "<p>Begin the morning by saying to thyself, I shall meet with the busy-body.</p>"
                    "<p>Whatever this is that I am, it is a little flesh and breath, and the ruling part.</p>"
                    "</body></html>"
                ),
                position=2,
            ),
        ],
    )


@pytest.fixture
def tracker() -> ProgressTracker:
    return ProgressTracker()


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteSnippetStore:
    """A freshly initialized SQLite store in a temp directory."""
    s = SQLiteSnippetStore(db_path=tmp_path / "bookbites.db")
    await s.initialize()
    return s
