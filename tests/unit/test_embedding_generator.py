"""Unit tests for EmbeddingGenerator."""

from __future__ import annotations

import pytest
from conftest import FakeEmbeddingProvider

from src.models.pipeline import JobPhase
from src.models.snippet import Snippet
from src.pipeline.progress_tracker import ProgressTracker
from src.services.embedding_generator import EmbeddingGenerator


def _snippet(i: int, text: str) -> Snippet:
    return Snippet(start_index=i, end_index=i, snippet_text=text, sentence_text=f"source {i}")


class TestEmbeddingGenerator:
    @pytest.mark.asyncio
    async def test_every_snippet_gets_a_vector(self) -> None:
        provider = FakeEmbeddingProvider()
        snippets = [_snippet(1, "alpha"), _snippet(2, "beta gamma")]

        report = await EmbeddingGenerator(provider, max_concurrency=2).run(snippets)

        assert report.embedded == 2
        assert report.failed == 0
        first = report.snippets[0].embedding
        assert first is not None
        assert first.vector == FakeEmbeddingProvider.vector_for("alpha")
        assert first.model == "fake-embed"

    @pytest.mark.asyncio
    async def test_embeds_snippet_text_not_source_text(self) -> None:
        provider = FakeEmbeddingProvider()

        await EmbeddingGenerator(provider).run([_snippet(1, "the snippet prose")])

        assert provider.calls == ["the snippet prose"]

    @pytest.mark.asyncio
    async def test_failed_embedding_keeps_snippet_without_vector(self) -> None:
        provider = FakeEmbeddingProvider(fail_texts=("broken",))
        snippets = [_snippet(1, "fine"), _snippet(2, "broken one"), _snippet(3, "also fine")]

        report = await EmbeddingGenerator(provider).run(snippets)

        assert [s.start_index for s in report.snippets] == [1, 2, 3]
        assert report.snippets[1].embedding is None
        assert report.snippets[0].embedding is not None
        assert report.embedded == 2
        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_empty_input_is_a_no_op(self, tracker: ProgressTracker) -> None:
        await tracker.start("job-e")
        provider = FakeEmbeddingProvider()

        report = await EmbeddingGenerator(provider, progress_tracker=tracker).run([], job_id="job-e")

        assert report.snippets == []
        assert provider.calls == []
        status = tracker.get_status("job-e")
        assert status is not None
        assert status.progress == 0

    @pytest.mark.asyncio
    async def test_progress_ends_at_ninety_nine(self, tracker: ProgressTracker) -> None:
        await tracker.start("job-p")
        await tracker.advance("job-p", 90)

        await EmbeddingGenerator(FakeEmbeddingProvider(), progress_tracker=tracker).run(
            [_snippet(i, f"text {i}") for i in range(1, 5)], job_id="job-p"
        )

        status = tracker.get_status("job-p")
        assert status is not None
        assert status.progress == pytest.approx(99.0)
        assert status.phase is JobPhase.EMBEDDING
