"""Best-effort, bounded-concurrency embedding of reconciled snippets.

One ``embed_single`` call per snippet over its ``snippet_text``.  A failed
call leaves that snippet without a vector (``snippet_embedding_failed``)
and the batch continues; such snippets are only missing from semantic
ranking.

Progress continues from where extraction stopped:
``EXTRACTION_PROGRESS_SHARE + EMBEDDING_PROGRESS_SHARE * done / total``.
With no snippets the phase does nothing.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.pipeline import EMBEDDING_PROGRESS_SHARE, EXTRACTION_PROGRESS_SHARE, JobPhase
from src.models.snippet import EmbeddingVector, Snippet
from src.utils.concurrency import TaskOutcome, run_bounded
from src.utils.logging import get_logger

if TYPE_CHECKING:
    from src.pipeline.progress_tracker import ProgressTracker

logger = get_logger(__name__)

DEFAULT_EMBEDDING_CONCURRENCY = 15


@dataclass
class EmbeddingReport:
    snippets: list[Snippet] = field(default_factory=list)
    embedded: int = 0
    failed: int = 0


class EmbeddingGenerator:
    """Attaches an :class:`EmbeddingVector` to every snippet it can."""

    def __init__(
        self,
        provider: IEmbeddingProvider,
        max_concurrency: int = DEFAULT_EMBEDDING_CONCURRENCY,
        progress_tracker: ProgressTracker | None = None,
        progress_offset: float = EXTRACTION_PROGRESS_SHARE,
        progress_share: float = EMBEDDING_PROGRESS_SHARE,
    ) -> None:
        self._provider = provider
        self._max_concurrency = max_concurrency
        self._tracker = progress_tracker
        self._progress_offset = progress_offset
        self._progress_share = progress_share

    async def run(self, snippets: list[Snippet], job_id: str | None = None) -> EmbeddingReport:
        """Return *snippets* in input order, each with a vector where embedding succeeded."""
        if not snippets:
            logger.info("embedding_skipped", job_id=job_id, reason="no snippets")
            return EmbeddingReport()

        total = len(snippets)
        model = self._provider.get_model_name()
        lock = asyncio.Lock()
        completed = 0

        async def embed_snippet(snippet: Snippet) -> EmbeddingVector:
            vector = await self._provider.embed_single(snippet.snippet_text)
            return EmbeddingVector(vector=vector, model=model)

        async def on_complete(outcome: TaskOutcome[Snippet, EmbeddingVector]) -> None:
            nonlocal completed
            async with lock:
                completed += 1
                progress = self._progress_offset + self._progress_share * completed / total
            if self._tracker is not None and job_id is not None:
                await self._tracker.advance(
                    job_id,
                    progress,
                    phase=JobPhase.EMBEDDING,
                    message=f"Embedded {completed}/{total} snippets",
                )

        logger.info(
            "embedding_started",
            job_id=job_id,
            snippets=total,
            model=model,
            max_concurrency=self._max_concurrency,
        )
        outcomes = await run_bounded(
            snippets,
            embed_snippet,
            self._max_concurrency,
            on_complete=on_complete,
            logger=logger.bind(job_id=job_id),
            error_event="snippet_embedding_failed",
        )

        report = EmbeddingReport()
        for outcome in outcomes:
            if outcome.ok and outcome.result is not None:
                report.snippets.append(outcome.item.with_embedding(outcome.result))
                report.embedded += 1
            else:
                report.snippets.append(outcome.item)
                report.failed += 1

        logger.info(
            "embedding_completed",
            job_id=job_id,
            snippets=total,
            embedded=report.embedded,
            failed=report.failed,
        )
        return report
