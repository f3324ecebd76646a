"""Bounded-concurrency dispatch of chunks to the extraction provider.

One extraction call per chunk, at most ``max_concurrency`` in flight.
Each chunk's results are appended to a shared list under a lock as soon
as the call returns, in whatever order calls finish.  A failing chunk
(timeout, provider down, malformed output) is logged as
``extraction_chunk_failed`` and counts as zero results; its siblings keep
running.

After every chunk, success or failure, job progress advances to
``round(completed / total * EXTRACTION_PROGRESS_SHARE)``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.interfaces.extraction_provider import IExtractionProvider
from src.models.pipeline import EXTRACTION_PROGRESS_SHARE, JobPhase
from src.models.snippet import Chunk, ExtractionResult
from src.utils.concurrency import TaskOutcome, run_bounded
from src.utils.logging import get_logger

if TYPE_CHECKING:
    from src.pipeline.progress_tracker import ProgressTracker

logger = get_logger(__name__)

DEFAULT_EXTRACTION_CONCURRENCY = 15


@dataclass
class ExtractionReport:
    results: list[ExtractionResult] = field(default_factory=list)
    chunks_total: int = 0
    chunks_failed: int = 0


class ExtractionOrchestrator:
    """Runs the extraction phase for one document."""

    def __init__(
        self,
        provider: IExtractionProvider,
        max_concurrency: int = DEFAULT_EXTRACTION_CONCURRENCY,
        progress_tracker: ProgressTracker | None = None,
        progress_share: float = EXTRACTION_PROGRESS_SHARE,
    ) -> None:
        self._provider = provider
        self._max_concurrency = max_concurrency
        self._tracker = progress_tracker
        self._progress_share = progress_share

    async def run(self, chunks: list[Chunk], job_id: str | None = None) -> ExtractionReport:
        """Extract from every chunk and return the aggregated results.

        Results are returned sorted by chunk position so that persisted
        snippet ids follow reading order; aggregation itself is
        order-independent.
        """
        total = len(chunks)
        collected: list[ExtractionResult] = []
        lock = asyncio.Lock()
        completed = 0

        async def extract_chunk(chunk: Chunk) -> int:
            results = await self._provider.extract(chunk.text)
            tagged = [r.model_copy(update={"chunk_position": chunk.position}) for r in results]
            async with lock:
                collected.extend(tagged)
            logger.debug(
                "extraction_chunk_done",
                job_id=job_id,
                chunk_index=chunk.position,
                results=len(tagged),
            )
            return len(tagged)

        async def on_complete(outcome: TaskOutcome[Chunk, int]) -> None:
            nonlocal completed
            async with lock:
                completed += 1
                progress = round(completed / total * self._progress_share)
            if self._tracker is not None and job_id is not None:
                await self._tracker.advance(
                    job_id,
                    progress,
                    phase=JobPhase.EXTRACTION,
                    message=f"Extracted {completed}/{total} chunks",
                )

        logger.info(
            "extraction_started",
            job_id=job_id,
            chunks=total,
            provider=self._provider.get_provider_name(),
            max_concurrency=self._max_concurrency,
        )
        outcomes = await run_bounded(
            chunks,
            extract_chunk,
            self._max_concurrency,
            on_complete=on_complete,
            logger=logger.bind(job_id=job_id),
            error_event="extraction_chunk_failed",
        )

        report = ExtractionReport(
            results=sorted(collected, key=lambda r: r.chunk_position or 0),
            chunks_total=total,
            chunks_failed=sum(1 for o in outcomes if not o.ok),
        )
        logger.info(
            "extraction_completed",
            job_id=job_id,
            chunks=total,
            failed_chunks=report.chunks_failed,
            results=len(report.results),
        )
        return report
