"""End-to-end ingestion of one document into the snippet store.

Phases, strictly in sequence for one document::

    read source -> filter sections -> segment -> create document (processing)
      -> batch -> extract -> reconcile -> embed -> upsert themes
      -> insert snippets (one transaction) -> document completed -> 100%

Within the extraction and embedding phases calls run concurrently under
their own bounds; the embedding phase starts only once extraction has
returned for every chunk.  Several documents may be ingested at once by
calling :meth:`IngestionPipeline.ingest` concurrently: each call is an
independent job with its own id in the shared :class:`ProgressTracker`.

Failure handling:
    - Unit failures (one chunk, one embedding) degrade to partial results
      inside the phases and never reach this module.
    - Anything that does reach it is document-level: the document (if
      already created) and the job are marked ``failed`` and the error is
      re-raised to the caller.
    - Snippets become visible in one transaction, and the document flips
      to ``completed`` only after it commits, so a crash mid-run leaves a
      ``processing`` document rather than a falsely complete one.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import structlog

from src.interfaces.document_source import IDocumentSource
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.extraction_provider import IExtractionProvider
from src.interfaces.section_classifier import ISectionClassifier
from src.interfaces.snippet_store import ISnippetStore
from src.models.document import DocumentStatus, RawSection, SentenceUnit, SourceDocument
from src.models.pipeline import (
    EMBEDDING_PROGRESS_SHARE,
    EXTRACTION_PROGRESS_SHARE,
    IngestionResult,
    JobPhase,
    JobStatus,
)
from src.pipeline.progress_tracker import ProgressTracker
from src.services.chunk_batcher import DEFAULT_CHUNK_WINDOW, ChunkBatcher
from src.services.embedding_generator import DEFAULT_EMBEDDING_CONCURRENCY, EmbeddingGenerator
from src.services.extraction_orchestrator import (
    DEFAULT_EXTRACTION_CONCURRENCY,
    ExtractionOrchestrator,
)
from src.services.index_reconciler import IndexReconciler
from src.services.section_filter import SectionFilter
from src.services.segmenter import DEFAULT_MIN_SENTENCE_WORDS, SentenceSegmenter
from src.utils.errors import EmptyDocumentError
from src.utils.logging import bind_job_context, clear_job_context, get_logger


class IngestionPipeline:
    """Runs ingestion jobs.  All collaborators are injected."""

    def __init__(
        self,
        document_source: IDocumentSource,
        extraction_provider: IExtractionProvider,
        embedding_provider: IEmbeddingProvider,
        store: ISnippetStore,
        progress_tracker: ProgressTracker | None = None,
        section_classifier: ISectionClassifier | None = None,
        chunk_window_size: int = DEFAULT_CHUNK_WINDOW,
        extraction_max_concurrency: int = DEFAULT_EXTRACTION_CONCURRENCY,
        embedding_max_concurrency: int = DEFAULT_EMBEDDING_CONCURRENCY,
        classifier_max_concurrency: int = 5,
        min_sentence_words: int = DEFAULT_MIN_SENTENCE_WORDS,
    ) -> None:
        self._source = document_source
        self._store = store
        self._tracker = progress_tracker or ProgressTracker()
        self._section_filter = SectionFilter(section_classifier, max_concurrency=classifier_max_concurrency)
        self._segmenter = SentenceSegmenter(min_words=min_sentence_words)
        self._batcher = ChunkBatcher(window_size=chunk_window_size)
        self._orchestrator = ExtractionOrchestrator(
            extraction_provider,
            max_concurrency=extraction_max_concurrency,
            progress_tracker=self._tracker,
        )
        self._embedder = EmbeddingGenerator(
            embedding_provider,
            max_concurrency=embedding_max_concurrency,
            progress_tracker=self._tracker,
        )
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self._tracker

    def get_job_status(self, job_id: str) -> JobStatus | None:
        """Return the job's latest status and progress, or ``None`` if unknown."""
        return self._tracker.get_status(job_id)

    async def ingest(
        self,
        file_path: str,
        owner_id: str | None = None,
        job_id: str | None = None,
    ) -> IngestionResult:
        """Ingest *file_path* and return a summary of the run.

        Raises
        ------
        EmptyDocumentError
            If no sentence survives filtering and segmentation.
        BookBitesError
            Any other document-level failure (source unreadable, store
            failure).  The job and document are marked ``failed`` first.
        """
        job_id = job_id or str(uuid.uuid4())
        started = time.monotonic()
        document_id: int | None = None

        await self._tracker.start(job_id)
        bind_job_context(job_id)
        self._logger.info("ingestion_started", file_path=file_path, owner_id=owner_id)

        try:
            # Segmentation
            await self._tracker.advance(job_id, 0, phase=JobPhase.SEGMENTATION, message="Reading document")
            book = await asyncio.to_thread(self._source.read, file_path)
            filtered = await self._section_filter.filter(book.sections)
            units = self.segment_sections(filtered.accepted)
            if not units:
                raise EmptyDocumentError(
                    message=f"No usable sentences in {file_path} "
                    f"({len(book.sections)} sections, {len(filtered.rejected)} rejected)"
                )

            document = SourceDocument.from_units(book.title, book.author, units, owner_id=owner_id)
            document_id = await self._store.create_document(document)
            document = document.model_copy(update={"id": document_id})
            bind_job_context(job_id, document_id=document_id)

            # Extraction
            chunks = self._batcher.batch(document.sentences)
            await self._tracker.advance(
                job_id,
                0,
                phase=JobPhase.EXTRACTION,
                message=f"Extracting from {len(chunks)} chunks",
                document_id=document_id,
            )
            extraction = await self._orchestrator.run(chunks, job_id=job_id)
            reconciled = IndexReconciler(document).reconcile_all(extraction.results)

            # Embedding
            await self._tracker.advance(job_id, EXTRACTION_PROGRESS_SHARE, phase=JobPhase.EMBEDDING)
            embedding = await self._embedder.run(reconciled.snippets, job_id=job_id)
            snippets = embedding.snippets

            # Persistence
            await self._tracker.advance(
                job_id,
                EXTRACTION_PROGRESS_SHARE + EMBEDDING_PROGRESS_SHARE,
                phase=JobPhase.PERSISTENCE,
                message=f"Saving {len(snippets)} snippets",
            )
            themes = await self._store.upsert_themes([t for s in snippets for t in s.themes])
            await self._store.insert_snippets(document_id, snippets)
            await self._store.update_document_status(document_id, DocumentStatus.COMPLETED)
            await self._tracker.complete(job_id, document_id=document_id)

        except Exception as exc:
            self._logger.error(
                "ingestion_failed",
                file_path=file_path,
                document_id=document_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await self._mark_failed(job_id, document_id, str(exc))
            raise
        finally:
            clear_job_context()

        result = IngestionResult(
            job_id=job_id,
            document_id=document_id,
            title=document.title,
            sections_total=len(book.sections),
            sections_rejected=len(filtered.rejected),
            sentence_count=document.sentence_count,
            chunk_count=len(chunks),
            failed_chunks=extraction.chunks_failed,
            snippet_count=len(snippets),
            embedded_count=embedding.embedded,
            theme_count=len(themes),
            ingestion_time=round(time.monotonic() - started, 3),
        )
        self._logger.info(
            "ingestion_completed",
            job_id=job_id,
            document_id=document_id,
            title=result.title,
            sentences=result.sentence_count,
            snippets=result.snippet_count,
            failed_chunks=result.failed_chunks,
            elapsed=result.ingestion_time,
        )
        return result

    def segment_sections(self, sections: list[RawSection]) -> list[SentenceUnit]:
        """Segment sections in order under one global index starting at 1."""
        units: list[SentenceUnit] = []
        for section in sections:
            units.extend(self._segmenter.segment(section.raw_markup, start_index=len(units) + 1))
        return units

    async def _mark_failed(self, job_id: str, document_id: int | None, message: str) -> None:
        if document_id is not None:
            try:
                await self._store.update_document_status(document_id, DocumentStatus.FAILED)
            except Exception as exc:
                self._logger.error(
                    "document_status_update_failed",
                    document_id=document_id,
                    error=str(exc),
                )
        await self._tracker.fail(job_id, message)
