"""Ingestion job models.

A job is one run of the ingestion pipeline over one document.  Its status
is what the progress query exposes: the lifecycle status shared with the
persisted document, the current phase, and a monotonically non-decreasing
progress percentage.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import DocumentStatus


class JobPhase(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Phases of one ingestion job, in execution order.

        QUEUED -> SEGMENTATION -> EXTRACTION -> EMBEDDING -> PERSISTENCE -> DONE
    """

    QUEUED = "QUEUED"
    SEGMENTATION = "SEGMENTATION"
    EXTRACTION = "EXTRACTION"
    EMBEDDING = "EMBEDDING"
    PERSISTENCE = "PERSISTENCE"
    DONE = "DONE"


# Progress budget split across phases.  Extraction fills [0, 90], embedding
# fills (90, 99], and only a durable snippet write takes the job to 100.
EXTRACTION_PROGRESS_SHARE = 90.0
EMBEDDING_PROGRESS_SHARE = 9.0
PERSISTENCE_PROGRESS_SHARE = 100.0 - EXTRACTION_PROGRESS_SHARE - EMBEDDING_PROGRESS_SHARE


class JobStatus(BaseModel):
    """Externally visible snapshot of one job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: DocumentStatus = DocumentStatus.PROCESSING
    phase: JobPhase = JobPhase.QUEUED
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    message: str = ""
    document_id: int | None = None
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class IngestionResult(BaseModel):
    """Summary of one completed ingestion run."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    document_id: int
    title: str
    sections_total: int = Field(default=0, ge=0)
    sections_rejected: int = Field(default=0, ge=0)
    sentence_count: int = Field(default=0, ge=0)
    chunk_count: int = Field(default=0, ge=0)
    failed_chunks: int = Field(default=0, ge=0)
    snippet_count: int = Field(default=0, ge=0)
    embedded_count: int = Field(default=0, ge=0)
    theme_count: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0)
