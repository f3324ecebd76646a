"""Job-keyed ingestion progress with callback-based listener notification.

Tracks the lifecycle status, phase and progress percentage of each
ingestion job and broadcasts every change to listeners registered for that
job.  One tracker is shared by all jobs in the process; jobs never see each
other's state.

# ─── HOW PROGRESS TRACKING WORKS ──────────────────────────────────────
#
#   Pipeline ──start()/advance()/complete()/fail()──→ ProgressTracker
#                                                         │
#                                        listener(JobStatus) per job
#
#   - A job exists only between start() and remove().  advance() on an
#     unknown job is an error rather than an implicit create.
#   - Progress is monotonic: advance() keeps the max of the stored and the
#     reported value, so worker completions arriving out of order can
#     never move the bar backwards.
#   - advance() is capped at 99; only complete() writes 100, and only
#     once per job.
#   - Every mutation happens under one asyncio.Lock, so concurrent
#     completions from the worker pool cannot lose updates.  Listeners
#     run under the same lock and must not call back into the tracker.
#   - Terminal jobs (completed/failed) are kept for status polling until
#     remove() is called.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from src.models.document import DocumentStatus
from src.models.pipeline import JobPhase, JobStatus
from src.utils.errors import PipelineError
from src.utils.logging import get_logger

# Highest value advance() may record; 100 is reserved for complete().
MAX_IN_FLIGHT_PROGRESS = 99.0


class ProgressTracker:
    """Tracks and broadcasts ingestion job progress via callbacks."""

    def __init__(self) -> None:
        self._statuses: dict[str, JobStatus] = {}
        # Per-job list of listener callbacks (Observer pattern)
        self._listeners: dict[str, list[Callable]] = {}
        self._lock = asyncio.Lock()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, job_id: str, message: str = "Queued") -> JobStatus:
        """Create the job's entry at 0%.

        Raises
        ------
        PipelineError
            If a job with this id is already tracked.
        """
        async with self._lock:
            if job_id in self._statuses:
                raise PipelineError(message=f"Job {job_id} is already tracked")
            status = JobStatus(job_id=job_id, message=message)
            self._statuses[job_id] = status
            await self._notify_listeners(status)
        self._logger.debug("job_tracking_started", job_id=job_id)
        return status

    async def advance(
        self,
        job_id: str,
        progress: float,
        phase: JobPhase | None = None,
        message: str | None = None,
        document_id: int | None = None,
    ) -> JobStatus:
        """Record progress for a running job.

        The stored value becomes ``max(current, min(progress, 99))``.
        Updates for jobs already completed or failed are ignored.
        """
        async with self._lock:
            current = self._require(job_id)
            if current.status is not DocumentStatus.PROCESSING:
                return current

            capped = max(0.0, min(float(progress), MAX_IN_FLIGHT_PROGRESS))
            status = current.model_copy(
                update={
                    "progress": max(current.progress, capped),
                    "phase": phase or current.phase,
                    "message": current.message if message is None else message,
                    "document_id": current.document_id if document_id is None else document_id,
                    "updated_at": _utc_now(),
                }
            )
            self._statuses[job_id] = status

            self._logger.debug(
                "progress_update",
                job_id=job_id,
                phase=status.phase.value,
                progress=round(status.progress, 1),
            )
            await self._notify_listeners(status)
        return status

    async def complete(
        self,
        job_id: str,
        document_id: int | None = None,
        message: str = "Completed",
    ) -> JobStatus:
        """Mark a processing job completed at exactly 100%.

        Idempotent; a job that already failed stays failed.
        """
        async with self._lock:
            current = self._require(job_id)
            if current.status is not DocumentStatus.PROCESSING:
                return current
            status = current.model_copy(
                update={
                    "status": DocumentStatus.COMPLETED,
                    "phase": JobPhase.DONE,
                    "progress": 100.0,
                    "message": message,
                    "document_id": current.document_id if document_id is None else document_id,
                    "updated_at": _utc_now(),
                }
            )
            self._statuses[job_id] = status
            await self._notify_listeners(status)
        self._logger.info("job_progress_completed", job_id=job_id)
        return status

    async def fail(self, job_id: str, message: str) -> JobStatus:
        """Mark the job failed, keeping its last progress value."""
        async with self._lock:
            current = self._require(job_id)
            if current.status is not DocumentStatus.PROCESSING:
                return current
            status = current.model_copy(
                update={
                    "status": DocumentStatus.FAILED,
                    "message": message,
                    "updated_at": _utc_now(),
                }
            )
            self._statuses[job_id] = status
            await self._notify_listeners(status)
        self._logger.info("job_progress_failed", job_id=job_id, message=message)
        return status

    async def remove(self, job_id: str) -> None:
        """Forget the job and its listeners."""
        async with self._lock:
            self._statuses.pop(job_id, None)
            self._listeners.pop(job_id, None)

    # ------------------------------------------------------------------
    # Queries and listeners
    # ------------------------------------------------------------------

    def get_status(self, job_id: str) -> JobStatus | None:
        """Return the job's latest snapshot, or ``None`` if not tracked."""
        return self._statuses.get(job_id)

    def register_listener(self, job_id: str, callback: Callable) -> None:
        """Register a sync or async ``callback(status: JobStatus)`` for a job."""
        listeners = self._listeners.setdefault(job_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                job_id=job_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, job_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(job_id, [])
        if callback in listeners:
            listeners.remove(callback)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require(self, job_id: str) -> JobStatus:
        status = self._statuses.get(job_id)
        if status is None:
            raise PipelineError(message=f"Job {job_id} is not tracked")
        return status

    async def _notify_listeners(self, status: JobStatus) -> None:
        """Invoke all listeners for the job; a failing listener is logged and skipped."""
        for callback in list(self._listeners.get(status.job_id, [])):
            try:
                result = callback(status)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    job_id=status.job_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017
