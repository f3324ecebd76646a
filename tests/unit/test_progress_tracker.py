"""Unit tests for ProgressTracker."""

from __future__ import annotations

import asyncio
import random

import pytest

from src.models.document import DocumentStatus
from src.models.pipeline import JobPhase, JobStatus
from src.pipeline.progress_tracker import ProgressTracker
from src.utils.errors import PipelineError


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_creates_job_at_zero(self, tracker: ProgressTracker) -> None:
        status = await tracker.start("j1")

        assert status.progress == 0
        assert status.status is DocumentStatus.PROCESSING
        assert status.phase is JobPhase.QUEUED
        assert tracker.get_status("j1") == status

    @pytest.mark.asyncio
    async def test_duplicate_start_raises(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        with pytest.raises(PipelineError):
            await tracker.start("j1")

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self, tracker: ProgressTracker) -> None:
        with pytest.raises(PipelineError):
            await tracker.advance("missing", 10)

    def test_unknown_status_is_none(self, tracker: ProgressTracker) -> None:
        assert tracker.get_status("nope") is None

    @pytest.mark.asyncio
    async def test_complete_sets_exactly_one_hundred(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        await tracker.advance("j1", 50)

        status = await tracker.complete("j1", document_id=3)

        assert status.progress == 100
        assert status.status is DocumentStatus.COMPLETED
        assert status.phase is JobPhase.DONE
        assert status.document_id == 3

    @pytest.mark.asyncio
    async def test_fail_keeps_last_progress(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        await tracker.advance("j1", 42)

        status = await tracker.fail("j1", "boom")

        assert status.status is DocumentStatus.FAILED
        assert status.progress == 42
        assert status.message == "boom"

    @pytest.mark.asyncio
    async def test_updates_after_terminal_state_are_ignored(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        await tracker.fail("j1", "boom")

        await tracker.advance("j1", 80)
        await tracker.complete("j1")

        status = tracker.get_status("j1")
        assert status is not None
        assert status.status is DocumentStatus.FAILED
        assert status.progress == 0

    @pytest.mark.asyncio
    async def test_complete_does_not_revive_failed_job(self, tracker: ProgressTracker) -> None:
        observed: list[float] = []
        await tracker.start("j1")
        await tracker.advance("j1", 40)
        await tracker.fail("j1", "store offline")
        tracker.register_listener("j1", lambda s: observed.append(s.progress))

        status = await tracker.complete("j1", document_id=3)

        assert status.status is DocumentStatus.FAILED
        assert status.progress == 40
        assert status.document_id is None
        assert observed == []

    @pytest.mark.asyncio
    async def test_remove_forgets_job(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        await tracker.remove("j1")
        assert tracker.get_status("j1") is None


class TestMonotonicity:
    @pytest.mark.asyncio
    async def test_lower_values_do_not_move_progress_backwards(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        await tracker.advance("j1", 60)
        status = await tracker.advance("j1", 30)

        assert status.progress == 60

    @pytest.mark.asyncio
    async def test_advance_is_capped_below_one_hundred(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        status = await tracker.advance("j1", 150)

        assert status.progress == 99
        assert status.status is DocumentStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_concurrent_out_of_order_updates(self, tracker: ProgressTracker) -> None:
        await tracker.start("j1")
        observed: list[float] = []
        tracker.register_listener("j1", lambda s: observed.append(s.progress))
        values = list(range(1, 91))
        random.Random(7).shuffle(values)

        await asyncio.gather(*(tracker.advance("j1", v) for v in values))

        assert observed == sorted(observed)
        assert observed[-1] == 90


class TestListeners:
    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_receive_status(self, tracker: ProgressTracker) -> None:
        sync_seen: list[JobStatus] = []
        async_seen: list[JobStatus] = []

        async def on_update(status: JobStatus) -> None:
            async_seen.append(status)

        tracker.register_listener("j1", sync_seen.append)
        tracker.register_listener("j1", on_update)
        await tracker.start("j1")
        await tracker.advance("j1", 10, phase=JobPhase.EXTRACTION)

        assert [s.progress for s in sync_seen] == [0, 10]
        assert [s.progress for s in async_seen] == [0, 10]

    @pytest.mark.asyncio
    async def test_one_hundred_is_broadcast_once(self, tracker: ProgressTracker) -> None:
        seen: list[float] = []
        tracker.register_listener("j1", lambda s: seen.append(s.progress))
        await tracker.start("j1")

        await tracker.complete("j1")
        await tracker.complete("j1")

        assert seen.count(100) == 1

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_updates(self, tracker: ProgressTracker) -> None:
        def broken(_status: JobStatus) -> None:
            raise RuntimeError("listener bug")

        tracker.register_listener("j1", broken)
        await tracker.start("j1")
        status = await tracker.advance("j1", 20)

        assert status.progress == 20

    @pytest.mark.asyncio
    async def test_jobs_are_isolated(self, tracker: ProgressTracker) -> None:
        seen: list[str] = []
        tracker.register_listener("a", lambda s: seen.append(s.job_id))
        await tracker.start("a")
        await tracker.start("b")
        await tracker.advance("b", 50)

        assert seen == ["a"]
        status_a = tracker.get_status("a")
        assert status_a is not None
        assert status_a.progress == 0

    @pytest.mark.asyncio
    async def test_unregister(self, tracker: ProgressTracker) -> None:
        seen: list[float] = []
        callback = lambda s: seen.append(s.progress)  # noqa: E731
        tracker.register_listener("j1", callback)
        await tracker.start("j1")
        tracker.unregister_listener("j1", callback)
        await tracker.advance("j1", 5)

        assert seen == [0]
