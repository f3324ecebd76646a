"""Bounded worker-pool primitives shared by the extraction and embedding phases.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped in
   a semaphore acquire/release.  Results come back in input order and
   exceptions are returned in place (``return_exceptions=True`` by default).

2. **run_bounded** -- the fan-out / fan-in used by the pipeline phases: one
   worker call per item, at most ``max_concurrency`` in flight, each task's
   exception captured into its own :class:`TaskOutcome` so that a failing
   call never cancels its siblings.  An optional ``on_complete`` hook fires
   once per finished task (success or failure), in completion order, which
   is where the phases advance job progress.

Each phase builds its own semaphore, so extraction and embedding bounds are
tuned independently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")
_R = TypeVar("_R")

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass(frozen=True)
class TaskOutcome(Generic[_T, _R]):
    """Result of one worker call: either ``result`` or ``error`` is set."""

    position: int
    item: _T
    result: _R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def throttled_gather(
    coros: Sequence[Awaitable[_R]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_R | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute.
    semaphore:
        Concurrency gate shared by every wrapped awaitable.
    return_exceptions:
        Mirrors ``asyncio.gather``: when ``True`` exceptions are returned in
        the result list instead of being raised.

    Returns
    -------
    list
        Results in the same order as ``coros``.
    """

    async def _wrapped(coro: Awaitable[_R]) -> _R:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *(_wrapped(c) for c in coros), return_exceptions=return_exceptions
    )


async def run_bounded(
    items: Sequence[_T],
    worker: Callable[[_T], Awaitable[_R]],
    max_concurrency: int,
    on_complete: Callable[[TaskOutcome[_T, _R]], Awaitable[None]] | None = None,
    logger: structlog.BoundLogger | None = None,
    error_event: str = "worker_task_failed",
) -> list[TaskOutcome[_T, _R]]:
    """Apply ``worker`` to every item with bounded parallelism.

    Parameters
    ----------
    items:
        Work items.  Queued items wait until a slot frees.
    worker:
        Async callable invoked once per item.
    max_concurrency:
        Maximum number of in-flight worker calls (values < 1 are treated
        as 1).
    on_complete:
        Optional async hook called after each task finishes, whether it
        succeeded or failed.  Hook errors are logged and swallowed so that
        bookkeeping cannot break the batch.
    logger:
        Structured logger for per-task failure warnings.
    error_event:
        Event name used when logging a failed task.

    Returns
    -------
    list[TaskOutcome]
        One outcome per input item, in input order.
    """
    log = logger or _logger
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _run(position: int, item: _T) -> TaskOutcome[_T, _R]:
        async with semaphore:
            try:
                outcome = TaskOutcome(position=position, item=item, result=await worker(item))
            except Exception as exc:  # noqa: BLE001 -- isolated per task
                log.warning(error_event, position=position, error=str(exc))
                outcome = TaskOutcome(position=position, item=item, error=exc)

        if on_complete is not None:
            try:
                await on_complete(outcome)
            except Exception as exc:  # noqa: BLE001
                log.warning("worker_completion_hook_failed", position=position, error=str(exc))
        return outcome

    # Join barrier: returns only after every task has settled.
    return list(await asyncio.gather(*(_run(i, item) for i, item in enumerate(items))))
