"""Run worker ranges concurrently and join them before aggregation."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import (
    FIRST_EXCEPTION,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from multiprocessing import get_context
from typing import Any, Dict, Iterator, Optional, Sequence

from ..core.partitioner import JobRange
from ..core.worker import RangeOutcome, run_range
from ..models.activity import Activity

LOGGER = logging.getLogger(__name__)

# Set in each spawned worker process by ``_install_cancel_event``.
_process_cancel_event: Optional[Any] = None


def _install_cancel_event(event: Any) -> None:
    global _process_cancel_event
    _process_cancel_event = event


def _run_range_in_process(
    activities: Sequence[Activity],
    outcome_count: int,
    job_range: JobRange,
    include_rows: bool,
    decimal_precision: int,
) -> RangeOutcome:
    return run_range(
        activities,
        outcome_count,
        job_range,
        include_rows,
        decimal_precision,
        _process_cancel_event,
    )


class ScenarioPool:
    """Fixed pool of independent range workers.

    ``executor`` is ``"process"`` (spawned processes), ``"thread"`` or
    ``"serial"`` (in the calling thread, for debugging and small inputs).
    """

    def __init__(self, workers: int, executor: str = "process") -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if executor not in {"process", "thread", "serial"}:
            raise ValueError(f"Unsupported executor: {executor}")
        self.workers = workers
        self.executor = executor

    def _make_executor(self, task_count: int, cancel_event: Any) -> Executor:
        max_workers = max(1, min(self.workers, task_count))
        if self.executor == "process":
            return ProcessPoolExecutor(
                max_workers=max_workers,
                mp_context=get_context("spawn"),
                initializer=_install_cancel_event,
                initargs=(cancel_event,),
            )
        return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scenario-worker")

    def _make_cancel_event(self) -> Any:
        if self.executor == "process":
            return get_context("spawn").Event()
        return threading.Event()

    def _submit(
        self,
        executor: Executor,
        cancel_event: Any,
        activities: Sequence[Activity],
        outcome_count: int,
        job_range: JobRange,
        include_rows: bool,
        decimal_precision: int,
    ) -> Future:
        if self.executor == "process":
            return executor.submit(
                _run_range_in_process,
                activities,
                outcome_count,
                job_range,
                include_rows,
                decimal_precision,
            )
        return executor.submit(
            run_range,
            activities,
            outcome_count,
            job_range,
            include_rows,
            decimal_precision,
            cancel_event,
        )

    def run(
        self,
        activities: Sequence[Activity],
        outcome_count: int,
        ranges: Sequence[JobRange],
        *,
        include_rows: bool = False,
        decimal_precision: int = 50,
    ) -> Iterator[RangeOutcome]:
        """Yield each range's outcome as it completes.

        The first failure sets the shared cancel event, cancels every queued
        range and is re-raised without waiting for running ranges, which stop
        at their next cancel check.
        """
        if not ranges:
            return
        activities = tuple(activities)
        if self.executor == "serial":
            for job_range in ranges:
                yield run_range(activities, outcome_count, job_range, include_rows, decimal_precision)
            return

        LOGGER.debug("Dispatching %d ranges to %s pool", len(ranges), self.executor)
        cancel_event = self._make_cancel_event()
        executor = self._make_executor(len(ranges), cancel_event)
        pending: Dict[Future, JobRange] = {}
        try:
            for job_range in ranges:
                future = self._submit(
                    executor,
                    cancel_event,
                    activities,
                    outcome_count,
                    job_range,
                    include_rows,
                    decimal_precision,
                )
                pending[future] = job_range
            while pending:
                done, _ = wait(list(pending), return_when=FIRST_EXCEPTION)
                for future in done:
                    job_range = pending.pop(future)
                    error = future.exception()
                    if error is not None:
                        LOGGER.error(
                            "Worker for range [%d, %d) failed: %s",
                            job_range.start,
                            job_range.end,
                            error,
                        )
                        cancel_event.set()
                        self._cancel(pending)
                        raise error
                    yield future.result()
        finally:
            aborted = cancel_event.is_set() or bool(pending)
            if aborted:
                cancel_event.set()
                self._cancel(pending)
            executor.shutdown(wait=not aborted, cancel_futures=True)

    @staticmethod
    def _cancel(pending: Dict[Future, JobRange]) -> None:
        for future in list(pending):
            future.cancel()


__all__ = ["ScenarioPool"]
