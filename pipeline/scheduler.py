"""pipeline.scheduler

Bounded worker pool for analysis jobs.

Contract
--------
- ``submit(job)`` queues a unit of work (any zero-argument callable).
- ``run_all()`` blocks until every submitted job reached a terminal state
  (succeeded, or failed and recorded) and returns one outcome per job in
  submission order. It is a strict join barrier.
- ``shutdown()`` releases the pool.

A job that raises is recorded as failed; the worker moves on to the next
job, and sibling jobs never observe the failure.
"""

from __future__ import annotations

import logging
import traceback
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from repo_cppcheck.domain import Component, ComponentResult, GlobalResultSet

from .config import default_worker_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobOutcome:
    key: str
    ok: bool
    result: Any = None
    error: Optional[str] = None
    traceback: Optional[str] = None


class TaskScheduler:
    def __init__(self, max_workers: Optional[int] = None) -> None:
        self.max_workers = max(1, int(max_workers or default_worker_count()))
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Tuple[str, Callable[[], Any]]] = []

    def __enter__(self) -> "TaskScheduler":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.shutdown()

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="analysis-job",
            )
        return self._executor

    def submit(self, job: Callable[[], Any], key: Optional[str] = None) -> None:
        self._pending.append((key or repr(job), job))

    @staticmethod
    def _run_one(key: str, job: Callable[[], Any]) -> JobOutcome:
        try:
            return JobOutcome(key=key, ok=True, result=job())
        except Exception as e:
            logger.error("job %s failed: %s", key, e)
            return JobOutcome(
                key=key,
                ok=False,
                error=f"{type(e).__name__}: {e}",
                traceback=traceback.format_exc(limit=50),
            )

    def run_all(self) -> List[JobOutcome]:
        jobs, self._pending = self._pending, []
        if not jobs:
            return []

        pool = self._pool()
        futures: Dict[Future, int] = {
            pool.submit(self._run_one, key, job): i for i, (key, job) in enumerate(jobs)
        }

        outcomes: List[Optional[JobOutcome]] = [None] * len(jobs)
        for fut in as_completed(futures):
            outcomes[futures[fut]] = fut.result()

        return [o for o in outcomes if o is not None]

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


def record_on_completion(job: Callable[[], ComponentResult], result_set: GlobalResultSet) -> Callable[[], ComponentResult]:
    """Wrap a job so its result lands in ``result_set`` from the worker thread."""

    def _run() -> ComponentResult:
        result = job()
        result_set.record(result)
        return result

    return _run


def collect_results(
    outcomes: List[JobOutcome],
    components: Dict[str, Component],
    result_set: Optional[GlobalResultSet] = None,
) -> GlobalResultSet:
    """Record every outcome into a result set.

    Failed jobs become empty ``error`` results so the component still has a
    terminal entry; downstream aggregation elides it.
    """
    result_set = result_set if result_set is not None else GlobalResultSet()
    for o in outcomes:
        if o.ok and isinstance(o.result, ComponentResult):
            if o.result.key not in result_set:
                result_set.record(o.result)
            continue
        if o.key in result_set:
            continue
        component = components.get(o.key)
        if component is None:
            logger.warning("outcome for unknown component %s dropped", o.key)
            continue
        result_set.record(
            ComponentResult(
                component=component,
                path_descriptor=component.relative_path,
                status="error",
                messages=(o.error or "job returned no result",),
            )
        )
    return result_set
