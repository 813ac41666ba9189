"""Worker-side protocol for parallel batches.

Each worker process receives one :class:`WorkRequest` and posts messages on a
shared queue: one :class:`WorkerProgress` per finished trial, then exactly
one :class:`WorkerResult` or :class:`WorkerFailure`.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any

from flowzone.experiments.batch import BatchOptions, BatchOutcome, run_trials


@dataclass(frozen=True)
class WorkRequest:
    worker_index: int
    run_count: int
    tick_budget: int
    seed: int
    ticks_per_second: int = 60
    curve_buckets: int = 20
    name: str | None = None


@dataclass(frozen=True)
class WorkerProgress:
    worker_index: int
    score: float


@dataclass(frozen=True)
class WorkerResult:
    worker_index: int
    outcome: BatchOutcome


@dataclass(frozen=True)
class WorkerFailure:
    worker_index: int
    error_type: str
    message: str
    traceback: str


WorkerMessage = WorkerProgress | WorkerResult | WorkerFailure


def worker_main(
    request: WorkRequest,
    entity_factory: Any,
    strategy_factory: Any,
    queue: Any,
) -> None:
    """Process entry point: run a share of the batch and report back."""
    options = BatchOptions(
        ticks_per_second=request.ticks_per_second,
        curve_buckets=request.curve_buckets,
        seed=request.seed,
        name=request.name,
    )

    def on_trial(completed: int, run: Any) -> None:
        queue.put(WorkerProgress(request.worker_index, run.score))

    try:
        outcome = run_trials(
            entity_factory,
            strategy_factory,
            request.run_count,
            request.tick_budget,
            options,
            on_trial,
        )
    except Exception as e:
        queue.put(
            WorkerFailure(
                worker_index=request.worker_index,
                error_type=type(e).__name__,
                message=str(e),
                traceback=traceback.format_exc(),
            )
        )
        return

    queue.put(WorkerResult(request.worker_index, outcome))
