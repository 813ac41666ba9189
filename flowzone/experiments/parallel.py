"""Parallel batch execution across isolated worker processes."""

from __future__ import annotations

import logging
import multiprocessing
import queue as queue_module
import random
import time

from flowzone.errors import BatchTimeoutError, WorkerFailedError
from flowzone.experiments.batch import (
    BatchOptions,
    BatchOutcome,
    EntityFactory,
    ProgressEvent,
    StrategyFactory,
    run_batch,
)
from flowzone.experiments.worker import (
    WorkerFailure,
    WorkerProgress,
    WorkerResult,
    WorkRequest,
    worker_main,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1  # seconds between liveness checks
EXIT_GRACE = 0.5  # seconds a dead worker may still have queued messages in flight


def partition_runs(run_count: int, worker_count: int) -> list[int]:
    """Split run_count as evenly as possible, remainder to the first workers.

    >>> partition_runs(10, 3)
    [4, 3, 3]
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1, got {worker_count}")
    base, remainder = divmod(run_count, worker_count)
    return [base + (1 if i < remainder else 0) for i in range(worker_count)]


def run_batch_parallel(
    entity_factory: EntityFactory,
    strategy_factory: StrategyFactory,
    run_count: int,
    tick_budget: int,
    worker_count: int,
    options: BatchOptions | None = None,
) -> BatchOutcome:
    """Run a batch across ``worker_count`` processes.

    Factories must be picklable (module-level callables or
    ``functools.partial`` of them) when the start method is not ``fork``.
    Worker ``i`` seeds its random source with ``seed + i``.

    Any worker failure, crash or timeout terminates every remaining worker
    and raises; partial results are discarded.

    Args:
        entity_factory: Callable taking a ``random.Random`` and returning an entity
        strategy_factory: Callable taking a ``random.Random`` and returning a strategy
        run_count: Total number of trials
        tick_budget: Tick budget per trial
        worker_count: Number of worker processes
        options: Batch options

    Returns:
        Merged BatchOutcome (worker order is arrival order)

    Raises:
        WorkerFailedError: A worker raised or exited without a result
        BatchTimeoutError: The batch exceeded options.worker_timeout_seconds
    """
    options = options or BatchOptions()
    if worker_count <= 1:
        return run_batch(entity_factory, strategy_factory, run_count, tick_budget, options)

    base_seed = options.seed if options.seed is not None else random.randrange(2**32)
    shares = [
        (index, share)
        for index, share in enumerate(partition_runs(run_count, worker_count))
        if share > 0
    ]
    context = multiprocessing.get_context(options.start_method)
    messages = context.Queue()
    processes = {}
    for index, share in shares:
        request = WorkRequest(
            worker_index=index,
            run_count=share,
            tick_budget=tick_budget,
            seed=base_seed + index,
            ticks_per_second=options.ticks_per_second,
            curve_buckets=options.curve_buckets,
            name=options.name,
        )
        process = context.Process(
            target=worker_main,
            args=(request, entity_factory, strategy_factory, messages),
            name=f"flowzone-worker-{index}",
            daemon=True,
        )
        processes[index] = process

    logger.info(
        f"Running batch of {run_count} trials across {len(processes)} workers "
        f"(timeout {options.worker_timeout_seconds:g}s)"
    )
    start = time.time()
    deadline = time.monotonic() + options.worker_timeout_seconds
    pending = set(processes)
    partials: list[BatchOutcome] = []
    dead_since: dict[int, float] = {}
    completed = 0

    try:
        for process in processes.values():
            process.start()

        while pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                worker_index = min(pending)
                logger.error(f"Worker {worker_index} timed out, aborting batch")
                raise BatchTimeoutError(worker_index, options.worker_timeout_seconds)

            try:
                message = messages.get(timeout=min(remaining, POLL_INTERVAL))
            except queue_module.Empty:
                _check_liveness(processes, pending, dead_since)
                continue

            if isinstance(message, WorkerProgress):
                completed += 1
                if options.progress_callback:
                    options.progress_callback(
                        ProgressEvent(completed, run_count, time.time() - start, message.score)
                    )
            elif isinstance(message, WorkerResult):
                partials.append(message.outcome)
                pending.discard(message.worker_index)
                processes[message.worker_index].join(timeout=EXIT_GRACE)
            elif isinstance(message, WorkerFailure):
                logger.error(
                    f"Worker {message.worker_index} raised {message.error_type}: {message.message}"
                )
                raise WorkerFailedError(message.worker_index, message.traceback)
    finally:
        _terminate(processes)
        messages.close()

    name = options.name or (partials[0].name if partials else "batch")
    outcome = BatchOutcome.merge(name, partials)
    logger.info(f"Batch '{outcome.name}' finished in {time.time() - start:.2f}s")
    return outcome


def _check_liveness(processes: dict, pending: set[int], dead_since: dict[int, float]) -> None:
    """Fail the batch if a pending worker exited without posting a result."""
    now = time.monotonic()
    for index in sorted(pending):
        process = processes[index]
        if process.is_alive() or process.exitcode is None:
            continue
        first_seen = dead_since.setdefault(index, now)
        if now - first_seen >= EXIT_GRACE:
            logger.error(f"Worker {index} exited with code {process.exitcode} before reporting")
            raise WorkerFailedError(
                index, "worker exited without reporting a result", exit_code=process.exitcode
            )


def _terminate(processes: dict) -> None:
    for process in processes.values():
        if process.is_alive():
            process.terminate()
    for process in processes.values():
        if process.pid is not None:
            process.join(timeout=EXIT_GRACE)
