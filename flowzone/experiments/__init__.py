"""Batch orchestration: serial and process-parallel trial execution."""

from flowzone.experiments.batch import (
    BatchOptions,
    BatchOutcome,
    ProgressEvent,
    run_batch,
    run_trials,
)
from flowzone.experiments.parallel import partition_runs, run_batch_parallel

__all__ = [
    "BatchOptions",
    "BatchOutcome",
    "ProgressEvent",
    "partition_runs",
    "run_batch",
    "run_batch_parallel",
    "run_trials",
]
