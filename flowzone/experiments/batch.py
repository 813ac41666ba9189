"""Batch orchestration: many trials of one configuration."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from flowzone.simulation.contracts import check_entity, check_strategy, resolve_level_accessor
from flowzone.simulation.trial import SimRun, run_one_trial

logger = logging.getLogger(__name__)

EntityFactory = Callable[[random.Random], Any]
StrategyFactory = Callable[[random.Random], Any]


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification emitted while a batch runs."""

    run: int
    total: int
    elapsed: float
    score: float


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True)
class BatchOutcome:
    """Raw outcome vectors of one batch.

    Each trial is appended as a unit, so within one serial batch the i-th
    entries of ``times``, ``scores`` and ``curves`` describe the same trial.
    ``levels`` only holds values for trials that recorded a level.
    """

    name: str
    times: tuple[float, ...] = ()
    scores: tuple[float, ...] = ()
    levels: tuple[float, ...] = ()
    timeouts: int = 0
    curves: tuple[tuple[float, ...], ...] = ()

    @property
    def run_count(self) -> int:
        return len(self.times)

    @property
    def timeout_rate(self) -> float:
        return self.timeouts / self.run_count if self.run_count else 0.0

    @classmethod
    def from_runs(cls, name: str, runs: Iterable[SimRun]) -> BatchOutcome:
        runs = list(runs)
        return cls(
            name=name,
            times=tuple(r.survival_seconds for r in runs),
            scores=tuple(r.score for r in runs),
            levels=tuple(r.level for r in runs if r.level is not None),
            timeouts=sum(1 for r in runs if r.timed_out),
            curves=tuple(r.curve for r in runs),
        )

    @classmethod
    def merge(cls, name: str, parts: Iterable[BatchOutcome]) -> BatchOutcome:
        """Concatenate partial outcomes in the order given."""
        parts = list(parts)
        return cls(
            name=name,
            times=tuple(t for p in parts for t in p.times),
            scores=tuple(s for p in parts for s in p.scores),
            levels=tuple(lv for p in parts for lv in p.levels),
            timeouts=sum(p.timeouts for p in parts),
            curves=tuple(c for p in parts for c in p.curves),
        )


@dataclass
class BatchOptions:
    """Knobs shared by the serial and parallel batch paths."""

    ticks_per_second: int = 60
    curve_buckets: int = 20
    seed: int | None = None
    name: str | None = None
    progress_callback: ProgressCallback | None = field(default=None, repr=False)
    progress_every: int = 10
    worker_timeout_seconds: float = 300.0
    start_method: str | None = None  # multiprocessing start method, None = platform default

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> BatchOptions:
        """Build options from a FlowConfig, with explicit overrides."""
        values = {
            "ticks_per_second": config.ticks_per_second,
            "curve_buckets": config.curve_buckets,
            "seed": config.seed,
            "progress_every": config.progress_every,
            "worker_timeout_seconds": config.worker_timeout_seconds,
        }
        values.update(overrides)
        return cls(**values)


def run_trials(
    entity_factory: EntityFactory,
    strategy_factory: StrategyFactory,
    run_count: int,
    tick_budget: int,
    options: BatchOptions,
    on_trial: Callable[[int, SimRun], None] | None = None,
) -> BatchOutcome:
    """Run ``run_count`` trials on one entity/strategy pair.

    Args:
        entity_factory: Callable taking a ``random.Random`` and returning an entity
        strategy_factory: Callable taking a ``random.Random`` and returning a strategy
        run_count: Number of trials
        tick_budget: Tick budget per trial
        options: Batch options (seed, sampling, ticks per second)
        on_trial: Optional hook called with (completed_count, run) after each trial

    Returns:
        BatchOutcome for all trials
    """
    rng = random.Random(options.seed)
    entity = entity_factory(rng)
    strategy = strategy_factory(rng)
    check_entity(entity)
    check_strategy(strategy)
    accessor = resolve_level_accessor(entity)
    name = options.name or entity.name()

    runs: list[SimRun] = []
    for i in range(run_count):
        run = run_one_trial(
            entity,
            strategy,
            tick_budget,
            curve_buckets=options.curve_buckets,
            ticks_per_second=options.ticks_per_second,
            level_accessor=accessor,
        )
        runs.append(run)
        if on_trial is not None:
            on_trial(i + 1, run)

    return BatchOutcome.from_runs(name, runs)


def run_batch(
    entity_factory: EntityFactory,
    strategy_factory: StrategyFactory,
    run_count: int,
    tick_budget: int,
    options: BatchOptions | None = None,
) -> BatchOutcome:
    """Run a batch serially in the calling thread.

    The progress callback fires every ``options.progress_every`` trials and
    after the last one.
    """
    options = options or BatchOptions()
    start = time.time()
    every = max(1, options.progress_every)

    def report(completed: int, run: SimRun) -> None:
        if options.progress_callback and (completed % every == 0 or completed == run_count):
            options.progress_callback(
                ProgressEvent(completed, run_count, time.time() - start, run.score)
            )

    logger.info(f"Running batch of {run_count} trials (tick budget {tick_budget})")
    outcome = run_trials(entity_factory, strategy_factory, run_count, tick_budget, options, report)
    logger.info(f"Batch '{outcome.name}' finished in {time.time() - start:.2f}s")
    return outcome
