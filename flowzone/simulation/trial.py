"""Trial runner: one entity, one strategy, one episode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flowzone.simulation.contracts import (
    LevelAccessor,
    check_entity,
    check_strategy,
    resolve_level_accessor,
)

_UNRESOLVED: Any = object()


@dataclass(frozen=True)
class SimRun:
    """Outcome of a single completed trial."""

    survival_ticks: int
    survival_seconds: float
    score: float
    timed_out: bool
    curve: tuple[float, ...]
    level: float | None = None


def sample_interval(tick_budget: int, curve_buckets: int) -> int:
    """Ticks between two score samples."""
    return max(1, tick_budget // curve_buckets)


def run_one_trial(
    entity: Any,
    strategy: Any,
    tick_budget: int,
    curve_buckets: int = 20,
    ticks_per_second: int = 60,
    level_accessor: LevelAccessor | None = _UNRESOLVED,
) -> SimRun:
    """Drive one entity under one strategy until death or the tick budget.

    Errors raised by the entity or the strategy propagate unchanged.

    Args:
        entity: Simulatable entity (reset/step/is_running/score/...)
        strategy: Decision strategy (decide, optional reset_episode)
        tick_budget: Maximum number of ticks before the trial times out
        curve_buckets: Length of the sampled score trajectory
        ticks_per_second: Conversion factor for survival_seconds
        level_accessor: Pre-resolved level accessor. Callers running many
            trials on the same entity resolve it once and pass it in;
            when omitted it is resolved here.

    Returns:
        SimRun for the finished episode
    """
    check_entity(entity)
    check_strategy(strategy)
    if level_accessor is _UNRESOLVED:
        level_accessor = resolve_level_accessor(entity)

    entity.reset()
    reset_episode = getattr(strategy, "reset_episode", None)
    if callable(reset_episode):
        reset_episode()

    interval = sample_interval(tick_budget, curve_buckets)
    curve: list[float] = []
    ticks = 0
    while entity.is_running() and ticks < tick_budget:
        if ticks % interval == 0:
            curve.append(entity.score())
        action = strategy.decide(entity)
        entity.step(action)
        ticks += 1

    final_score = entity.score()
    curve = curve[:curve_buckets]
    curve.extend([final_score] * (curve_buckets - len(curve)))

    level = level_accessor() if level_accessor is not None else None

    return SimRun(
        survival_ticks=ticks,
        survival_seconds=ticks / ticks_per_second,
        score=final_score,
        timed_out=ticks >= tick_budget,
        curve=tuple(curve),
        level=level,
    )
