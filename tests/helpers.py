"""Shared test doubles for flowzone test suites.

Entities and strategies here are plain classes defined at module level so
they can be handed to worker processes. Construct them through
``functools.partial`` to bind a config dict; the batch layer supplies the
random source.
"""

from __future__ import annotations

import os
import random
import time
from dataclasses import dataclass, field
from typing import Any

from flowzone.experiments.batch import BatchOutcome

# ============================================================================
# Entities
# ============================================================================


class ConstantEntity:
    """Dies after a fixed number of ticks, scoring one point per tick.

    Config keys: ``lifetime_ticks`` (120), ``level`` (when set, the entity
    exposes a ``level()`` accessor returning it).
    """

    def __init__(self, config: dict[str, Any] | None = None, rng: random.Random | None = None):
        config = config or {}
        self.lifetime_ticks = int(config.get("lifetime_ticks", 120))
        self.fixed_level = config.get("level")
        self.resets = 0
        self.steps = 0
        self.actions: list[Any] = []
        if self.fixed_level is not None:
            self.level = lambda: self.fixed_level
        self.ticks = 0

    def reset(self) -> None:
        self.resets += 1
        self.ticks = 0

    def step(self, action: Any) -> None:
        self.steps += 1
        self.actions.append(action)
        self.ticks += 1

    def is_running(self) -> bool:
        return self.ticks < self.lifetime_ticks

    def score(self) -> float:
        return float(self.ticks)

    def difficulty(self) -> float:
        return 0.5

    def name(self) -> str:
        return "Constant"


class ScriptedEntity(ConstantEntity):
    """Cycles through a list of lifetimes, one per episode.

    A lifetime of None never dies.
    """

    def __init__(self, config: dict[str, Any] | None = None, rng: random.Random | None = None):
        self.script = list((config or {}).get("lifetimes", [None]))
        self.episode = -1
        super().__init__(config, rng)

    def reset(self) -> None:
        super().reset()
        self.episode += 1

    def is_running(self) -> bool:
        lifetime = self.script[self.episode % len(self.script)]
        return lifetime is None or self.ticks < lifetime

    def name(self) -> str:
        return "Scripted"


class InfiniteEntity(ConstantEntity):
    """Never dies."""

    def is_running(self) -> bool:
        return True

    def name(self) -> str:
        return "Infinite"


class RandomLifetimeEntity(ConstantEntity):
    """Lifetime drawn uniformly from [1, max_ticks] on every reset."""

    def __init__(self, config: dict[str, Any] | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.max_ticks = int((config or {}).get("max_ticks", 100))
        super().__init__(config, rng)

    def reset(self) -> None:
        super().reset()
        self.lifetime_ticks = self.rng.randint(1, self.max_ticks)


class RaisingEntity(ConstantEntity):
    """Raises from step() on the given tick."""

    def step(self, action: Any) -> None:
        super().step(action)
        if self.ticks >= 3:
            raise RuntimeError("simulation exploded")


class CrashingEntity(ConstantEntity):
    """Kills its own process from step()."""

    def step(self, action: Any) -> None:
        os._exit(3)


class SlowEntity(InfiniteEntity):
    """Sleeps on every tick and never dies."""

    def step(self, action: Any) -> None:
        time.sleep(0.05)
        super().step(action)


class NoStepEntity:
    """Missing most of the entity contract."""

    def reset(self) -> None:
        pass

    def name(self) -> str:
        return "Broken"


# ============================================================================
# Strategies
# ============================================================================


class IdleStrategy:
    """Never presses anything; counts episode resets."""

    def __init__(self, options: dict[str, Any] | None = None, rng: random.Random | None = None):
        self.episodes = 0
        self.decisions = 0

    def reset_episode(self) -> None:
        self.episodes += 1

    def decide(self, entity: Any) -> None:
        self.decisions += 1
        return None


class PressStrategy:
    """Always returns the same input; has no reset_episode hook."""

    def __init__(self, options: dict[str, Any] | None = None, rng: random.Random | None = None):
        self.action = (options or {}).get("action", "action")

    def decide(self, entity: Any) -> str:
        return self.action


class NoDecideStrategy:
    """Missing decide()."""

    def __init__(self, options: dict[str, Any] | None = None, rng: random.Random | None = None):
        pass


# ============================================================================
# Outcomes
# ============================================================================


@dataclass
class OutcomeBuilder:
    """Builds BatchOutcome values directly from vectors."""

    name: str = "test"
    buckets: int = 20
    levels: list[float] = field(default_factory=list)

    def build(
        self,
        times: list[float],
        timeouts: int = 0,
        scores: list[float] | None = None,
        curves: list[list[float]] | None = None,
    ) -> BatchOutcome:
        scores = scores if scores is not None else [t * 10 for t in times]
        if curves is None:
            curves = [[0.0] * self.buckets for _ in times]
        return BatchOutcome(
            name=self.name,
            times=tuple(times),
            scores=tuple(scores),
            levels=tuple(self.levels),
            timeouts=timeouts,
            curves=tuple(tuple(c) for c in curves),
        )


def outcome_from_times(times: list[float], timeouts: int = 0, **kwargs: Any) -> BatchOutcome:
    """Shortcut for OutcomeBuilder().build(times, timeouts)."""
    return OutcomeBuilder(**kwargs).build(times, timeouts)
