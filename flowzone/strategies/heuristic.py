"""Difficulty-aware heuristic strategy."""

from __future__ import annotations

import random
from collections import deque
from typing import Any

ACTION = "action"
MIN_TREND_SAMPLES = 20


class HeuristicStrategy:
    """Acts less often as difficulty rises and more often when score stalls.

    After each action the strategy waits a cooldown that grows with
    difficulty. The score trend is the difference between the mean of the
    newer and the older half of a sliding score window.

    Options: ``score_window`` (60 ticks).
    """

    def __init__(self, options: dict[str, Any] | None = None, rng: random.Random | None = None):
        options = options or {}
        self.score_window = int(options.get("score_window", 60))
        self.rng = rng or random.Random()
        self.reset_episode()

    def reset_episode(self) -> None:
        self._scores: deque[float] = deque(maxlen=self.score_window)
        self._cooldown = 0

    def score_trend(self) -> float:
        if len(self._scores) < MIN_TREND_SAMPLES:
            return 0.0
        history = list(self._scores)
        half = len(history) // 2
        older = sum(history[:half]) / half
        newer = sum(history[half:]) / (len(history) - half)
        return newer - older

    def decide(self, entity: Any) -> str | None:
        self._scores.append(entity.score())
        if self._cooldown > 0:
            self._cooldown -= 1
            return None

        d = entity.difficulty()
        if d < 0.3:
            chance = 0.25
        elif d < 0.6:
            chance = 0.15
        else:
            chance = 0.08
        if self.score_trend() < 0:
            chance += 0.05

        if self.rng.random() < chance:
            self._cooldown = round(15 + d * 25)
            return ACTION
        return None
