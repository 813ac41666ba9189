"""Stack tower: drop sliding blocks onto a shrinking tower."""

from __future__ import annotations

import random
from typing import Any

ACTION = "action"

BASE_WIDTH = 150.0
MIN_BLOCK_WIDTH = 20.0
PERFECT_TOLERANCE = 3.0
PERFECT_BONUS = 200
PASS_LENGTH = BASE_WIDTH * 2  # distance slid before the hand drops


class StackTowerGame:
    """Level-based tower stacking with a built-in dropping hand.

    A block slides back and forth; the built-in hand drops it once per pass,
    missing the block below by a random offset of up to ``bot_error`` pixels.
    The overhang is cut off, so the tower narrows. An explicit ``action``
    input drops the block immediately at a random position. The game ends
    when a block misses entirely or gets narrower than the minimum width.

    Config keys: ``bot_error`` (15), ``initial_speed`` (3),
    ``speed_increment`` (0.15).
    """

    def __init__(self, config: dict[str, Any] | None = None, rng: random.Random | None = None):
        config = config or {}
        self.bot_error = float(config.get("bot_error", 15.0))
        self.initial_speed = float(config.get("initial_speed", 3.0))
        self.speed_increment = float(config.get("speed_increment", 0.15))
        self.rng = rng or random.Random()
        self.reset()

    def reset(self) -> None:
        self._score = 0
        self._level = 0
        self.alive = True
        self.width = BASE_WIDTH
        self.speed = self.initial_speed
        self.travel = 0.0

    def step(self, action: Any) -> None:
        if not self.alive:
            return

        if action == ACTION:
            self._drop(self.rng.uniform(-self.width, self.width))
            return

        self.travel += self.speed
        if self.travel >= PASS_LENGTH:
            self.travel = 0.0
            self._drop(self.rng.uniform(-self.bot_error, self.bot_error))

    def _drop(self, offset: float) -> None:
        overlap = self.width - abs(offset)
        if overlap <= 0:
            self.alive = False
            return

        perfect = abs(offset) < PERFECT_TOLERANCE
        self._score += PERFECT_BONUS if perfect else round(overlap * 2)
        self._level += 1
        if not perfect:
            self.width = overlap
        self.speed = self.initial_speed + self._level * self.speed_increment

        if self.width < MIN_BLOCK_WIDTH:
            self.alive = False

    def is_running(self) -> bool:
        return self.alive

    def score(self) -> float:
        return self._score

    def level(self) -> int:
        return self._level

    def difficulty(self) -> float:
        return min(self.speed / 20, 1.0)

    def name(self) -> str:
        return "StackTower"
