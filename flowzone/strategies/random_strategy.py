"""Random input strategy."""

from __future__ import annotations

import random
from typing import Any

ACTION = "action"


class RandomStrategy:
    """Presses the action input with a fixed probability every tick.

    Options: ``action_chance`` (0.05).
    """

    def __init__(self, options: dict[str, Any] | None = None, rng: random.Random | None = None):
        options = options or {}
        self.action_chance = float(options.get("action_chance", 0.05))
        self.rng = rng or random.Random()

    def decide(self, entity: Any) -> str | None:
        return ACTION if self.rng.random() < self.action_chance else None
