"""Endless runner: jump over obstacles that arrive faster and faster."""

from __future__ import annotations

import random
from typing import Any

ACTION = "action"

GROUND = 0.0
JUMP_VELOCITY = 15.0
GRAVITY = 1.5
CLEARANCE = 10.0  # minimum height to clear an obstacle
OBSTACLE_INTERVAL = 120  # ticks between obstacles at speed 0
MIN_OBSTACLE_INTERVAL = 30


class ExampleGame:
    """Timing-jump style runner.

    Speed grows every tick and shortens the gap between obstacles. The
    player dies when an obstacle arrives while it is on the ground. The
    random source jitters obstacle spacing by up to ``jitter`` ticks.

    Config keys: ``initial_speed`` (5), ``speed_increment`` (0.002),
    ``jitter`` (0).
    """

    def __init__(self, config: dict[str, Any] | None = None, rng: random.Random | None = None):
        config = config or {}
        self.initial_speed = float(config.get("initial_speed", 5.0))
        self.speed_increment = float(config.get("speed_increment", 0.002))
        self.jitter = int(config.get("jitter", 0))
        self.rng = rng or random.Random()
        self.reset()

    def reset(self) -> None:
        self.tick = 0
        self._score = 0
        self.alive = True
        self.speed = self.initial_speed
        self.obstacle_timer = 0
        self.next_obstacle = self._obstacle_gap()
        self.player_y = GROUND
        self.jumping = False
        self.jump_velocity = 0.0

    def _obstacle_gap(self) -> float:
        gap = max(MIN_OBSTACLE_INTERVAL, OBSTACLE_INTERVAL - self.speed * 5)
        if self.jitter:
            gap += self.rng.randint(-self.jitter, self.jitter)
        return max(1, gap)

    def step(self, action: Any) -> None:
        if not self.alive:
            return

        self.tick += 1
        self.speed += self.speed_increment
        self._score += int(self.speed)

        if action == ACTION and self.player_y == GROUND:
            self.jumping = True
            self.jump_velocity = JUMP_VELOCITY

        if self.jumping:
            self.player_y += self.jump_velocity
            self.jump_velocity -= GRAVITY
            if self.player_y <= GROUND:
                self.player_y = GROUND
                self.jumping = False
                self.jump_velocity = 0.0

        self.obstacle_timer += 1
        if self.obstacle_timer >= self.next_obstacle:
            self.obstacle_timer = 0
            self.next_obstacle = self._obstacle_gap()
            if self.player_y < CLEARANCE:
                self.alive = False

    def is_running(self) -> bool:
        return self.alive

    def score(self) -> float:
        return self._score

    def difficulty(self) -> float:
        return min(1.0, (self.speed - self.initial_speed) / 20)

    def name(self) -> str:
        return "ExampleGame"
