"""Tunable parameter descriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flowzone.errors import ConfigError
from flowzone.zone.policy import ZonePolicyConfig


class HardDirection(Enum):
    """Which way a parameter moves to make the game harder."""

    HIGHER = "higher"
    LOWER = "lower"


@dataclass(frozen=True)
class ParamSpec:
    """One scalar parameter with its legal range.

    Attributes:
        name: Key of the parameter in the entity config dict
        min: Lower bound of the legal range
        max: Upper bound of the legal range
        hard_direction: Direction that increases difficulty
        strategy_options: Default options for the strategy used while tuning
        policy_overrides: ZonePolicyConfig field overrides used while tuning
    """

    name: str
    min: float
    max: float
    hard_direction: HardDirection = HardDirection.HIGHER
    strategy_options: dict[str, Any] = field(default_factory=dict)
    policy_overrides: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.min < self.max:
            raise ConfigError(
                f"Parameter '{self.name}': min ({self.min}) must be < max ({self.max})"
            )

    @property
    def span(self) -> float:
        return self.max - self.min

    def clamp(self, value: float) -> float:
        return min(self.max, max(self.min, value))

    def tuning_policy(self, genre: str | None = None, **explicit: Any) -> ZonePolicyConfig:
        """Zone policy for tuning this parameter.

        ``policy_overrides`` act as defaults under the caller's explicit fields.
        None-valued fields count as unset.
        """
        explicit = {k: v for k, v in explicit.items() if v is not None}
        defaults = dict(self.policy_overrides)
        if "mode" in explicit or "level_mode" in explicit:
            defaults.pop("mode", None)
            defaults.pop("level_mode", None)
        return ZonePolicyConfig.from_genre(genre, **{**defaults, **explicit})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParamSpec:
        """Build from a dict such as a YAML ``param`` block."""
        try:
            direction = HardDirection(data.get("hard_direction", "higher"))
        except ValueError as err:
            raise ConfigError(
                f"hard_direction must be 'higher' or 'lower', got {data.get('hard_direction')!r}"
            ) from err
        try:
            return cls(
                name=data["name"],
                min=float(data["min"]),
                max=float(data["max"]),
                hard_direction=direction,
                strategy_options=dict(data.get("strategy_options", {})),
                policy_overrides=dict(data.get("policy_overrides", {})),
            )
        except KeyError as err:
            raise ConfigError(f"Parameter spec is missing {err}") from err
