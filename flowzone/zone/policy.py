"""Flow Zone classification thresholds and genre presets."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from flowzone.errors import ConfigError


class PolicyMode(Enum):
    TIME = "time"
    LEVEL = "level"


# Time-based thresholds per genre: (min median seconds, max timeout rate)
GENRE_PRESETS: dict[str, dict[str, float]] = {
    "action": {"min_median_seconds": 5.0, "max_timeout_rate": 0.3},
    "rhythm": {"min_median_seconds": 10.0, "max_timeout_rate": 0.4},
    "puzzle": {"min_median_seconds": 15.0, "max_timeout_rate": 0.6},
    "survival": {"min_median_seconds": 8.0, "max_timeout_rate": 0.2},
}


@dataclass(frozen=True)
class ZonePolicyConfig:
    """Thresholds for the Flow Zone verdict.

    Exactly one mode is active. In LEVEL mode the level thresholds apply
    when level data exists; otherwise the time thresholds are used.
    """

    mode: PolicyMode = PolicyMode.TIME
    min_median_seconds: float = 5.0
    max_timeout_rate: float = 0.5
    min_median_level: float = 5.0
    max_median_level: float = 25.0
    genre: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.max_timeout_rate <= 1:
            raise ConfigError(f"max_timeout_rate must be in [0, 1], got {self.max_timeout_rate}")
        if self.min_median_seconds < 0:
            raise ConfigError(f"min_median_seconds must be >= 0, got {self.min_median_seconds}")
        if self.min_median_level > self.max_median_level:
            raise ConfigError(
                f"min_median_level ({self.min_median_level}) exceeds "
                f"max_median_level ({self.max_median_level})"
            )

    @property
    def level_mode(self) -> bool:
        return self.mode is PolicyMode.LEVEL

    @classmethod
    def from_genre(cls, genre: str | None = None, **overrides: Any) -> ZonePolicyConfig:
        """Start from a genre preset and apply explicit field overrides.

        ``level_mode=True`` is accepted as a shorthand for ``mode=LEVEL``.
        None-valued overrides are ignored so CLI flags can be passed through.

        Raises:
            ConfigError: Unknown genre or unknown field
        """
        if genre is not None and genre not in GENRE_PRESETS:
            raise ConfigError(
                f"Unknown genre '{genre}'. Available: {', '.join(sorted(GENRE_PRESETS))}"
            )
        values: dict[str, Any] = dict(GENRE_PRESETS.get(genre, {}))
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if "level_mode" in overrides:
            overrides["mode"] = PolicyMode.LEVEL if overrides.pop("level_mode") else PolicyMode.TIME
        if isinstance(overrides.get("mode"), str):
            overrides["mode"] = PolicyMode(overrides["mode"])
        values.update(overrides)

        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"Unknown policy field(s): {', '.join(sorted(unknown))}")
        return cls(genre=genre, **{k: v for k, v in values.items() if k != "genre"})

    def with_overrides(self, **overrides: Any) -> ZonePolicyConfig:
        """Copy with some fields replaced (same rules as from_genre)."""
        current = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "genre"}
        current.update({k: v for k, v in overrides.items() if v is not None})
        return ZonePolicyConfig.from_genre(self.genre, **current)


DEFAULT_POLICY = ZonePolicyConfig()
