"""Batch and optimization job descriptions with YAML support."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from flowzone.errors import ConfigError
from flowzone.zone.params import ParamSpec

MAX_RUNS = 10000
MAX_ITERATIONS = 100


@dataclass
class JobConfig:
    """One batch or optimization job.

    Example YAML::

        game: stack-tower
        strategy: random
        runs: 200
        workers: 4
        genre: action
        game_config: {bot_error: 12}
        strategy_options: {action_chance: 0.0}
        policy: {level_mode: true, min_median_level: 5}
        param: {name: bot_error, min: 2, max: 40, hard_direction: higher}
    """

    game: str = "example"
    strategy: str = "random"
    runs: int = 100
    workers: int = 1
    seed: int | None = None
    max_seconds: float | None = None
    genre: str | None = None
    game_config: dict[str, float] = field(default_factory=dict)
    strategy_options: dict[str, Any] = field(default_factory=dict)
    policy: dict[str, Any] = field(default_factory=dict)
    param: ParamSpec | None = None
    max_iterations: int = 20
    output: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.runs <= MAX_RUNS:
            raise ConfigError(f"runs must be between 1 and {MAX_RUNS}, got {self.runs}")
        if not 1 <= self.max_iterations <= MAX_ITERATIONS:
            raise ConfigError(
                f"max_iterations must be between 1 and {MAX_ITERATIONS}, got {self.max_iterations}"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        for key, value in self.game_config.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"game_config.{key} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigError(f"game_config.{key} must be finite, got {value}")

    @classmethod
    def from_yaml(cls, path: str) -> JobConfig:
        """Load a job from a YAML file.

        Args:
            path: Path to YAML file

        Returns:
            JobConfig instance

        Raises:
            ImportError: If pyyaml is not installed
            FileNotFoundError: If file doesn't exist
            ConfigError: If the file does not describe a valid job
        """
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as err:
            raise ImportError(
                "pyyaml is required for YAML loading. Install with: pip install pyyaml"
            ) from err

        with open(path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping at top level")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> JobConfig:
        """Build JobConfig from dictionary.

        Args:
            data: Dict with job configuration

        Returns:
            JobConfig instance
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown job field(s): {', '.join(sorted(unknown))}")

        values = dict(data)
        if values.get("param") is not None:
            values["param"] = ParamSpec.from_dict(values["param"])
        for key in ("game_config", "strategy_options", "policy"):
            values[key] = dict(values.get(key) or {})
        return cls(**values)
