"""Configuration settings for flowzone.

Uses Pydantic Settings for validation and environment variable support.
All settings can be overridden via FLOWZONE_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class FlowConfig(BaseSettings):
    """Global configuration for simulation batches and their analysis."""

    # Simulation clock
    ticks_per_second: int = Field(default=60, gt=0)
    max_seconds: float = Field(default=60.0, gt=0)
    seed: int = 42

    # Sampling
    curve_buckets: int = Field(default=20, ge=2)
    histogram_buckets: int = Field(default=10, ge=1)

    # Calibration constants (empirical, subject to revision)
    bootstrap_iterations: int = Field(default=1000, ge=1)
    bootstrap_confidence: float = Field(default=0.95, gt=0, lt=1)
    ci_adequate_width: float = 2.0  # seconds
    ci_marginal_width: float = 5.0  # seconds
    exponential_ratio: float = 1.5  # second-half / first-half growth
    min_recommended_runs: int = 30

    # Batch execution
    worker_timeout_seconds: float = Field(default=300.0, gt=0)
    progress_every: int = Field(default=10, ge=1)

    # History
    history_dir: str = ".flowzone-history"
    max_history: int = Field(default=10, ge=1)

    # Live dashboard
    dashboard_port: int = Field(default=4567, ge=1024, le=65535)

    model_config = {"env_prefix": "FLOWZONE_"}

    @property
    def tick_budget(self) -> int:
        """Tick budget equivalent to max_seconds at ticks_per_second."""
        return int(self.max_seconds * self.ticks_per_second)
