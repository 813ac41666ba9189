"""Tests for FlowConfig."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flowzone.config import FlowConfig


class TestFlowConfig:
    """Tests for defaults, validation and environment overrides."""

    def test_defaults(self):
        config = FlowConfig()
        assert config.ticks_per_second == 60
        assert config.max_seconds == 60.0
        assert config.bootstrap_iterations == 1000
        assert config.exponential_ratio == 1.5
        assert config.dashboard_port == 4567

    def test_tick_budget(self):
        assert FlowConfig().tick_budget == 3600
        assert FlowConfig(ticks_per_second=10, max_seconds=2.5).tick_budget == 25

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FLOWZONE_MAX_SECONDS", "30")
        monkeypatch.setenv("FLOWZONE_SEED", "11")
        config = FlowConfig()
        assert config.max_seconds == 30.0
        assert config.seed == 11

    def test_validation(self):
        with pytest.raises(ValidationError):
            FlowConfig(ticks_per_second=0)
        with pytest.raises(ValidationError):
            FlowConfig(bootstrap_confidence=1.5)
        with pytest.raises(ValidationError):
            FlowConfig(dashboard_port=80)
