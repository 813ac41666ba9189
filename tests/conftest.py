"""Shared test fixtures for the flowzone test suite."""

from __future__ import annotations

from functools import partial

import pytest

from flowzone.config import FlowConfig
from flowzone.experiments.batch import BatchOptions
from flowzone.history.store import HistoryStore
from flowzone.zone.policy import ZonePolicyConfig
from tests.helpers import ConstantEntity, IdleStrategy


@pytest.fixture
def config() -> FlowConfig:
    """Short trials: 10 ticks per second, 10 second limit (100 tick budget)."""
    return FlowConfig(ticks_per_second=10, max_seconds=10, seed=7, bootstrap_iterations=200)


@pytest.fixture
def policy() -> ZonePolicyConfig:
    """Default time policy: median >= 5s, timeout rate <= 0.5."""
    return ZonePolicyConfig()


@pytest.fixture
def options(config: FlowConfig) -> BatchOptions:
    """Batch options matching the short-trial config, forked workers."""
    return BatchOptions.from_config(config, start_method="fork")


@pytest.fixture
def idle_strategy_factory():
    return partial(IdleStrategy, {})


@pytest.fixture
def constant_factory():
    """Entity factory for trials lasting 20 ticks (2 seconds at 10 tps)."""
    return partial(ConstantEntity, {"lifetime_ticks": 20})


@pytest.fixture
def history(tmp_path) -> HistoryStore:
    return HistoryStore(tmp_path / "history", max_history=10)
