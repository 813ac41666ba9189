"""Tests for serial batch orchestration."""

from __future__ import annotations

from functools import partial

import pytest

from flowzone.config import FlowConfig
from flowzone.experiments.batch import BatchOptions, BatchOutcome, run_batch
from flowzone.simulation.trial import SimRun
from tests.helpers import ConstantEntity, IdleStrategy, RaisingEntity, RandomLifetimeEntity


class TestBatchOutcome:
    """Tests for BatchOutcome construction and merging."""

    def _run(self, seconds: float, timed_out: bool = False, level: float | None = None) -> SimRun:
        return SimRun(
            survival_ticks=int(seconds * 60),
            survival_seconds=seconds,
            score=seconds * 10,
            timed_out=timed_out,
            curve=(0.0, seconds),
            level=level,
        )

    def test_from_runs_pairs_vectors(self):
        """Each run contributes one entry to every vector."""
        outcome = BatchOutcome.from_runs("g", [self._run(1.0), self._run(2.0, timed_out=True)])

        assert outcome.run_count == 2
        assert outcome.times == (1.0, 2.0)
        assert outcome.scores == (10.0, 20.0)
        assert outcome.timeouts == 1
        assert outcome.timeout_rate == 0.5
        assert outcome.curves == ((0.0, 1.0), (0.0, 2.0))

    def test_levels_only_where_recorded(self):
        """Runs without a level do not contribute zeros."""
        outcome = BatchOutcome.from_runs("g", [self._run(1.0, level=3), self._run(2.0)])
        assert outcome.levels == (3,)

    def test_merge_concatenates(self):
        """Merging sums timeouts and concatenates vectors."""
        a = BatchOutcome.from_runs("g", [self._run(1.0)])
        b = BatchOutcome.from_runs("g", [self._run(2.0, timed_out=True), self._run(3.0)])
        merged = BatchOutcome.merge("g", [a, b])

        assert merged.run_count == 3
        assert sorted(merged.times) == [1.0, 2.0, 3.0]
        assert merged.timeouts == 1

    def test_empty_outcome(self):
        """An empty outcome has zero timeout rate."""
        outcome = BatchOutcome("empty")
        assert outcome.run_count == 0
        assert outcome.timeout_rate == 0.0


class TestBatchOptions:
    """Tests for BatchOptions.from_config."""

    def test_from_config_copies_settings(self):
        """Clock, sampling and timeout come from the config."""
        config = FlowConfig(ticks_per_second=30, curve_buckets=10, seed=3, worker_timeout_seconds=9)
        options = BatchOptions.from_config(config, name="custom")

        assert options.ticks_per_second == 30
        assert options.curve_buckets == 10
        assert options.seed == 3
        assert options.worker_timeout_seconds == 9
        assert options.name == "custom"


class TestRunBatch:
    """Tests for the serial run_batch path."""

    def test_runs_requested_count(self, constant_factory, idle_strategy_factory, options):
        """Every trial lands in the outcome."""
        outcome = run_batch(constant_factory, idle_strategy_factory, 12, 100, options)

        assert outcome.run_count == 12
        assert outcome.times == (2.0,) * 12
        assert outcome.timeouts == 0
        assert outcome.name == "Constant"
        assert all(len(c) == options.curve_buckets for c in outcome.curves)

    def test_progress_every_k_and_last(self, constant_factory, idle_strategy_factory, config):
        """Progress fires every K trials and after the final one."""
        events = []
        options = BatchOptions.from_config(
            config, progress_every=5, progress_callback=events.append
        )
        run_batch(constant_factory, idle_strategy_factory, 12, 100, options)

        assert [e.run for e in events] == [5, 10, 12]
        assert all(e.total == 12 for e in events)
        assert events[-1].score == 20.0
        assert events[-1].elapsed >= 0

    def test_same_seed_replays(self, idle_strategy_factory, config):
        """A fixed seed reproduces the batch exactly."""
        factory = partial(RandomLifetimeEntity, {"max_ticks": 80})
        first = run_batch(factory, idle_strategy_factory, 20, 100, BatchOptions.from_config(config))
        second = run_batch(
            factory, idle_strategy_factory, 20, 100, BatchOptions.from_config(config)
        )
        other = run_batch(
            factory, idle_strategy_factory, 20, 100, BatchOptions.from_config(config, seed=99)
        )

        assert first.times == second.times
        assert first.times != other.times

    def test_entity_created_once_per_batch(self, idle_strategy_factory, options):
        """The factory builds one entity that is reset per trial."""
        created = []

        def factory(rng):
            entity = ConstantEntity({"lifetime_ticks": 3})
            created.append(entity)
            return entity

        run_batch(factory, idle_strategy_factory, 4, 100, options)

        assert len(created) == 1
        assert created[0].resets == 4

    def test_name_override(self, constant_factory, idle_strategy_factory, config):
        """options.name replaces the entity name."""
        options = BatchOptions.from_config(config, name="renamed")
        outcome = run_batch(constant_factory, idle_strategy_factory, 1, 100, options)
        assert outcome.name == "renamed"

    def test_error_aborts_batch(self, idle_strategy_factory, options):
        """A failing trial propagates out of the batch."""
        with pytest.raises(RuntimeError):
            run_batch(partial(RaisingEntity, {}), idle_strategy_factory, 5, 100, options)
