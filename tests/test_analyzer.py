"""Tests for BatchAnalyzer and AnalysisResult."""

from __future__ import annotations

import dataclasses

import pytest

from flowzone.analysis.analyzer import (
    BatchAnalyzer,
    analyze,
    level_summary,
    with_parameter_suggestion,
)
from flowzone.analysis.types import AnalysisResult
from flowzone.zone.params import HardDirection, ParamSpec
from flowzone.zone.policy import ZonePolicyConfig
from tests.helpers import OutcomeBuilder, outcome_from_times


class TestBatchAnalyzer:
    """End-to-end analysis of synthetic outcomes."""

    def test_flow_batch(self, config, policy):
        """Median 10s with 20% timeouts is in the Flow Zone."""
        outcome = outcome_from_times([60.0] * 20 + [10.0] * 80, timeouts=20)
        result = BatchAnalyzer(config, policy).analyze(outcome)

        assert result.zone == "FLOW"
        assert result.emoji == "✅"
        assert result.runs == 100
        assert result.survival.median == 10.0
        assert result.timeout_rate == pytest.approx(0.2)
        assert result.avg_score == pytest.approx(200.0)
        assert result.max_score == 600.0
        assert sum(b.count for b in result.histogram) == 100
        assert result.suggestions[0].startswith("The current settings are in the Flow Zone")

    def test_too_hard_batch(self, config, policy):
        """Everyone dying within 1.5s is too hard."""
        result = BatchAnalyzer(config, policy).analyze(outcome_from_times([1.5] * 100))

        assert result.zone == "TOO_HARD"
        assert result.emoji == "😵"
        assert "Lower the starting difficulty" in result.advice
        assert any("20-30%" in s for s in result.suggestions)
        assert any("Score barely accumulates" in s for s in result.suggestions)

    def test_too_easy_batch(self, config, policy):
        """90% timeouts is too easy."""
        result = analyze(outcome_from_times([10.0] * 100, timeouts=90), policy, config)

        assert result.zone == "TOO_EASY"
        assert any(s.startswith("90% of runs survive") for s in result.suggestions)

    def test_level_mode(self, config):
        """Level thresholds decide when the policy and the data allow it."""
        policy = ZonePolicyConfig.from_genre(level_mode=True)
        outcome = OutcomeBuilder(levels=[3.0] * 10).build([10.0] * 10)
        result = BatchAnalyzer(config, policy).analyze(outcome)

        assert result.level_mode is True
        assert result.zone == "TOO_HARD"
        assert result.level_stats.median == 3.0

    def test_level_mode_without_levels_uses_time(self, config):
        policy = ZonePolicyConfig.from_genre(level_mode=True)
        result = BatchAnalyzer(config, policy).analyze(outcome_from_times([10.0] * 10))

        assert result.level_mode is False
        assert result.level_stats is None
        assert result.zone == "FLOW"

    def test_genre_recorded(self, config):
        policy = ZonePolicyConfig.from_genre("puzzle")
        result = BatchAnalyzer(config, policy).analyze(outcome_from_times([10.0] * 10))

        assert result.genre == "puzzle"
        assert result.zone == "TOO_HARD"

    def test_name_override(self, config):
        result = analyze(outcome_from_times([6.0] * 5), config=config, name="renamed")
        assert result.name == "renamed"

    def test_result_is_frozen(self, config):
        result = analyze(outcome_from_times([6.0] * 5), config=config)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.zone = "TOO_EASY"

    def test_same_input_same_result(self, config, policy):
        """Analysis is deterministic for a fixed bootstrap seed."""
        outcome = outcome_from_times([float(v % 13) for v in range(50)])
        analyzer = BatchAnalyzer(config, policy)
        assert analyzer.analyze(outcome) == analyzer.analyze(outcome)

    def test_empty_outcome(self, config):
        result = analyze(outcome_from_times([]), config=config)

        assert result.runs == 0
        assert result.histogram == ()
        assert result.score_curve is None
        assert result.confidence.sample_size_adequacy == "insufficient"


class TestLevelSummary:
    def test_no_levels(self):
        assert level_summary(()) is None

    def test_statistics(self):
        stats = level_summary([4.0, 2.0, 8.0, 6.0])
        assert stats.median == 5.0
        assert stats.max == 8.0
        assert stats.mean == 5.0


class TestResultSerialization:
    """Tests for AnalysisResult.to_dict / from_dict."""

    def test_round_trip(self, config):
        outcome = OutcomeBuilder(levels=[7.0, 9.0]).build([5.0, 6.0, 12.0], timeouts=1)
        result = analyze(outcome, config=config)

        assert AnalysisResult.from_dict(result.to_dict()) == result

    def test_without_raw_vectors(self, config):
        data = analyze(outcome_from_times([5.0, 6.0]), config=config).to_dict(include_raw=False)

        assert "times" not in data
        assert "scores" not in data
        assert data["survival"]["median"] == 5.5
        assert isinstance(data["histogram"], list)


class TestParameterSuggestion:
    """Tests for with_parameter_suggestion."""

    def test_appends_proposal(self, config):
        result = analyze(outcome_from_times([1.0] * 10), config=config)
        param = ParamSpec("speed", 1.0, 20.0, HardDirection.HIGHER)
        updated = with_parameter_suggestion(result, param, 10.0)

        assert len(updated.suggestions) == len(result.suggestions) + 1
        assert "Lowering 'speed' from 10.00 to 8.10" in updated.suggestions[-1]
        assert result.suggestions == updated.suggestions[:-1]

    def test_flow_unchanged(self, config):
        result = analyze(outcome_from_times([10.0] * 10), config=config)
        param = ParamSpec("speed", 1.0, 20.0)
        assert with_parameter_suggestion(result, param, 10.0) is result
