"""Tests for the bootstrap confidence interval."""

from __future__ import annotations

import pytest

from flowzone.analysis.confidence import (
    adequacy,
    bootstrap_confidence,
    median_standard_error,
    recommended_runs,
)


class TestAdequacy:
    """Tests for CI-width verdicts."""

    def test_thresholds(self):
        assert adequacy(1.5, 50) == "adequate"
        assert adequacy(2.0, 50) == "adequate"
        assert adequacy(4.0, 50) == "marginal"
        assert adequacy(5.1, 50) == "insufficient"

    def test_single_sample_insufficient(self):
        """A zero-width interval from one run is still insufficient."""
        assert adequacy(0.0, 1) == "insufficient"

    def test_custom_widths(self):
        assert adequacy(3.0, 50, adequate=3.0, marginal=6.0) == "adequate"


class TestRecommendedRuns:
    """Tests for the variance-based run estimate."""

    def test_floor(self):
        """No spread still recommends the minimum."""
        assert recommended_runs(0.0) == 30
        assert recommended_runs(0.0, minimum=50) == 50

    def test_grows_with_spread(self):
        assert recommended_runs(5.0) < recommended_runs(10.0) < recommended_runs(20.0)

    def test_higher_confidence_needs_more(self):
        assert recommended_runs(10.0, confidence=0.99) > recommended_runs(10.0, confidence=0.9)


class TestMedianStandardError:
    def test_scales_with_spread_and_size(self):
        assert median_standard_error(0.0, 10) == 0.0
        assert median_standard_error(2.0, 25) == pytest.approx(2 * median_standard_error(1.0, 25))
        assert median_standard_error(1.0, 100) == pytest.approx(median_standard_error(1.0, 25) / 2)


class TestBootstrapConfidence:
    """Tests for bootstrap_confidence.

    The iteration count (1000 by default) and the adequacy widths are
    calibration constants; the cases below hold for any reasonable choice.
    """

    def test_brackets_median(self):
        """A tight bimodal sample brackets its median and is adequate."""
        ci = bootstrap_confidence([8.0] * 50 + [10.0] * 50, iterations=500)

        assert ci.low < 9.0 < ci.high
        assert ci.ci_width <= 2.0
        assert ci.sample_size_adequacy == "adequate"
        assert ci.confidence == 0.95

    def test_small_spread_sample_insufficient(self):
        """Ten widely split runs cannot pin down the median."""
        ci = bootstrap_confidence([1.0] * 5 + [60.0] * 5, iterations=500)

        assert ci.sample_size_adequacy == "insufficient"
        assert ci.recommended_runs > 10

    def test_lower_spread_narrower(self):
        """Same size, same seed: the tighter sample gets the narrower interval."""
        tight = [10.0 + i * 0.1 for i in range(40)]
        loose = [10.0 + i * 1.0 for i in range(40)]

        assert (
            bootstrap_confidence(tight, iterations=300).ci_width
            < bootstrap_confidence(loose, iterations=300).ci_width
        )

    def test_width_follows_spread_not_shape(self):
        """A two-cluster sample with less spread than an even ramp stays narrower."""
        clustered = [0.0] * 50 + [10.0] * 50
        ramp = [i * 0.4 for i in range(100)]

        narrow = bootstrap_confidence(clustered, iterations=300)
        wide = bootstrap_confidence(ramp, iterations=300)

        assert narrow.ci_width < wide.ci_width
        assert narrow.low < 5.0 < narrow.high
        assert wide.low < 19.8 < wide.high

    def test_width_matches_bounds(self):
        ci = bootstrap_confidence([float(v % 11) for v in range(40)], iterations=200)
        assert ci.ci_width == pytest.approx(ci.high - ci.low, abs=0.002)

    def test_seeded_reproducible(self):
        values = [float(v % 17) for v in range(60)]
        assert bootstrap_confidence(values, seed=5) == bootstrap_confidence(values, seed=5)

    def test_input_not_mutated(self):
        values = [9.0, 3.0, 7.0, 1.0]
        bootstrap_confidence(values, iterations=50)
        assert values == [9.0, 3.0, 7.0, 1.0]

    def test_single_value(self):
        ci = bootstrap_confidence([5.0], iterations=50)
        assert ci.low == ci.high == 5.0
        assert ci.ci_width == 0.0
        assert ci.sample_size_adequacy == "insufficient"

    def test_empty(self):
        ci = bootstrap_confidence([])
        assert ci.sample_size_adequacy == "insufficient"
        assert ci.recommended_runs == 30
