"""Confidence interval for the median survival time.

The iteration count and the adequacy widths are empirical calibration
constants; they are exposed as keyword arguments (and in FlowConfig) so
they can be revised without touching the algorithm.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from statistics import NormalDist

from flowzone.analysis.statistics import percentile, stddev
from flowzone.analysis.types import Confidence

DEFAULT_ITERATIONS = 1000
ADEQUATE_WIDTH = 2.0  # seconds, i.e. roughly +/-1s around the median
MARGINAL_WIDTH = 5.0
TARGET_WIDTH = 2.0
MIN_RECOMMENDED_RUNS = 30
MEDIAN_SE_FACTOR = math.sqrt(math.pi / 2)
MIN_SPLIT = 0.25  # smallest share of the interval on either side of the median


def adequacy(
    ci_width: float,
    n: int,
    adequate: float = ADEQUATE_WIDTH,
    marginal: float = MARGINAL_WIDTH,
) -> str:
    """Sample-size verdict for a CI width. A single sample is never enough."""
    if n < 2:
        return "insufficient"
    if ci_width <= adequate:
        return "adequate"
    if ci_width <= marginal:
        return "marginal"
    return "insufficient"


def recommended_runs(
    sigma: float,
    confidence: float = 0.95,
    target_half_width: float = TARGET_WIDTH / 2,
    minimum: int = MIN_RECOMMENDED_RUNS,
) -> int:
    """Runs needed for a median CI of +/-target_half_width seconds.

    Uses the large-sample standard error of the median,
    sqrt(pi / 2) * sigma / sqrt(n), so the estimate depends on the spread
    and not on how many runs were already made.
    """
    z = NormalDist().inv_cdf(0.5 + confidence / 2)
    needed = (z * MEDIAN_SE_FACTOR * sigma / target_half_width) ** 2
    return max(minimum, math.ceil(needed))


def median_standard_error(sigma: float, n: int) -> float:
    """Large-sample standard error of the median, sqrt(pi / 2) * sigma / sqrt(n)."""
    return MEDIAN_SE_FACTOR * sigma / math.sqrt(n)


def bootstrap_confidence(
    values: Sequence[float],
    iterations: int = DEFAULT_ITERATIONS,
    confidence: float = 0.95,
    seed: int | None = 0,
    adequate_width: float = ADEQUATE_WIDTH,
    marginal_width: float = MARGINAL_WIDTH,
    min_recommended_runs: int = MIN_RECOMMENDED_RUNS,
) -> Confidence:
    """Bootstrap CI around the median of values.

    The width is 2 * z * median_standard_error, so at a fixed sample size a
    lower-spread sample never gets a wider interval. The percentile bootstrap
    of the median (seeded ``random.Random`` over the sorted values) places
    that width around the median: the share below the median follows the
    bootstrap bounds, clamped to [MIN_SPLIT, 1 - MIN_SPLIT] so the median
    stays strictly inside any non-empty interval.

    Args:
        values: Survival times in seconds (not mutated)
        iterations: Number of bootstrap resamples
        confidence: Two-sided confidence level
        seed: Seed for the resampling random source
        adequate_width: Widest CI still considered adequate
        marginal_width: Widest CI still considered marginal
        min_recommended_runs: Floor for the recommended run count

    Returns:
        Confidence descriptor
    """
    n = len(values)
    if n == 0:
        return Confidence(0.0, 0.0, 0.0, "insufficient", min_recommended_runs, confidence)

    ordered = sorted(values)
    median = percentile(ordered, 50)
    sigma = stddev(ordered)

    rng = random.Random(seed)
    medians = []
    for _ in range(iterations):
        sample = sorted(ordered[rng.randrange(n)] for _ in range(n))
        medians.append(percentile(sample, 50))
    medians.sort()

    tail = (1 - confidence) / 2 * 100
    boot_low = percentile(medians, tail)
    boot_high = percentile(medians, 100 - tail)
    if boot_high > boot_low:
        below = (median - boot_low) / (boot_high - boot_low)
    else:
        below = 0.5
    below = min(1 - MIN_SPLIT, max(MIN_SPLIT, below))

    z = NormalDist().inv_cdf(0.5 + confidence / 2)
    width = 2 * z * median_standard_error(sigma, n)
    low = median - width * below
    high = low + width

    return Confidence(
        low=round(low, 3),
        high=round(high, 3),
        ci_width=round(width, 3),
        sample_size_adequacy=adequacy(width, n, adequate_width, marginal_width),
        recommended_runs=recommended_runs(sigma, confidence, minimum=min_recommended_runs),
        confidence=confidence,
    )
