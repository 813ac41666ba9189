"""Distribution shape: histogram, death clustering and score-curve growth."""

from __future__ import annotations

from collections.abc import Sequence

from flowzone.analysis.statistics import mean, stddev
from flowzone.analysis.types import DeathPattern, HistogramBucket, ScoreCurve

BAR_CHAR = "█"
BAR_WIDTH = 15
DEGENERATE_BAR_WIDTH = 10

EARLY_SKEW = 1.0
LATE_SKEW = -1.0

DEFAULT_EXPONENTIAL_RATIO = 1.5  # calibration constant
FLAT_GROWTH = 1.0  # total growth below this many points is FLAT
MIN_FIRST_HALF_GROWTH = 0.001


def histogram(values: Sequence[float], buckets: int = 10) -> list[HistogramBucket]:
    """Equal-width histogram spanning [min, max] of values.

    All values equal yields a single bucket holding every value.
    """
    if not values:
        return []
    lo, hi = min(values), max(values)
    if lo == hi:
        return [HistogramBucket(lo, hi, len(values), BAR_CHAR * DEGENERATE_BAR_WIDTH)]

    step = (hi - lo) / buckets
    counts = [0] * buckets
    for v in values:
        counts[min(int((v - lo) / step), buckets - 1)] += 1
    peak = max(max(counts), 1)
    return [
        HistogramBucket(
            start=lo + i * step,
            end=lo + (i + 1) * step,
            count=count,
            bar=BAR_CHAR * round(count / peak * BAR_WIDTH),
        )
        for i, count in enumerate(counts)
    ]


def death_pattern(times: Sequence[float]) -> DeathPattern:
    """Skewness, excess kurtosis and death cluster of survival times.

    Skewness is the bias-corrected sample skewness
    ``n / ((n-1)(n-2)) * sum(z^3)`` with z standardized by the population
    standard deviation; it is 0 for fewer than three samples. Excess
    kurtosis is ``mean(z^4) - 3``. Positive skew means most players die
    early with a long right tail.
    """
    n = len(times)
    if n < 2:
        return DeathPattern()
    mu = mean(times)
    sigma = stddev(times)
    if sigma < 1e-9:
        return DeathPattern()

    z = [(t - mu) / sigma for t in times]
    skewness = n / ((n - 1) * (n - 2)) * sum(v**3 for v in z) if n >= 3 else 0.0
    kurtosis = sum(v**4 for v in z) / n - 3

    if skewness > EARLY_SKEW:
        cluster = "early"
    elif skewness < LATE_SKEW:
        cluster = "late"
    else:
        cluster = "uniform"
    return DeathPattern(round(skewness, 3), round(kurtosis, 3), cluster)


def mean_curve(curves: Sequence[Sequence[float]]) -> list[float]:
    """Column-wise mean of equally sized trajectories."""
    if not curves:
        return []
    width = len(curves[0])
    return [sum(c[i] for c in curves) / len(curves) for i in range(width)]


def score_curve(
    curves: Sequence[Sequence[float]],
    max_seconds: float,
    exponential_ratio: float = DEFAULT_EXPONENTIAL_RATIO,
) -> ScoreCurve | None:
    """Classify how the mean score grows over the trial.

    Growth is points per second between the first bucket and the middle
    bucket, then between the middle bucket and the last one.

    Args:
        curves: One sampled score trajectory per trial
        max_seconds: Trial length the buckets span
        exponential_ratio: Second-half / first-half growth ratio at or above
            which the curve counts as EXPONENTIAL

    Returns:
        ScoreCurve, or None when there are no trajectories
    """
    points = mean_curve(curves)
    buckets = len(points)
    if not points:
        return None

    half = buckets // 2
    tail = buckets - half - 1
    per_bucket = max_seconds / buckets
    growth1 = (points[half] - points[0]) / (half * per_bucket) if half > 0 else 0.0
    growth2 = (points[-1] - points[half]) / (tail * per_bucket) if tail > 0 else 0.0
    ratio = growth2 / growth1 if growth1 > MIN_FIRST_HALF_GROWTH else 1.0

    if points[-1] - points[0] < FLAT_GROWTH:
        pattern = "FLAT"
    elif ratio >= exponential_ratio:
        pattern = "EXPONENTIAL"
    else:
        pattern = "LINEAR"

    return ScoreCurve(
        pattern=pattern,
        growth_first_half=round(growth1, 3),
        growth_second_half=round(growth2, 3),
        growth_ratio=round(ratio, 3),
        points=tuple(round(p, 3) for p in points),
    )
