"""Summary statistics over plain float sequences.

Uses the standard library only. Every function is pure: inputs are never
sorted or mutated in place, and empty input yields zeros.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from flowzone.analysis.types import SurvivalStats


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear-interpolated percentile of an already sorted sequence.

    index = p / 100 * (n - 1), interpolated between floor and ceil.

    Args:
        sorted_values: Values in ascending order
        p: Percentile in [0, 100]

    Returns:
        Interpolated value, 0.0 for empty input
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    index = p / 100 * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(sorted_values[lower])
    fraction = index - lower
    return sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * fraction


def median(values: Sequence[float]) -> float:
    return percentile(sorted(values), 50)


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    n = len(values)
    if n == 0:
        return 0.0
    mu = sum(values) / n
    return math.sqrt(sum((v - mu) ** 2 for v in values) / n)


def summarize(values: Sequence[float]) -> SurvivalStats:
    """Mean, median, range, stddev and upper percentiles of values."""
    if not values:
        return SurvivalStats()
    ordered = sorted(values)
    return SurvivalStats(
        mean=mean(ordered),
        median=percentile(ordered, 50),
        min=ordered[0],
        max=ordered[-1],
        stddev=stddev(ordered),
        p25=percentile(ordered, 25),
        p75=percentile(ordered, 75),
        p90=percentile(ordered, 90),
        p95=percentile(ordered, 95),
    )
