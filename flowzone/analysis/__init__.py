"""Statistical analysis of batch outcomes."""

from flowzone.analysis.analyzer import BatchAnalyzer, analyze, with_parameter_suggestion
from flowzone.analysis.types import (
    AnalysisResult,
    Confidence,
    DeathPattern,
    HistogramBucket,
    LevelStats,
    ScoreCurve,
    SurvivalStats,
)

__all__ = [
    "AnalysisResult",
    "BatchAnalyzer",
    "Confidence",
    "DeathPattern",
    "HistogramBucket",
    "LevelStats",
    "ScoreCurve",
    "SurvivalStats",
    "analyze",
    "with_parameter_suggestion",
]
