"""Value types produced by the statistical analyzer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class SurvivalStats:
    """Summary statistics of a survival-seconds vector."""

    mean: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    stddev: float = 0.0
    p25: float = 0.0
    p75: float = 0.0
    p90: float = 0.0
    p95: float = 0.0


@dataclass(frozen=True)
class HistogramBucket:
    start: float
    end: float
    count: int
    bar: str


@dataclass(frozen=True)
class DeathPattern:
    skewness: float = 0.0
    kurtosis: float = 0.0
    cluster: str = "uniform"  # "early" | "late" | "uniform"


@dataclass(frozen=True)
class ScoreCurve:
    """Mean score trajectory and its growth shape."""

    pattern: str  # "FLAT" | "LINEAR" | "EXPONENTIAL"
    growth_first_half: float
    growth_second_half: float
    growth_ratio: float
    points: tuple[float, ...]


@dataclass(frozen=True)
class Confidence:
    """Bootstrap confidence interval around the median survival time."""

    low: float
    high: float
    ci_width: float
    sample_size_adequacy: str  # "adequate" | "marginal" | "insufficient"
    recommended_runs: int
    confidence: float = 0.95


@dataclass(frozen=True)
class LevelStats:
    mean: float
    median: float
    max: float
    p25: float
    p75: float


@dataclass(frozen=True)
class AnalysisResult:
    """Durable record of one analyzed batch.

    Persisted to history, rendered to reports and pushed to the dashboard.
    """

    name: str
    runs: int
    survival: SurvivalStats
    histogram: tuple[HistogramBucket, ...]
    timeout_rate: float
    avg_score: float
    max_score: float
    death_pattern: DeathPattern
    confidence: Confidence
    zone: str
    emoji: str
    advice: str
    suggestions: tuple[str, ...] = ()
    score_curve: ScoreCurve | None = None
    level_stats: LevelStats | None = None
    level_mode: bool = False
    genre: str | None = None
    times: tuple[float, ...] = field(default=(), repr=False)
    scores: tuple[float, ...] = field(default=(), repr=False)

    def with_suggestions(self, suggestions: list[str]) -> AnalysisResult:
        """Copy of this result with a different suggestion list."""
        return replace(self, suggestions=tuple(suggestions))

    def to_dict(self, include_raw: bool = True) -> dict[str, Any]:
        """JSON-safe representation."""
        data = asdict(self)
        data["histogram"] = [dict(b) for b in data["histogram"]]
        data["suggestions"] = list(self.suggestions)
        if self.score_curve is not None:
            data["score_curve"]["points"] = list(self.score_curve.points)
        if include_raw:
            data["times"] = list(self.times)
            data["scores"] = list(self.scores)
        else:
            data.pop("times")
            data.pop("scores")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        """Rebuild a result from :meth:`to_dict` output."""
        curve = data.get("score_curve")
        if curve:
            curve = {**curve, "points": tuple(curve["points"])}
        level = data.get("level_stats")
        return cls(
            name=data["name"],
            runs=data["runs"],
            survival=SurvivalStats(**data["survival"]),
            histogram=tuple(HistogramBucket(**b) for b in data.get("histogram", [])),
            timeout_rate=data["timeout_rate"],
            avg_score=data.get("avg_score", 0.0),
            max_score=data.get("max_score", 0.0),
            death_pattern=DeathPattern(**data.get("death_pattern", {})),
            confidence=Confidence(**data["confidence"]),
            zone=data["zone"],
            emoji=data.get("emoji", ""),
            advice=data.get("advice", ""),
            suggestions=tuple(data.get("suggestions", [])),
            score_curve=ScoreCurve(**curve) if curve else None,
            level_stats=LevelStats(**level) if level else None,
            level_mode=data.get("level_mode", False),
            genre=data.get("genre"),
            times=tuple(data.get("times", [])),
            scores=tuple(data.get("scores", [])),
        )
