"""Batch analysis: from raw outcome vectors to an AnalysisResult."""

from __future__ import annotations

from flowzone.analysis.confidence import bootstrap_confidence
from flowzone.analysis.distribution import death_pattern, histogram, score_curve
from flowzone.analysis.statistics import mean, percentile, summarize
from flowzone.analysis.types import AnalysisResult, LevelStats
from flowzone.config import FlowConfig
from flowzone.experiments.batch import BatchOutcome
from flowzone.zone.classifier import Verdict, classify, generate_suggestions, suggest_parameter
from flowzone.zone.params import ParamSpec
from flowzone.zone.policy import ZonePolicyConfig


class BatchAnalyzer:
    """Computes every statistic of a batch and classifies it.

    The analyzer holds configuration only; ``analyze`` is a pure function of
    its input and never mutates the outcome vectors.
    """

    def __init__(
        self,
        config: FlowConfig | None = None,
        policy: ZonePolicyConfig | None = None,
        bootstrap_seed: int | None = 0,
    ):
        """Initialize the analyzer.

        Args:
            config: Calibration constants and trial length (defaults to FlowConfig())
            policy: Zone policy (defaults to the genre-less time policy)
            bootstrap_seed: Seed for bootstrap resampling, None for fresh entropy
        """
        self.config = config or FlowConfig()
        self.policy = policy or ZonePolicyConfig()
        self.bootstrap_seed = bootstrap_seed

    def analyze(self, outcome: BatchOutcome, name: str | None = None) -> AnalysisResult:
        """Analyze one batch.

        Args:
            outcome: Raw batch vectors
            name: Result name (defaults to the outcome's name)

        Returns:
            Immutable AnalysisResult
        """
        cfg = self.config
        times = outcome.times
        survival = summarize(times)
        timeout_rate = outcome.timeout_rate
        level_stats = level_summary(outcome.levels)
        curve = score_curve(outcome.curves, cfg.max_seconds, cfg.exponential_ratio)
        deaths = death_pattern(times)
        confidence = bootstrap_confidence(
            times,
            iterations=cfg.bootstrap_iterations,
            confidence=cfg.bootstrap_confidence,
            seed=self.bootstrap_seed,
            adequate_width=cfg.ci_adequate_width,
            marginal_width=cfg.ci_marginal_width,
            min_recommended_runs=cfg.min_recommended_runs,
        )
        decision = classify(
            self.policy,
            survival.median,
            timeout_rate,
            level_stats.median if level_stats else None,
        )
        suggestions = generate_suggestions(
            decision.verdict,
            survival.median,
            timeout_rate,
            curve.pattern if curve else None,
            deaths.cluster,
        )

        return AnalysisResult(
            name=name or outcome.name,
            runs=outcome.run_count,
            survival=survival,
            histogram=tuple(histogram(times, cfg.histogram_buckets)),
            timeout_rate=timeout_rate,
            avg_score=mean(outcome.scores),
            max_score=max(outcome.scores) if outcome.scores else 0.0,
            death_pattern=deaths,
            confidence=confidence,
            zone=decision.verdict.value,
            emoji=decision.emoji,
            advice=decision.advice,
            suggestions=tuple(suggestions),
            score_curve=curve,
            level_stats=level_stats,
            level_mode=decision.level_mode,
            genre=self.policy.genre,
            times=tuple(times),
            scores=tuple(outcome.scores),
        )


def level_summary(levels: tuple[float, ...] | list[float]) -> LevelStats | None:
    """Level statistics, or None when no trial recorded a level."""
    if not levels:
        return None
    ordered = sorted(levels)
    return LevelStats(
        mean=mean(ordered),
        median=percentile(ordered, 50),
        max=ordered[-1],
        p25=percentile(ordered, 25),
        p75=percentile(ordered, 75),
    )


def analyze(
    outcome: BatchOutcome,
    policy: ZonePolicyConfig | None = None,
    config: FlowConfig | None = None,
    name: str | None = None,
) -> AnalysisResult:
    """Shorthand for ``BatchAnalyzer(config, policy).analyze(outcome, name)``."""
    return BatchAnalyzer(config, policy).analyze(outcome, name)


def with_parameter_suggestion(
    result: AnalysisResult, param: ParamSpec, current_value: float
) -> AnalysisResult:
    """Copy of result with a concrete value proposal for param appended."""
    suggestion = suggest_parameter(Verdict(result.zone), param, current_value)
    if suggestion is None:
        return result
    return result.with_suggestions([*result.suggestions, suggestion.message])
