"""Flow Zone verdicts and tuning suggestions.

Classification is stateless: every call maps statistics and a policy to
one of three terminal verdicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from flowzone.zone.params import HardDirection, ParamSpec
from flowzone.zone.policy import ZonePolicyConfig

PARAM_STEP_FRACTION = 0.1
NEAR_ZERO_MEDIAN = 2.0  # seconds
VERY_HIGH_TIMEOUT_RATE = 0.8


class Verdict(Enum):
    FLOW = "FLOW"
    TOO_HARD = "TOO_HARD"
    TOO_EASY = "TOO_EASY"


EMOJI = {
    Verdict.FLOW: "✅",
    Verdict.TOO_HARD: "😵",
    Verdict.TOO_EASY: "😴",
}


@dataclass(frozen=True)
class ZoneDecision:
    verdict: Verdict
    emoji: str
    advice: str
    level_mode: bool = False


def classify(
    policy: ZonePolicyConfig,
    median_seconds: float,
    timeout_rate: float,
    median_level: float | None = None,
) -> ZoneDecision:
    """Apply a policy to aggregated statistics.

    Args:
        policy: Thresholds (time or level mode)
        median_seconds: Median survival time
        timeout_rate: Fraction of trials that hit the tick budget
        median_level: Median level reached, None when the entity has no levels

    Returns:
        ZoneDecision with verdict, emoji and a one-line rationale
    """
    if policy.level_mode and median_level is not None:
        if median_level < policy.min_median_level:
            verdict = Verdict.TOO_HARD
            advice = f"Too hard. Lower the starting difficulty (median level {median_level:.1f})."
        elif median_level > policy.max_median_level:
            verdict = Verdict.TOO_EASY
            advice = f"Too easy. Ramp difficulty up faster (median level {median_level:.1f})."
        else:
            verdict = Verdict.FLOW
            advice = (
                "Well balanced. Keep the median level between "
                f"{policy.min_median_level:g} and {policy.max_median_level:g}."
            )
        return ZoneDecision(verdict, EMOJI[verdict], advice, level_mode=True)

    if median_seconds < policy.min_median_seconds:
        verdict = Verdict.TOO_HARD
        advice = f"Too hard. Lower the starting difficulty (median survival {median_seconds:.1f}s)."
    elif timeout_rate > policy.max_timeout_rate:
        verdict = Verdict.TOO_EASY
        advice = f"Too easy. Ramp difficulty up faster (timeouts {timeout_rate * 100:.0f}%)."
    else:
        verdict = Verdict.FLOW
        advice = "Well balanced. Keep the current difficulty curve."
    return ZoneDecision(verdict, EMOJI[verdict], advice)


def generate_suggestions(
    verdict: Verdict,
    median_seconds: float,
    timeout_rate: float,
    curve_pattern: str | None = None,
    death_cluster: str | None = None,
) -> list[str]:
    """Tuning suggestions for a verdict and the batch's shape descriptors."""
    suggestions = []
    if verdict is Verdict.TOO_HARD:
        suggestions.append("Lower the starting difficulty or soften the opening section.")
        if median_seconds < NEAR_ZERO_MEDIAN:
            suggestions.append(
                f"Bots die within {NEAR_ZERO_MEDIAN:g} seconds. Lower the difficulty "
                "parameters by 20-30% or more to see an effect."
            )
        if curve_pattern == "FLAT":
            suggestions.append(
                "Score barely accumulates. Extending survival time comes first."
            )
    elif verdict is Verdict.TOO_EASY:
        suggestions.append("Raise the difficulty ramp or the starting difficulty.")
        if timeout_rate > VERY_HIGH_TIMEOUT_RATE:
            suggestions.append(
                f"{round(timeout_rate * 100)}% of runs survive to the time limit. "
                "Adjust the timeout or the difficulty."
            )
        if curve_pattern == "EXPONENTIAL":
            suggestions.append(
                "Late-game score growth is very steep. Check whether the game gets "
                "easier over time."
            )
    else:
        suggestions.append("The current settings are in the Flow Zone. Keep this difficulty range.")
        if curve_pattern == "EXPONENTIAL":
            suggestions.append(
                "Score growth is concentrated late in the run. Review the early reward structure."
            )

    if death_cluster == "early":
        suggestions.append(
            "Deaths cluster early. Reduce obstacle density or speed in the first 10 seconds."
        )
    elif death_cluster == "late":
        suggestions.append("Most runs survive until late. Review the late-game difficulty ramp.")

    return suggestions


@dataclass(frozen=True)
class ParameterSuggestion:
    name: str
    current: float
    proposed: float
    message: str


def suggest_parameter(
    verdict: Verdict, param: ParamSpec, current_value: float
) -> ParameterSuggestion | None:
    """Propose a concrete new value for one parameter.

    Moves 10% of the legal range toward easier on TOO_HARD and toward harder
    on TOO_EASY, clamped to the range. FLOW needs no change.
    """
    if verdict is Verdict.FLOW:
        return None

    harder_is_higher = param.hard_direction is HardDirection.HIGHER
    make_harder = verdict is Verdict.TOO_EASY
    delta = param.span * PARAM_STEP_FRACTION
    proposed = param.clamp(
        current_value + delta if make_harder == harder_is_higher else current_value - delta
    )
    if proposed == current_value:
        bound = "upper" if make_harder == harder_is_higher else "lower"
        message = f"'{param.name}' is already at its {bound} bound ({current_value:.2f})."
    else:
        direction = "Raising" if proposed > current_value else "Lowering"
        message = (
            f"{direction} '{param.name}' from {current_value:.2f} to {proposed:.2f} "
            "may move the game toward the Flow Zone."
        )
    return ParameterSuggestion(param.name, current_value, proposed, message)
