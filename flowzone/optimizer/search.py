"""Immutable binary-search state over one parameter's range."""

from __future__ import annotations

from dataclasses import dataclass, replace

from flowzone.zone.classifier import Verdict
from flowzone.zone.params import HardDirection, ParamSpec

DEFAULT_EPSILON = 0.001
DEFAULT_MAX_ITERATIONS = 20


@dataclass(frozen=True)
class SearchState:
    """Current interval [low, high] and termination flags."""

    low: float
    high: float
    iteration: int = 0
    last_verdict: Verdict | None = None
    done: bool = False
    found: bool = False

    @classmethod
    def initial(cls, param: ParamSpec) -> SearchState:
        return cls(low=param.min, high=param.max)

    @property
    def midpoint(self) -> float:
        return (self.low + self.high) / 2


def step(
    state: SearchState,
    verdict: Verdict,
    direction: HardDirection,
    epsilon: float = DEFAULT_EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> SearchState:
    """Narrow the interval after probing ``state.midpoint``.

    TOO_HARD moves toward the easier bound, TOO_EASY toward the harder one.
    FLOW ends the search successfully; a collapsed interval or an exhausted
    iteration budget ends it unsuccessfully.
    """
    if state.done:
        return state

    iteration = state.iteration + 1
    if verdict is Verdict.FLOW:
        return replace(state, iteration=iteration, last_verdict=verdict, done=True, found=True)

    mid = state.midpoint
    low, high = state.low, state.high
    higher_is_harder = direction is HardDirection.HIGHER
    if (verdict is Verdict.TOO_HARD) == higher_is_harder:
        high = mid
    else:
        low = mid

    done = abs(high - low) < epsilon or iteration >= max_iterations
    return SearchState(low=low, high=high, iteration=iteration, last_verdict=verdict, done=done)
