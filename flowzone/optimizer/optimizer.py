"""Flow Zone parameter search.

Bisects one scalar parameter: each iteration probes the midpoint of the
current interval with a full batch, classifies it, and keeps the half that
points toward the Flow Zone.

The batch oracle is stochastic (random strategies, random entities), so
this is a heuristic hill-climb over a noisy signal rather than a
guaranteed root-find: a noisy verdict near a threshold can discard the
half that actually contains the Flow Zone. With a deterministic oracle the
search is deterministic.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from flowzone.analysis.analyzer import BatchAnalyzer
from flowzone.analysis.types import AnalysisResult
from flowzone.config import FlowConfig
from flowzone.errors import ConfigError
from flowzone.experiments.batch import BatchOptions, run_batch
from flowzone.experiments.parallel import run_batch_parallel
from flowzone.optimizer.search import DEFAULT_EPSILON, DEFAULT_MAX_ITERATIONS, SearchState, step
from flowzone.zone.classifier import Verdict
from flowzone.zone.params import HardDirection, ParamSpec
from flowzone.zone.policy import ZonePolicyConfig

logger = logging.getLogger(__name__)

# entity_factory(config, rng) and strategy_factory(options, rng)
ConfiguredEntityFactory = Callable[[dict[str, Any], Any], Any]
ConfiguredStrategyFactory = Callable[[dict[str, Any], Any], Any]

# Default search parameter per bundled game
DEFAULT_PARAMS: dict[str, ParamSpec] = {
    "example": ParamSpec(
        name="initial_speed",
        min=1.0,
        max=20.0,
        hard_direction=HardDirection.HIGHER,
    ),
    "stack-tower": ParamSpec(
        name="bot_error",
        min=2.0,
        max=40.0,
        hard_direction=HardDirection.HIGHER,
        strategy_options={"action_chance": 0.0},
        policy_overrides={"level_mode": True, "min_median_level": 5, "max_median_level": 25},
    ),
}


@dataclass(frozen=True)
class IterationRecord:
    iteration: int
    value: float
    verdict: Verdict
    median_seconds: float
    timeout_rate: float
    median_level: float | None = None


@dataclass(frozen=True)
class OptimizationResult:
    """Most recent probe and whether it landed in the Flow Zone."""

    config: dict[str, Any]
    result: AnalysisResult
    found: bool
    iterations: int
    history: tuple[IterationRecord, ...] = field(default=())


class Optimizer:
    """Binary search for a parameter value that classifies as FLOW."""

    def __init__(
        self,
        runs: int = 50,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        epsilon: float = DEFAULT_EPSILON,
        policy: ZonePolicyConfig | None = None,
        config: FlowConfig | None = None,
        workers: int = 1,
        seed: int | None = None,
        iteration_callback: Callable[[IterationRecord], None] | None = None,
    ):
        """Initialize the optimizer.

        Args:
            runs: Trials per probe
            max_iterations: Probe budget
            epsilon: Interval width at which the search gives up
            policy: Zone policy for every probe (default: the parameter's tuning policy)
            config: Trial length and analysis constants
            workers: Worker processes per probe batch (1 = serial)
            seed: Base seed for every probe batch
            iteration_callback: Optional callback(IterationRecord) after each probe
        """
        if runs < 1:
            raise ConfigError(f"runs must be >= 1, got {runs}")
        if max_iterations < 1:
            raise ConfigError(f"max_iterations must be >= 1, got {max_iterations}")
        self.runs = runs
        self.max_iterations = max_iterations
        self.epsilon = epsilon
        self.policy = policy
        self.config = config or FlowConfig()
        self.workers = workers
        self.seed = seed if seed is not None else self.config.seed
        self.iteration_callback = iteration_callback

    def optimize(
        self,
        entity_factory: ConfiguredEntityFactory,
        strategy_factory: ConfiguredStrategyFactory,
        strategy_options: dict[str, Any] | None,
        param: ParamSpec,
        base_config: dict[str, Any] | None = None,
    ) -> OptimizationResult:
        """Search ``param`` for a Flow Zone value.

        Probes run strictly one after another.

        Args:
            entity_factory: Callable(config_dict, rng) returning an entity
            strategy_factory: Callable(options_dict, rng) returning a strategy
            strategy_options: Strategy options (param defaults fill the gaps)
            param: Parameter to search
            base_config: Fixed entity config the probed value is merged into

        Returns:
            OptimizationResult for the most recent probe
        """
        policy = self.policy if self.policy is not None else param.tuning_policy()
        analyzer = BatchAnalyzer(self.config, policy)
        options = {**param.strategy_options, **(strategy_options or {})}
        strategy = partial(strategy_factory, options)

        logger.info(
            f"Optimizing {param.name} in [{param.min}, {param.max}] "
            f"({self.runs} runs/iteration, max {self.max_iterations} iterations)"
        )

        state = SearchState.initial(param)
        history: list[IterationRecord] = []
        config: dict[str, Any] = {}
        result: AnalysisResult | None = None
        while not state.done:
            value = state.midpoint
            config = {**(base_config or {}), param.name: value}
            outcome = self._run_probe(partial(entity_factory, config), strategy)
            result = analyzer.analyze(outcome)
            verdict = Verdict(result.zone)

            record = IterationRecord(
                iteration=state.iteration + 1,
                value=value,
                verdict=verdict,
                median_seconds=result.survival.median,
                timeout_rate=result.timeout_rate,
                median_level=result.level_stats.median if result.level_stats else None,
            )
            history.append(record)
            logger.info(
                f"iter {record.iteration:2d}: {param.name}={value:.3f} -> {verdict.value} "
                f"(median {record.median_seconds:.1f}s, timeouts {record.timeout_rate * 100:.0f}%)"
            )
            if self.iteration_callback:
                self.iteration_callback(record)

            state = step(state, verdict, param.hard_direction, self.epsilon, self.max_iterations)

        if state.found:
            logger.info(f"Flow Zone found at {param.name}={config[param.name]:.4f}")
        else:
            logger.info(
                f"No Flow Zone value found; closest probe {param.name}={config[param.name]:.4f}"
            )

        return OptimizationResult(
            config=config,
            result=result,
            found=state.found,
            iterations=state.iteration,
            history=tuple(history),
        )

    def optimize_by_name(
        self,
        game_name: str,
        entity_factory: ConfiguredEntityFactory,
        strategy_factory: ConfiguredStrategyFactory,
        strategy_options: dict[str, Any] | None = None,
    ) -> OptimizationResult:
        """Optimize a bundled game using its default search parameter.

        Raises:
            ConfigError: No default parameter is registered for game_name
        """
        param = DEFAULT_PARAMS.get(game_name)
        if param is None:
            raise ConfigError(
                f"No default optimization parameter for game '{game_name}'. "
                f"Available: {', '.join(sorted(DEFAULT_PARAMS))}"
            )
        return self.optimize(entity_factory, strategy_factory, strategy_options, param)

    def _run_probe(self, entity_factory: Any, strategy_factory: Any):
        options = BatchOptions.from_config(self.config, seed=self.seed)
        tick_budget = self.config.tick_budget
        if self.workers > 1:
            return run_batch_parallel(
                entity_factory, strategy_factory, self.runs, tick_budget, self.workers, options
            )
        return run_batch(entity_factory, strategy_factory, self.runs, tick_budget, options)
