"""Bundled decision strategies."""

from flowzone.strategies.heuristic import HeuristicStrategy
from flowzone.strategies.random_strategy import RandomStrategy

STRATEGIES = {
    "random": RandomStrategy,
    "heuristic": HeuristicStrategy,
}

__all__ = ["STRATEGIES", "HeuristicStrategy", "RandomStrategy"]
