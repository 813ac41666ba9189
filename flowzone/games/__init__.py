"""Bundled toy games."""

from flowzone.games.example import ExampleGame
from flowzone.games.stack_tower import StackTowerGame

GAMES = {
    "example": ExampleGame,
    "stack-tower": StackTowerGame,
}

__all__ = ["GAMES", "ExampleGame", "StackTowerGame"]
