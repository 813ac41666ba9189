"""Protocols that simulated scenarios and decision strategies must implement."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from flowzone.errors import ContractViolationError

REQUIRED_ENTITY_METHODS = ("reset", "step", "is_running", "score", "difficulty", "name")
REQUIRED_STRATEGY_METHODS = ("decide",)

LevelAccessor = Callable[[], "float | None"]


@runtime_checkable
class SimulatableEntity(Protocol):
    """Minimal capability set a simulated scenario must expose.

    ``level()`` is optional and is therefore not part of the protocol; use
    :func:`resolve_level_accessor` to look it up once per instance.
    """

    def reset(self) -> None:
        """Return to the initial state of a fresh episode."""
        ...

    def step(self, action: Any) -> None:
        """Advance one tick with the given input (``None`` for no input)."""
        ...

    def is_running(self) -> bool:
        """False once the entity has died."""
        ...

    def score(self) -> float: ...

    def difficulty(self) -> float:
        """Current difficulty in [0, 1]."""
        ...

    def name(self) -> str: ...


@runtime_checkable
class DecisionStrategy(Protocol):
    """Protocol for bots that pick the next input.

    Strategies may also define ``reset_episode()``, which is called before
    every trial when present.
    """

    def decide(self, entity: SimulatableEntity) -> Any:
        """Given the current entity state, what input should be applied?"""
        ...


def _missing(obj: Any, names: tuple[str, ...]) -> list[str]:
    return [name for name in names if not callable(getattr(obj, name, None))]


def check_entity(entity: Any) -> None:
    """Raise ContractViolationError if entity lacks a required method."""
    missing = _missing(entity, REQUIRED_ENTITY_METHODS)
    if missing:
        raise ContractViolationError(f"Entity {type(entity).__name__}", missing)


def check_strategy(strategy: Any) -> None:
    """Raise ContractViolationError if strategy lacks a required method."""
    missing = _missing(strategy, REQUIRED_STRATEGY_METHODS)
    if missing:
        raise ContractViolationError(f"Strategy {type(strategy).__name__}", missing)


def resolve_level_accessor(entity: Any) -> LevelAccessor | None:
    """Return the entity's bound ``level`` method, or None if it has none."""
    accessor = getattr(entity, "level", None)
    return accessor if callable(accessor) else None
