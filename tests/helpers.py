"""Reusable test helpers for htnplan tests.

Provides small world states and spy effects/preconditions that record how
often the planner touched them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import Field

from htnplan.core.state import WorldState


class CounterState(WorldState):
    """Generic state with integer counters, flags and an append-only log."""

    a: int = 0
    b: int = 0
    c: int = 0
    flag: bool = False
    log: list[str] = Field(default_factory=list)


def increment(field: str, by: int = 1) -> Callable[[Any], None]:
    """Effect adding *by* to the counter *field*."""

    def _effect(state: Any) -> None:
        setattr(state, field, getattr(state, field) + by)

    return _effect


def append(entry: str) -> Callable[[Any], None]:
    """Effect appending *entry* to ``state.log``."""

    def _effect(state: Any) -> None:
        state.log.append(entry)

    return _effect


def set_flag(value: bool = True) -> Callable[[Any], None]:
    def _effect(state: Any) -> None:
        state.flag = value

    return _effect


def always(value: bool) -> Callable[[Any], bool]:
    return lambda _state: value


class Spy:
    """Callable spy usable as an effect or precondition.

    Args:
        returns: Value returned on every call (``True`` suits preconditions;
            effects ignore the return value).
    """

    def __init__(self, returns: bool = True) -> None:
        self.returns = returns
        self.calls: list[dict[str, Any]] = []

    def __call__(self, state: WorldState) -> bool:
        self.calls.append(state.model_dump())
        return self.returns

    @property
    def call_count(self) -> int:
        return len(self.calls)
