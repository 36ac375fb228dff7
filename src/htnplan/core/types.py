"""Shared type definitions for htnplan."""

from __future__ import annotations

__all__ = [
    "ActionId",
    "NodeKind",
    "Plan",
    "PlanningResult",
    "TraceFrame",
]

from collections.abc import Iterable, Iterator
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from htnplan.core.errors import PlanNotFoundError
from htnplan.core.state import WorldState

# --- Action identity ---

ActionId = str  # e.g., "cook_dinner"; opaque to the planner


# --- Task kinds ---


class NodeKind(StrEnum):
    """Variants of a task graph node."""

    PRIMITIVE = "primitive"  # leaf, one action
    METHOD = "method"  # OR: first satisfiable alternative
    SEQUENCE = "sequence"  # AND: all steps in order


# --- Plan ---


class Plan(BaseModel):
    """An ordered sequence of action identifiers.

    Plans form a monoid under ``+``: concatenation is associative and
    :meth:`empty` is the identity.
    """

    model_config = ConfigDict(frozen=True)

    actions: tuple[ActionId, ...] = ()

    @classmethod
    def empty(cls) -> Plan:
        return cls()

    @classmethod
    def of(cls, *actions: ActionId) -> Plan:
        return cls(actions=actions)

    @classmethod
    def concat(cls, plans: Iterable[Plan]) -> Plan:
        """Concatenate *plans* in iteration order."""
        actions: list[ActionId] = []
        for plan in plans:
            actions.extend(plan.actions)
        return cls(actions=tuple(actions))

    def __add__(self, other: object) -> Plan:
        if not isinstance(other, Plan):
            return NotImplemented
        return Plan(actions=self.actions + other.actions)

    def __iter__(self) -> Iterator[ActionId]:  # type: ignore[override]
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __bool__(self) -> bool:
        # An empty plan is still a successful plan; never falsy.
        return True

    def __str__(self) -> str:
        return " ".join(self.actions)


# --- Planning result ---


class PlanningResult(BaseModel):
    """Outcome of a top-level planning call.

    Attributes:
        root: Label of the task that was planned.
        plan: The plan, or ``None`` when no decomposition was found.
        final_state: State after every effect on the winning path, or an
            untouched copy of the initial state on failure.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: str
    plan: Plan | None = None
    final_state: WorldState

    @property
    def success(self) -> bool:
        return self.plan is not None

    def unwrap(self) -> Plan:
        """Return the plan, or raise :class:`PlanNotFoundError`."""
        if self.plan is None:
            raise PlanNotFoundError(self.root)
        return self.plan


# --- Trace frames ---


class TraceFrame(BaseModel):
    """One entry of the active search path: a node label and the state on entry."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    label: str
    state: WorldState = Field(repr=False)
