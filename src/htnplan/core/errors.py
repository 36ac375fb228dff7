"""Exception hierarchy for htnplan.

Search failure is not an exception: the engine reports it as a ``None``
plan. ``PlanNotFoundError`` exists for callers that prefer to raise,
via :meth:`htnplan.core.types.PlanningResult.unwrap`.
"""

from __future__ import annotations

__all__ = [
    "ActionExecutionError",
    "DomainConfigurationError",
    "HtnPlanError",
    "PlanNotFoundError",
    "UnknownActionError",
]


class HtnPlanError(Exception):
    """Base class for all htnplan errors."""


class DomainConfigurationError(HtnPlanError, ValueError):
    """Raised when a task graph or domain is malformed at build time."""


class PlanNotFoundError(HtnPlanError):
    """Raised when no decomposition of the root task satisfies its preconditions."""

    def __init__(self, root: str) -> None:
        super().__init__(f"No plan found for task '{root}'")
        self.root = root


class UnknownActionError(HtnPlanError, KeyError):
    """Raised when a plan contains an action with no registered handler."""

    def __init__(self, actions: list[str]) -> None:
        super().__init__(f"No handler registered for actions: {', '.join(actions)}")
        self.actions = actions

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class ActionExecutionError(HtnPlanError):
    """Raised when an action handler fails during plan execution."""

    def __init__(self, action: str, index: int, cause: BaseException) -> None:
        super().__init__(f"Action '{action}' (step {index}) failed: {cause}")
        self.action = action
        self.index = index
        self.cause = cause
