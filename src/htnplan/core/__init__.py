"""Core htnplan types: world state, plans, errors."""

from htnplan.core.errors import (
    ActionExecutionError,
    DomainConfigurationError,
    HtnPlanError,
    PlanNotFoundError,
    UnknownActionError,
)
from htnplan.core.state import WorldState
from htnplan.core.types import ActionId, NodeKind, Plan, PlanningResult, TraceFrame

__all__ = [
    "ActionExecutionError",
    "ActionId",
    "DomainConfigurationError",
    "HtnPlanError",
    "NodeKind",
    "Plan",
    "PlanNotFoundError",
    "PlanningResult",
    "TraceFrame",
    "UnknownActionError",
    "WorldState",
]
