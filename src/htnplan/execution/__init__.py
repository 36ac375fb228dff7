"""Execution boundary - run the actions of a finished plan."""

from htnplan.execution.executor import ExecutionReport, ExecutionStep, PlanExecutor
from htnplan.execution.registry import Action, ActionRegistry

__all__ = [
    "Action",
    "ActionRegistry",
    "ExecutionReport",
    "ExecutionStep",
    "PlanExecutor",
]
