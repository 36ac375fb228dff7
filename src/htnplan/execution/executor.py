"""Plan executor: runs the real-world operation behind each planned action.

Execution is strictly ordered and stops at the first failing handler;
steps after a failure are never attempted. Unknown actions are rejected
before any handler runs.
"""

from __future__ import annotations

__all__ = ["ExecutionReport", "ExecutionStep", "PlanExecutor"]

import time
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field

from htnplan.core.errors import ActionExecutionError, UnknownActionError

if TYPE_CHECKING:
    from htnplan.core.types import Plan
    from htnplan.execution.registry import ActionRegistry

logger = structlog.get_logger(__name__)


class ExecutionStep(BaseModel):
    """Outcome of one executed action."""

    index: int = Field(ge=0)
    action: str
    success: bool
    result: Any = None
    error: str | None = None
    duration_ms: float = 0.0


class ExecutionReport(BaseModel):
    """Outcome of executing a whole plan."""

    steps: list[ExecutionStep] = Field(default_factory=list)
    total_actions: int = 0

    @property
    def completed(self) -> bool:
        """``True`` if every action ran and succeeded."""
        return len(self.steps) == self.total_actions and all(s.success for s in self.steps)

    @property
    def failed_step(self) -> ExecutionStep | None:
        for step in self.steps:
            if not step.success:
                return step
        return None


class PlanExecutor:
    """Invokes registered handlers for each action of a plan, in order.

    Args:
        registry: Handlers for the action identifiers the plans may contain.
        raise_on_error: When ``True``, a failing handler raises
            :class:`~htnplan.core.errors.ActionExecutionError` instead of
            being recorded in the report.
    """

    def __init__(self, registry: ActionRegistry, *, raise_on_error: bool = False) -> None:
        self._registry = registry
        self._raise_on_error = raise_on_error

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    def execute(self, plan: Plan, context: Any = None) -> ExecutionReport:
        """Execute *plan*, passing *context* to every handler.

        Raises:
            UnknownActionError: If any action has no registered handler.
                Raised before any handler runs.
            ActionExecutionError: If a handler fails and ``raise_on_error``
                is set.
        """
        actions = list(plan.actions)
        missing = self._registry.missing(actions)
        if missing:
            raise UnknownActionError(missing)

        report = ExecutionReport(total_actions=len(actions))
        for index, name in enumerate(actions):
            handler = self._registry.get(name).handler
            start = time.monotonic()
            try:
                result = handler(context)
            except Exception as exc:
                elapsed = (time.monotonic() - start) * 1000.0
                logger.warning("execution.step.failed", action=name, index=index, error=str(exc))
                if self._raise_on_error:
                    raise ActionExecutionError(name, index, exc) from exc
                report.steps.append(
                    ExecutionStep(
                        index=index,
                        action=name,
                        success=False,
                        error=str(exc),
                        duration_ms=elapsed,
                    )
                )
                break
            report.steps.append(
                ExecutionStep(
                    index=index,
                    action=name,
                    success=True,
                    result=result,
                    duration_ms=(time.monotonic() - start) * 1000.0,
                )
            )
            logger.debug("execution.step.done", action=name, index=index)

        logger.info(
            "execution.finished",
            completed=report.completed,
            executed=len(report.steps),
            total=report.total_actions,
        )
        return report
