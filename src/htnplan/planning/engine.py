"""Recursive HTN planning engine.

Walks a task graph against a mutable :class:`~htnplan.core.state.WorldState`,
simulating primitive effects and accumulating their action identifiers.

Search rules:

- Primitive: check preconditions, apply effects in order, emit the action.
- Method: try alternatives in declared order; the first success wins and is
  never revisited. The state is restored to its entry value before each
  further alternative and after the last one fails.
- Sequence: solve every step in order against the cumulative state. If any
  step fails, the state is restored to its value from before the *first*
  step, not just before the failing one.

Every node therefore either commits all of its nested effects or leaves the
state exactly as it found it. A failure propagates to the parent as a
``None`` plan; it never causes an already-resolved sibling method to pick a
different alternative.
"""

from __future__ import annotations

__all__ = ["Planner", "find_plan", "plan", "solve"]

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

from htnplan.core.types import Plan, PlanningResult, TraceFrame
from htnplan.planning.nodes import MethodTask, PrimitiveTask, SequenceTask
from htnplan.planning.trace import NullTrace, TraceKind, create_trace

if TYPE_CHECKING:
    from htnplan.core.state import WorldState
    from htnplan.planning.nodes import Domain, TaskNode
    from htnplan.planning.trace import PlannerTrace

logger = structlog.get_logger(__name__)


class _Search:
    """State of one in-flight planning call: its trace and the active path."""

    def __init__(self, trace: PlannerTrace) -> None:
        self._trace = trace
        self._frames: list[TraceFrame] = []

    @contextmanager
    def _visit(self, node: TaskNode, state: WorldState) -> Iterator[WorldState]:
        entry = state.snapshot()
        self._frames.append(TraceFrame(label=node.name, state=entry))
        self._trace.push_context(node.name, entry)
        try:
            yield entry
        finally:
            self._frames.pop()
            self._trace.pop_context()

    def _fail(self) -> None:
        self._trace.fail(tuple(self._frames))

    def solve(self, node: TaskNode, state: WorldState) -> Plan | None:
        with self._visit(node, state) as entry:
            if not node.preconditions_hold(state):
                self._fail()
                return None
            if isinstance(node, PrimitiveTask):
                return self._solve_primitive(node, state)
            if isinstance(node, MethodTask):
                return self._solve_method(node, state, entry)
            if isinstance(node, SequenceTask):
                return self._solve_sequence(node, state, entry)
            msg = f"Unsupported task node type: {type(node).__name__}"
            raise TypeError(msg)

    def _solve_primitive(self, node: PrimitiveTask, state: WorldState) -> Plan:
        node.apply(state)
        self._trace.primitive_executed(node.action, state)
        if node.action is None:
            return Plan.empty()
        return Plan.of(node.action)

    def _solve_method(
        self, node: MethodTask, state: WorldState, entry: WorldState
    ) -> Plan | None:
        for alternative in node.alternatives:
            result = self.solve(alternative, state)
            if result is not None:
                return result
            state.restore(entry)
        self._fail()
        return None

    def _solve_sequence(
        self, node: SequenceTask, state: WorldState, entry: WorldState
    ) -> Plan | None:
        plans: list[Plan] = []
        for step in node.steps:
            result = self.solve(step, state)
            if result is None:
                # Undo every completed step, not just the failing one.
                state.restore(entry)
                self._fail()
                return None
            plans.append(result)
        return Plan.concat(plans)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def solve(
    node: TaskNode,
    state: WorldState,
    trace: PlannerTrace | None = None,
) -> Plan | None:
    """Plan *node* against *state*, mutating *state* in place.

    On success *state* holds the cumulative effects of the returned plan;
    on failure it is restored to its value on entry and ``None`` is
    returned. ``begin`` / ``end`` are not sent to *trace*; see
    :func:`find_plan` for a bracketed top-level call.
    """
    return _Search(trace if trace is not None else NullTrace()).solve(node, state)


def find_plan(
    root: TaskNode,
    initial_state: WorldState,
    trace: PlannerTrace | None = None,
) -> PlanningResult:
    """Plan *root* on a private copy of *initial_state*.

    The caller's state is never mutated. The returned
    :class:`~htnplan.core.types.PlanningResult` carries the plan (or
    ``None``) and the working copy's final state.
    """
    if trace is None:
        trace = NullTrace()
    working = initial_state.snapshot()
    trace.begin()
    result = _Search(trace).solve(root, working)
    trace.end(result)
    if result is None:
        logger.info("plan.not_found", root=root.name)
    else:
        logger.info("plan.found", root=root.name, actions=list(result.actions))
    return PlanningResult(root=root.name, plan=result, final_state=working)


def plan(
    root: TaskNode,
    initial_state: WorldState,
    trace: PlannerTrace | None = None,
) -> Plan | None:
    """Return the plan for *root* from *initial_state*, or ``None``."""
    return find_plan(root, initial_state, trace).plan


class Planner:
    """Plans tasks of one :class:`~htnplan.planning.nodes.Domain`.

    Holds no per-call state, so one planner may serve concurrent callers as
    long as each call gets its own trace; a fresh trace of *trace_kind* is
    built for every call that does not pass one.

    Args:
        domain: Domain whose tasks are planned.
        trace_kind: Default trace implementation.
    """

    def __init__(self, domain: Domain[Any], trace_kind: TraceKind | str = TraceKind.NULL) -> None:
        self._domain = domain
        self._trace_kind = TraceKind(trace_kind)
        self.log = logger.bind(domain=domain.name)

    @property
    def domain(self) -> Domain[Any]:
        return self._domain

    def find_plan(
        self,
        state: WorldState,
        task: str | None = None,
        trace: PlannerTrace | None = None,
    ) -> PlanningResult:
        """Plan *task* (default: the domain root) from *state*.

        Raises:
            DomainConfigurationError: If *task* is not in the domain.
            TypeError: If *state* is not of the domain's state type.
        """
        node = self._domain.root if task is None else self._domain.task(task)
        if not isinstance(state, self._domain.state_type):
            msg = (
                f"Domain '{self._domain.name}' plans over "
                f"{self._domain.state_type.__name__}, got {type(state).__name__}"
            )
            raise TypeError(msg)
        if trace is None:
            trace = create_trace(self._trace_kind)
        self.log.debug("plan.start", task=node.name)
        return find_plan(node, state, trace)

    def plan(
        self,
        state: WorldState,
        task: str | None = None,
        trace: PlannerTrace | None = None,
    ) -> Plan | None:
        return self.find_plan(state, task, trace).plan

    def __repr__(self) -> str:
        return f"Planner(domain={self._domain.name!r}, trace_kind={self._trace_kind.value!r})"
