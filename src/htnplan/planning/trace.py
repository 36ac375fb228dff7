"""Planner trace: the diagnostic observer of a planning call.

The engine notifies a :class:`PlannerTrace` as it walks the task graph:

    begin
    push_context(do_something)
    +-- push_context(have_dinner)
    |   +-- push_context(get_dinner)
    |   |   +-- push_context(cook_dinner)
    |   |   |   primitive_executed(cook_dinner)
    |   |   pop_context
    ...
    end(plan)

``push_context`` / ``pop_context`` nest exactly like the recursive descent,
and ``fail`` receives the active path (root first) whenever a node fails.
A trace observes only: it must not mutate the state it is handed, and
nothing it does changes the search result.

One trace instance serves one in-flight planning call; none of the
implementations here lock.
"""

from __future__ import annotations

__all__ = [
    "LogTrace",
    "NullTrace",
    "PlannerTrace",
    "PrintingTrace",
    "RecordingTrace",
    "TraceEvent",
    "TraceEventKind",
    "TraceKind",
    "create_trace",
]

import sys
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from htnplan.core.state import WorldState
    from htnplan.core.types import ActionId, Plan, TraceFrame

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class PlannerTrace(Protocol):
    """Protocol that every planner trace must satisfy."""

    def begin(self) -> None:
        """Called once before the root task is visited."""
        ...

    def end(self, plan: Plan | None) -> None:
        """Called once with the final plan, or ``None`` on failure."""
        ...

    def push_context(self, label: str, state: WorldState) -> None:
        """Called on entry to a node with a snapshot of the entry state."""
        ...

    def pop_context(self) -> None:
        """Called on exit from a node, whether it succeeded or failed."""
        ...

    def primitive_executed(self, action: ActionId | None, state: WorldState) -> None:
        """Called after a primitive's effects were applied to *state*."""
        ...

    def fail(self, frames: Sequence[TraceFrame]) -> None:
        """Called when the innermost node of *frames* fails."""
        ...


# ---------------------------------------------------------------------------
# Built-in implementations
# ---------------------------------------------------------------------------


class NullTrace:
    """Trace that ignores every notification."""

    def begin(self) -> None:
        pass

    def end(self, plan: Plan | None) -> None:
        pass

    def push_context(self, label: str, state: WorldState) -> None:
        pass

    def pop_context(self) -> None:
        pass

    def primitive_executed(self, action: ActionId | None, state: WorldState) -> None:
        pass

    def fail(self, frames: Sequence[TraceFrame]) -> None:
        pass


class PrintingTrace:
    """Human-readable trace written to a text stream.

    Prints the active context path on every node entry, the failing path
    followed by the state it was entered with on every failure, and a
    one-line verdict at the end.

    Args:
        stream: Output stream. Defaults to ``sys.stdout`` at write time.
        show_contexts: When ``False``, node entries are not printed.
    """

    def __init__(self, stream: TextIO | None = None, *, show_contexts: bool = True) -> None:
        self._stream = stream
        self._show_contexts = show_contexts
        self._labels: list[str] = []

    def _write(self, line: str) -> None:
        print(line, file=self._stream if self._stream is not None else sys.stdout)

    def begin(self) -> None:
        self._labels.clear()

    def end(self, plan: Plan | None) -> None:
        if plan is None:
            self._write("Planning failed!")
        else:
            self._write(f"Planning succeeded! {plan}".rstrip())

    def push_context(self, label: str, state: WorldState) -> None:
        self._labels.append(label)
        if self._show_contexts:
            self._write(f"Planning context: {' '.join(self._labels)}")

    def pop_context(self) -> None:
        self._labels.pop()

    def primitive_executed(self, action: ActionId | None, state: WorldState) -> None:
        if action is not None:
            self._write(f"Executed: {action} ({state.describe()})")

    def fail(self, frames: Sequence[TraceFrame]) -> None:
        self._write(f"Planning failed: {' '.join(frame.label for frame in frames)}")
        if frames:
            self._write(f"({frames[-1].state.describe()})")


class LogTrace:
    """Trace that emits structlog events.

    Node entries and executed primitives are logged at ``debug`` level,
    failures at *fail_level*.
    """

    def __init__(self, fail_level: str = "info") -> None:
        self._fail_level = fail_level
        self._depth = 0
        self.log = logger.bind(component="trace")

    def begin(self) -> None:
        self._depth = 0
        self.log.debug("plan.begin")

    def end(self, plan: Plan | None) -> None:
        if plan is None:
            self.log.info("plan.end", success=False)
        else:
            self.log.info("plan.end", success=True, actions=list(plan.actions))

    def push_context(self, label: str, state: WorldState) -> None:
        self._depth += 1
        self.log.debug("node.enter", task=label, depth=self._depth)

    def pop_context(self) -> None:
        self._depth -= 1

    def primitive_executed(self, action: ActionId | None, state: WorldState) -> None:
        self.log.debug("primitive.executed", action=action, state=state.describe())

    def fail(self, frames: Sequence[TraceFrame]) -> None:
        log_fn = getattr(self.log, self._fail_level, self.log.info)
        log_fn(
            "node.failed",
            path=[frame.label for frame in frames],
            state=frames[-1].state.describe() if frames else None,
        )


# ---------------------------------------------------------------------------
# Recording trace
# ---------------------------------------------------------------------------


class TraceEventKind(StrEnum):
    """Kinds of notification recorded by :class:`RecordingTrace`."""

    BEGIN = "begin"
    END = "end"
    PUSH = "push"
    POP = "pop"
    EXECUTED = "executed"
    FAIL = "fail"


class TraceEvent(BaseModel):
    """A single recorded trace notification."""

    model_config = ConfigDict(frozen=True)

    kind: TraceEventKind
    label: str | None = None
    action: str | None = None
    path: tuple[str, ...] = ()
    state: dict[str, object] = Field(default_factory=dict)
    actions: tuple[str, ...] | None = None


class RecordingTrace:
    """Test-friendly trace that accumulates events in order.

    Example::

        trace = RecordingTrace()
        plan(root, state, trace)
        assert trace.failures == [("do_something", "have_dinner")]
    """

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []
        self._labels: list[str] = []

    def begin(self) -> None:
        self.events.append(TraceEvent(kind=TraceEventKind.BEGIN))

    def end(self, plan: Plan | None) -> None:
        self.events.append(
            TraceEvent(
                kind=TraceEventKind.END,
                actions=None if plan is None else plan.actions,
            )
        )

    def push_context(self, label: str, state: WorldState) -> None:
        self._labels.append(label)
        self.events.append(
            TraceEvent(
                kind=TraceEventKind.PUSH,
                label=label,
                path=tuple(self._labels),
                state=state.model_dump(),
            )
        )

    def pop_context(self) -> None:
        label = self._labels.pop()
        self.events.append(TraceEvent(kind=TraceEventKind.POP, label=label))

    def primitive_executed(self, action: ActionId | None, state: WorldState) -> None:
        self.events.append(
            TraceEvent(
                kind=TraceEventKind.EXECUTED,
                label=self._labels[-1] if self._labels else None,
                action=action,
                state=state.model_dump(),
            )
        )

    def fail(self, frames: Sequence[TraceFrame]) -> None:
        self.events.append(
            TraceEvent(
                kind=TraceEventKind.FAIL,
                label=frames[-1].label if frames else None,
                path=tuple(frame.label for frame in frames),
                state=frames[-1].state.model_dump() if frames else {},
            )
        )

    # -- queries -----------------------------------------------------------

    def of_kind(self, kind: TraceEventKind) -> list[TraceEvent]:
        return [event for event in self.events if event.kind == kind]

    @property
    def visited(self) -> list[str]:
        """Labels of every node entered, in visit order."""
        return [event.label for event in self.of_kind(TraceEventKind.PUSH) if event.label]

    @property
    def executed(self) -> list[str | None]:
        """Actions of every primitive whose effects ran, in order."""
        return [event.action for event in self.of_kind(TraceEventKind.EXECUTED)]

    @property
    def failures(self) -> list[tuple[str, ...]]:
        """Active paths reported by each ``fail`` notification."""
        return [event.path for event in self.of_kind(TraceEventKind.FAIL)]

    @property
    def depth(self) -> int:
        """Current nesting depth; zero once a planning call has returned."""
        return len(self._labels)

    def clear(self) -> None:
        self.events.clear()
        self._labels.clear()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TraceKind(StrEnum):
    """Trace implementations selectable from configuration."""

    NULL = "null"
    PRINT = "print"
    LOG = "log"
    RECORD = "record"


def create_trace(kind: TraceKind | str, stream: TextIO | None = None) -> PlannerTrace:
    """Build a trace of the given *kind*.

    Raises:
        ValueError: If *kind* is not a known trace kind.
    """
    kind = TraceKind(kind)
    if kind == TraceKind.PRINT:
        return PrintingTrace(stream)
    if kind == TraceKind.LOG:
        return LogTrace()
    if kind == TraceKind.RECORD:
        return RecordingTrace()
    return NullTrace()
