"""Planning package - task graph, search engine and trace observers."""

from htnplan.planning.engine import Planner, find_plan, plan, solve
from htnplan.planning.nodes import (
    Domain,
    MethodTask,
    PrimitiveTask,
    SequenceTask,
    TaskNode,
    iter_nodes,
    method,
    noop,
    primitive,
    sequence,
)
from htnplan.planning.trace import (
    LogTrace,
    NullTrace,
    PlannerTrace,
    PrintingTrace,
    RecordingTrace,
    TraceEvent,
    TraceEventKind,
    TraceKind,
    create_trace,
)

__all__ = [
    "Domain",
    "LogTrace",
    "MethodTask",
    "NullTrace",
    "Planner",
    "PlannerTrace",
    "PrimitiveTask",
    "PrintingTrace",
    "RecordingTrace",
    "SequenceTask",
    "TaskNode",
    "TraceEvent",
    "TraceEventKind",
    "TraceKind",
    "create_trace",
    "find_plan",
    "iter_nodes",
    "method",
    "noop",
    "plan",
    "primitive",
    "sequence",
]
