"""Task graph data model.

A task graph is an immutable tree of three node variants:

- :class:`PrimitiveTask`: a leaf naming one action, with preconditions that
  gate it and effects that simulate it on the world state.
- :class:`MethodTask`: ordered alternatives; the first that succeeds wins.
- :class:`SequenceTask`: ordered steps that must all succeed.

Graphs are built once, bottom-up, with the :func:`primitive`, :func:`noop`,
:func:`method` and :func:`sequence` builders, and can then be shared by any
number of planning calls. Malformed graphs raise
:class:`~htnplan.core.errors.DomainConfigurationError` at build time.
"""

from __future__ import annotations

__all__ = [
    "Domain",
    "Effect",
    "MethodTask",
    "Precondition",
    "PrimitiveTask",
    "SequenceTask",
    "TaskNode",
    "iter_nodes",
    "method",
    "noop",
    "primitive",
    "sequence",
]

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError

from htnplan.core.errors import DomainConfigurationError
from htnplan.core.state import WorldState
from htnplan.core.types import ActionId, NodeKind

S = TypeVar("S", bound=WorldState)

Precondition = Callable[[Any], bool]
Effect = Callable[[Any], None]


def _as_tuple(name: str, what: str, items: Iterable[Any]) -> tuple[Any, ...]:
    values = tuple(items)
    for item in values:
        if not callable(item):
            msg = f"Task '{name}': {what} must be callable, got {item!r}"
            raise DomainConfigurationError(msg)
    return values


@dataclass(frozen=True, eq=False)
class TaskNode:
    """Common base of all task graph nodes.

    Attributes:
        name: Label reported to traces and used for lookups in a
            :class:`Domain`.
        preconditions: Predicates over the world state, all of which must
            hold for the node to be attempted.
    """

    name: str
    preconditions: tuple[Precondition, ...] = ()

    kind: ClassVar[NodeKind]

    def __post_init__(self) -> None:
        if type(self) is TaskNode:
            msg = "TaskNode is abstract; build a primitive, method or sequence"
            raise DomainConfigurationError(msg)
        if not isinstance(self.name, str) or not self.name:
            msg = f"Task label must be a non-empty string, got {self.name!r}"
            raise DomainConfigurationError(msg)
        object.__setattr__(
            self, "preconditions", _as_tuple(self.name, "preconditions", self.preconditions)
        )

    def preconditions_hold(self, state: WorldState) -> bool:
        """Return ``True`` if every precondition is satisfied by *state*."""
        return all(check(state) for check in self.preconditions)

    @property
    def children(self) -> tuple[TaskNode, ...]:
        return ()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


@dataclass(frozen=True, eq=False, repr=False)
class PrimitiveTask(TaskNode):
    """A leaf task.

    ``action`` is passed through to the plan unchanged. A primitive with
    no action contributes nothing to the plan; with no effects either, it
    is the "do nothing" fallback.
    """

    kind: ClassVar[NodeKind] = NodeKind.PRIMITIVE

    action: ActionId | None = None
    effects: tuple[Effect, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.action is not None and (not isinstance(self.action, str) or not self.action):
            msg = (
                f"Task '{self.name}': action must be a non-empty string or None, "
                f"got {self.action!r}"
            )
            raise DomainConfigurationError(msg)
        object.__setattr__(self, "effects", _as_tuple(self.name, "effects", self.effects))

    @property
    def is_noop(self) -> bool:
        return self.action is None and not self.effects

    def apply(self, state: WorldState) -> None:
        """Apply the effects to *state* in declared order."""
        for effect in self.effects:
            effect(state)


def _check_children(name: str, what: str, children: Iterable[Any]) -> tuple[TaskNode, ...]:
    values = tuple(children)
    if not values:
        msg = f"Task '{name}' must declare at least one {what}"
        raise DomainConfigurationError(msg)
    for child in values:
        if not isinstance(child, TaskNode):
            msg = f"Task '{name}': {what} must be a task node, got {child!r}"
            raise DomainConfigurationError(msg)
    return values


@dataclass(frozen=True, eq=False, repr=False)
class MethodTask(TaskNode):
    """Ordered alternative decompositions of one goal."""

    kind: ClassVar[NodeKind] = NodeKind.METHOD

    alternatives: tuple[TaskNode, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(
            self, "alternatives", _check_children(self.name, "alternative", self.alternatives)
        )

    @property
    def children(self) -> tuple[TaskNode, ...]:
        return self.alternatives


@dataclass(frozen=True, eq=False, repr=False)
class SequenceTask(TaskNode):
    """Ordered steps that must all succeed."""

    kind: ClassVar[NodeKind] = NodeKind.SEQUENCE

    steps: tuple[TaskNode, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "steps", _check_children(self.name, "step", self.steps))

    @property
    def children(self) -> tuple[TaskNode, ...]:
        return self.steps


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

_UNSET: Any = object()


def primitive(
    name: str,
    action: ActionId | None = _UNSET,
    *,
    preconditions: Iterable[Precondition] = (),
    effects: Iterable[Effect] = (),
) -> PrimitiveTask:
    """Build a primitive task.

    Args:
        name: Task label.
        action: Action identifier emitted into the plan. Defaults to
            *name*; pass ``None`` for a task that contributes no action.
        preconditions: Predicates checked before the effects are applied.
        effects: State mutations applied, in order, when the task runs.
    """
    return PrimitiveTask(
        name=name,
        action=name if action is _UNSET else action,
        preconditions=tuple(preconditions),
        effects=tuple(effects),
    )


def noop(name: str = "do_nothing") -> PrimitiveTask:
    """Build a primitive that always succeeds with an empty plan."""
    return PrimitiveTask(name=name, action=None)


def method(
    name: str,
    *alternatives: TaskNode,
    preconditions: Iterable[Precondition] = (),
) -> MethodTask:
    """Build a method from ordered alternatives (at least one)."""
    return MethodTask(name=name, preconditions=tuple(preconditions), alternatives=alternatives)


def sequence(
    name: str,
    *steps: TaskNode,
    preconditions: Iterable[Precondition] = (),
) -> SequenceTask:
    """Build a sequence from ordered steps (at least one)."""
    return SequenceTask(name=name, preconditions=tuple(preconditions), steps=steps)


def iter_nodes(root: TaskNode) -> Iterator[TaskNode]:
    """Yield every node reachable from *root*, depth-first in declared order.

    A node shared by several parents is yielded once.
    """
    seen: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        stack.extend(reversed(node.children))


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------


def _both_noops(a: TaskNode, b: TaskNode) -> bool:
    return all(isinstance(n, PrimitiveTask) and n.is_noop for n in (a, b))


class Domain(Generic[S]):
    """A named task graph together with the state type it plans over.

    Every node reachable from *root* is indexed by label. Two distinct
    nodes carrying the same label make lookups ambiguous and are rejected,
    except no-op fallbacks, which are interchangeable.

    Args:
        name: Domain name (e.g. ``"dinner"``).
        state_type: :class:`WorldState` subclass the preconditions and
            effects operate on.
        root: Default task to plan for.
        description: Optional human-readable summary.
    """

    def __init__(
        self,
        name: str,
        state_type: type[S],
        root: TaskNode,
        description: str = "",
    ) -> None:
        if not isinstance(state_type, type) or not issubclass(state_type, WorldState):
            msg = f"Domain '{name}': state type must derive from WorldState"
            raise DomainConfigurationError(msg)
        self._name = name
        self._state_type = state_type
        self._root = root
        self._description = description
        tasks: dict[str, TaskNode] = {}
        for node in iter_nodes(root):
            existing = tasks.get(node.name)
            if existing is not None and _both_noops(existing, node):
                continue
            if existing is not None and existing is not node:
                msg = f"Domain '{name}': duplicate task label '{node.name}'"
                raise DomainConfigurationError(msg)
            tasks[node.name] = node
        self._tasks = MappingProxyType(tasks)

    @property
    def name(self) -> str:
        return self._name

    @property
    def state_type(self) -> type[S]:
        return self._state_type

    @property
    def root(self) -> TaskNode:
        return self._root

    @property
    def description(self) -> str:
        return self._description

    @property
    def tasks(self) -> Mapping[str, TaskNode]:
        """Read-only index of every task label in the graph."""
        return self._tasks

    def task(self, name: str) -> TaskNode:
        """Look up a task by label.

        Raises:
            DomainConfigurationError: If no task carries *name*.
        """
        try:
            return self._tasks[name]
        except KeyError:
            msg = f"Domain '{self._name}' has no task '{name}'"
            raise DomainConfigurationError(msg) from None

    def new_state(self, **fields: Any) -> S:
        """Build a validated state instance for this domain.

        Raises:
            DomainConfigurationError: If *fields* do not fit the state type.
        """
        try:
            return self._state_type(**fields)
        except ValidationError as exc:
            msg = f"Invalid state for domain '{self._name}': {exc}"
            raise DomainConfigurationError(msg) from exc

    def actions(self) -> list[ActionId]:
        """Sorted list of every action identifier the graph can emit."""
        return sorted(
            {
                node.action
                for node in self._tasks.values()
                if isinstance(node, PrimitiveTask) and node.action is not None
            }
        )

    def __repr__(self) -> str:
        return f"Domain(name={self._name!r}, root={self._root.name!r}, tasks={len(self._tasks)})"
