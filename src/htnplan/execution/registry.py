"""Action registry mapping plan action identifiers to handlers.

The planner only simulates effects; the real-world operation behind each
action identifier is registered here and invoked by
:class:`~htnplan.execution.executor.PlanExecutor`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class Action:
    """A registered action handler.

    Attributes:
        name: Action identifier as it appears in plans (e.g. "cook_dinner").
        handler: Callable invoked with the execution context.
        description: Human-readable description of what the action does.
    """

    name: str
    handler: Callable[[Any], Any]
    description: str = ""


class ActionRegistry:
    """Registry for action handler lookup and management."""

    def __init__(self) -> None:
        self._actions: dict[str, Action] = {}

    def register(
        self,
        name: str,
        handler: Callable[[Any], Any],
        description: str = "",
    ) -> None:
        """Register a handler for action *name*.

        Raises:
            ValueError: If a handler is already registered for *name*.
        """
        if name in self._actions:
            raise ValueError(f"Action '{name}' is already registered")
        self._actions[name] = Action(name=name, handler=handler, description=description)

    def get(self, name: str) -> Action:
        """Get an action by name.

        Raises:
            KeyError: If the action is not registered.
        """
        try:
            return self._actions[name]
        except KeyError:
            raise KeyError(f"Action '{name}' not found in registry") from None

    def missing(self, names: list[str]) -> list[str]:
        """Return the names in *names* that have no handler, in first-seen order."""
        return list(dict.fromkeys(name for name in names if name not in self._actions))

    def list_actions(self) -> list[str]:
        """Sorted list of registered action names."""
        return sorted(self._actions.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)
