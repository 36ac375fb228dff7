"""World state base model.

Domains describe their state as a pydantic model deriving from
:class:`WorldState`. The engine mutates one working instance in place and
relies on :meth:`WorldState.snapshot` / :meth:`WorldState.restore` to undo
the effects of a failed compound task.
"""

from __future__ import annotations

__all__ = ["WorldState"]

import json
from typing import Self

from pydantic import BaseModel, ConfigDict


class WorldState(BaseModel):
    """Mutable, value-semantics state simulated by the planner.

    Subclasses declare plain fields::

        class DoorState(WorldState):
            door_open: bool = False
            keys: int = 0
    """

    model_config = ConfigDict(validate_assignment=False, extra="forbid")

    def snapshot(self) -> Self:
        """Return a fully independent deep copy of this state."""
        return self.model_copy(deep=True)

    def restore(self, snapshot: WorldState) -> None:
        """Overwrite every field of this state in place from *snapshot*.

        Values are deep-copied, so one snapshot may be restored any number
        of times.

        Raises:
            TypeError: If *snapshot* is not of the same state type.
        """
        if type(snapshot) is not type(self):
            msg = (
                f"Cannot restore {type(self).__name__} from "
                f"{type(snapshot).__name__}"
            )
            raise TypeError(msg)
        copied = snapshot.model_copy(deep=True)
        for field_name in type(self).model_fields:
            setattr(self, field_name, getattr(copied, field_name))

    def describe(self) -> str:
        """One-line rendering used by traces, e.g. ``hungry: true, cash: 30``."""
        return ", ".join(
            f"{key}: {json.dumps(value, default=str)}"
            for key, value in self.model_dump(mode="json").items()
        )

    def __str__(self) -> str:
        return self.describe()
