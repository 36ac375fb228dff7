"""Dinner domain: decide whether to cook, order takeout, or watch TV.

    do_something  (method)
    +-- have_dinner  (sequence, requires hungry)
    |   +-- get_dinner  (method)
    |   |   +-- cook_dinner
    |   |   +-- order_takeout
    |   +-- eat_dinner
    |   +-- clean_up  (method)
    |       +-- wash_dishes
    |       +-- do_nothing
    +-- watch_tv
"""

from __future__ import annotations

__all__ = ["TAKEOUT_COST", "DinnerState", "build_dinner_domain"]

from pydantic import Field

from htnplan.core.state import WorldState
from htnplan.planning.nodes import Domain, method, noop, primitive, sequence

TAKEOUT_COST = 20


class DinnerState(WorldState):
    """World state of the dinner domain."""

    hungry: bool = False
    food_in_fridge: bool = False
    can_cook: bool = False
    cash: int = Field(default=0, ge=0)
    dishes: bool = False


# --- Effects ---


def _pay_for_takeout(state: DinnerState) -> None:
    state.cash -= TAKEOUT_COST


def _use_food(state: DinnerState) -> None:
    state.food_in_fridge = False


def _dirty_dishes(state: DinnerState) -> None:
    state.dishes = True


def _eat(state: DinnerState) -> None:
    state.hungry = False


def _clean_dishes(state: DinnerState) -> None:
    state.dishes = False


def build_dinner_domain() -> Domain[DinnerState]:
    """Build the dinner task graph."""
    order_takeout = primitive(
        "order_takeout",
        preconditions=[lambda s: s.cash >= TAKEOUT_COST],
        effects=[_pay_for_takeout],
    )
    cook_dinner = primitive(
        "cook_dinner",
        preconditions=[lambda s: s.food_in_fridge, lambda s: s.can_cook],
        effects=[_use_food, _dirty_dishes],
    )
    eat_dinner = primitive("eat_dinner", effects=[_eat])
    wash_dishes = primitive(
        "wash_dishes",
        preconditions=[lambda s: s.dishes],
        effects=[_clean_dishes],
    )
    watch_tv = primitive("watch_tv")

    get_dinner = method("get_dinner", cook_dinner, order_takeout)
    clean_up = method("clean_up", wash_dishes, noop())
    have_dinner = sequence(
        "have_dinner",
        get_dinner,
        eat_dinner,
        clean_up,
        preconditions=[lambda s: s.hungry],
    )
    do_something = method("do_something", have_dinner, watch_tv)

    return Domain(
        "dinner",
        DinnerState,
        do_something,
        description="Cook or order dinner when hungry, otherwise watch TV.",
    )
