"""Shared test fixtures for htnplan tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from htnplan.domains.dinner import DinnerState, build_dinner_domain
from htnplan.planning.nodes import Domain
from htnplan.planning.trace import RecordingTrace

from tests.helpers import CounterState


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def trace() -> RecordingTrace:
    """Fresh recording trace."""
    return RecordingTrace()


@pytest.fixture
def counter_state() -> CounterState:
    """Counter state with everything at zero."""
    return CounterState()


@pytest.fixture
def dinner_domain() -> Domain[DinnerState]:
    """The sample dinner domain."""
    return build_dinner_domain()


@pytest.fixture
def cook_at_home_state() -> DinnerState:
    """Hungry, with food and the ability to cook."""
    return DinnerState(hungry=True, food_in_fridge=True, can_cook=True, cash=30, dishes=False)


@pytest.fixture
def takeout_state() -> DinnerState:
    """Hungry, nothing to cook, enough cash for takeout."""
    return DinnerState(hungry=True, food_in_fridge=False, can_cook=False, cash=30, dishes=False)


@pytest.fixture
def broke_state() -> DinnerState:
    """Hungry, nothing to cook, not enough cash for takeout."""
    return DinnerState(hungry=True, food_in_fridge=False, can_cook=False, cash=10, dishes=False)


@pytest.fixture
def not_hungry_state() -> DinnerState:
    """Not hungry at all."""
    return DinnerState(hungry=False, food_in_fridge=True, can_cook=True, cash=30, dishes=False)
