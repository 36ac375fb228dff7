"""Tests for the recursive planning engine."""

from __future__ import annotations

import pytest

from htnplan.core.errors import DomainConfigurationError, PlanNotFoundError
from htnplan.core.types import Plan
from htnplan.domains.dinner import DinnerState
from htnplan.planning.engine import Planner, find_plan, plan, solve
from htnplan.planning.nodes import Domain, method, noop, primitive, sequence
from htnplan.planning.trace import NullTrace, RecordingTrace, TraceKind
from tests.helpers import CounterState, Spy, always, append, increment, set_flag

# ---------------------------------------------------------------------------
# Primitive
# ---------------------------------------------------------------------------


class TestPrimitive:
    """Primitive tasks: preconditions, effects, plan contribution."""

    def test_success_emits_action(self, counter_state: CounterState) -> None:
        task = primitive("inc", effects=[increment("a")])
        assert solve(task, counter_state) == Plan.of("inc")
        assert counter_state.a == 1

    def test_precondition_failure_leaves_state(self, counter_state: CounterState) -> None:
        effect = Spy()
        task = primitive("inc", preconditions=[always(False)], effects=[effect])
        assert solve(task, counter_state) is None
        assert effect.call_count == 0
        assert counter_state.model_dump() == CounterState().model_dump()

    def test_all_preconditions_must_hold(self, counter_state: CounterState) -> None:
        task = primitive("inc", preconditions=[always(True), always(False)])
        assert solve(task, counter_state) is None

    def test_effects_see_previous_effects(self, counter_state: CounterState) -> None:
        task = primitive(
            "t",
            effects=[increment("a", 2), lambda s: setattr(s, "b", s.a * 3)],
        )
        solve(task, counter_state)
        assert (counter_state.a, counter_state.b) == (2, 6)

    def test_action_none_contributes_nothing(self, counter_state: CounterState) -> None:
        task = primitive("bookkeeping", action=None, effects=[increment("c")])
        assert solve(task, counter_state) == Plan.empty()
        assert counter_state.c == 1


class TestNoop:
    """The do-nothing primitive."""

    def test_noop_succeeds_with_empty_plan(self, counter_state: CounterState) -> None:
        before = counter_state.model_dump()
        assert solve(noop(), counter_state) == Plan.empty()
        assert counter_state.model_dump() == before

    def test_noop_as_method_fallback(self, counter_state: CounterState) -> None:
        task = method("maybe", primitive("never", preconditions=[always(False)]), noop())
        before = counter_state.model_dump()
        assert solve(task, counter_state) == Plan.empty()
        assert counter_state.model_dump() == before

    def test_domain_with_several_noop_fallbacks(self, counter_state: CounterState) -> None:
        root = sequence(
            "root",
            method("maybe_a", primitive("a", preconditions=[always(False)]), noop()),
            method("maybe_b", primitive("b", effects=[increment("b")]), noop()),
        )
        result = Planner(Domain("fallbacks", CounterState, root)).find_plan(counter_state)
        assert result.unwrap() == Plan.of("b")
        assert result.final_state.b == 1


# ---------------------------------------------------------------------------
# Method
# ---------------------------------------------------------------------------


class TestMethod:
    """Method tasks: first match, rollback between alternatives."""

    def test_first_match_wins(self, counter_state: CounterState) -> None:
        """Both alternatives would succeed; only the first one runs."""
        spy_a, spy_b = Spy(), Spy()
        task = method(
            "choose",
            primitive("a", effects=[spy_a]),
            primitive("b", preconditions=[spy_b], effects=[spy_b]),
        )
        assert solve(task, counter_state) == Plan.of("a")
        assert spy_a.call_count == 1
        assert spy_b.call_count == 0

    def test_falls_through_to_next_alternative(self, counter_state: CounterState) -> None:
        task = method(
            "choose",
            primitive("a", preconditions=[always(False)]),
            primitive("b", effects=[increment("b")]),
        )
        assert solve(task, counter_state) == Plan.of("b")
        assert counter_state.b == 1

    def test_partial_alternative_rolled_back_before_next(
        self, counter_state: CounterState
    ) -> None:
        """Effects of a half-finished first alternative are gone when the second runs."""
        seen_by_second = Spy()
        first = sequence(
            "first",
            primitive("step1", effects=[increment("a"), append("first")]),
            primitive("step2", preconditions=[always(False)]),
        )
        second = primitive("second", preconditions=[seen_by_second], effects=[append("second")])
        task = method("choose", first, second)

        assert solve(task, counter_state) == Plan.of("second")
        assert seen_by_second.calls == [CounterState().model_dump()]
        assert counter_state.log == ["second"]
        assert counter_state.a == 0

    def test_all_alternatives_fail(self, counter_state: CounterState) -> None:
        task = method(
            "choose",
            primitive("a", preconditions=[always(False)]),
            sequence("b", primitive("b1", effects=[increment("b")]), primitive("b2", preconditions=[always(False)])),
        )
        assert solve(task, counter_state) is None
        assert counter_state.model_dump() == CounterState().model_dump()

    def test_entry_precondition_blocks_alternatives(self, counter_state: CounterState) -> None:
        spy = Spy()
        task = method("choose", primitive("a", preconditions=[spy]), preconditions=[always(False)])
        assert solve(task, counter_state) is None
        assert spy.call_count == 0

    def test_entry_precondition_sees_current_state(self, counter_state: CounterState) -> None:
        gated = method("gated", primitive("go"), preconditions=[lambda s: s.flag])
        task = sequence("s", primitive("raise_flag", effects=[set_flag()]), gated)
        assert solve(task, counter_state) == Plan.of("raise_flag", "go")


# ---------------------------------------------------------------------------
# Sequence
# ---------------------------------------------------------------------------


class TestSequence:
    """Sequence tasks: ordering, concatenation, whole-sequence rollback."""

    def test_steps_run_in_order(self, counter_state: CounterState) -> None:
        task = sequence(
            "s",
            primitive("one", effects=[append("one")]),
            primitive("two", effects=[append("two")]),
            primitive("three", effects=[append("three")]),
        )
        assert solve(task, counter_state) == Plan.of("one", "two", "three")
        assert counter_state.log == ["one", "two", "three"]

    def test_later_steps_see_earlier_effects(self, counter_state: CounterState) -> None:
        task = sequence(
            "s",
            primitive("set", effects=[set_flag()]),
            primitive("needs_flag", preconditions=[lambda s: s.flag]),
        )
        assert solve(task, counter_state) == Plan.of("set", "needs_flag")

    def test_plan_is_concatenation_of_step_plans(self) -> None:
        steps = [
            sequence("x", primitive("x1", effects=[increment("a")]), primitive("x2")),
            method("y", primitive("y1", preconditions=[always(False)]), primitive("y2")),
            noop("z"),
            primitive("w", effects=[increment("b")]),
        ]
        individually = [solve(step, CounterState()) for step in steps]
        assert all(p is not None for p in individually)

        combined = solve(sequence("all", *steps), CounterState())
        assert combined == Plan.concat(p for p in individually if p is not None)
        assert combined == Plan.of("x1", "x2", "y2", "w")

    def test_failure_restores_state_before_first_step(
        self, counter_state: CounterState
    ) -> None:
        """First step succeeds, second fails: the first step's effects are undone."""
        counter_state.a = 5
        task = sequence(
            "s",
            primitive("ok", effects=[increment("a", 10), set_flag(), append("ok")]),
            primitive("bad", preconditions=[always(False)]),
        )
        assert solve(task, counter_state) is None
        assert counter_state.a == 5
        assert counter_state.flag is False
        assert counter_state.log == []

    def test_failure_stops_remaining_steps(self, counter_state: CounterState) -> None:
        spy = Spy()
        task = sequence(
            "s",
            primitive("bad", preconditions=[always(False)]),
            primitive("never", preconditions=[spy]),
        )
        assert solve(task, counter_state) is None
        assert spy.call_count == 0

    def test_entry_precondition_blocks_steps(self, counter_state: CounterState) -> None:
        spy = Spy()
        task = sequence("s", primitive("a", effects=[spy]), preconditions=[always(False)])
        assert solve(task, counter_state) is None
        assert spy.call_count == 0

    def test_nested_rollback(self, counter_state: CounterState) -> None:
        inner = sequence(
            "inner",
            primitive("i1", effects=[increment("a")]),
            primitive("i2", effects=[increment("b")]),
        )
        task = sequence(
            "outer",
            primitive("o1", effects=[increment("c")]),
            inner,
            primitive("o2", preconditions=[lambda s: s.a > 100]),
        )
        assert solve(task, counter_state) is None
        assert (counter_state.a, counter_state.b, counter_state.c) == (0, 0, 0)


# ---------------------------------------------------------------------------
# No re-decomposition
# ---------------------------------------------------------------------------


class TestNoRedecomposition:
    """A resolved method is never revisited when a later sibling fails."""

    def test_committed_alternative_not_revisited(self, counter_state: CounterState) -> None:
        second_alternative = Spy()
        choice = method(
            "choice",
            primitive("first", effects=[increment("a")]),
            primitive("second", preconditions=[second_alternative]),
        )
        task = sequence(
            "s",
            choice,
            # Would succeed had "second" been chosen (a stays 0).
            primitive("needs_untouched_a", preconditions=[lambda s: s.a == 0]),
        )

        assert solve(task, counter_state) is None
        assert second_alternative.call_count == 0
        assert counter_state.a == 0

    def test_failure_reaches_enclosing_method(self, trace: RecordingTrace) -> None:
        choice = method("choice", primitive("first", effects=[increment("a")]), primitive("second"))
        doomed = sequence("doomed", choice, primitive("needs_zero", preconditions=[lambda s: s.a == 0]))
        root = method("root", doomed, primitive("fallback"))

        assert plan(root, CounterState(), trace) == Plan.of("fallback")
        assert "second" not in trace.visited


# ---------------------------------------------------------------------------
# Top-level entry points
# ---------------------------------------------------------------------------


class TestFindPlan:
    """find_plan / plan work on a private copy of the caller's state."""

    def test_caller_state_not_mutated_on_success(self) -> None:
        state = CounterState()
        result = find_plan(primitive("inc", effects=[increment("a")]), state)
        assert result.success
        assert state.a == 0
        assert result.final_state.a == 1
        assert result.final_state is not state

    def test_caller_state_not_mutated_on_failure(self) -> None:
        state = CounterState(a=3)
        task = sequence("s", primitive("inc", effects=[increment("a")]), primitive("no", preconditions=[always(False)]))
        result = find_plan(task, state)
        assert not result.success
        assert result.plan is None
        assert state.a == 3
        assert result.final_state.model_dump() == state.model_dump()

    def test_result_root_label(self) -> None:
        result = find_plan(primitive("only"), CounterState())
        assert result.root == "only"

    def test_unwrap_on_failure(self) -> None:
        result = find_plan(primitive("no", preconditions=[always(False)]), CounterState())
        with pytest.raises(PlanNotFoundError):
            result.unwrap()

    def test_plan_returns_plan_or_none(self) -> None:
        assert plan(primitive("go"), CounterState()) == Plan.of("go")
        assert plan(primitive("go", preconditions=[always(False)]), CounterState()) is None

    def test_begin_and_end_bracket_call(self, trace: RecordingTrace) -> None:
        find_plan(primitive("go"), CounterState(), trace)
        assert trace.events[0].kind == "begin"
        assert trace.events[-1].kind == "end"
        assert trace.events[-1].actions == ("go",)

    def test_end_reports_failure(self, trace: RecordingTrace) -> None:
        find_plan(primitive("go", preconditions=[always(False)]), CounterState(), trace)
        assert trace.events[-1].kind == "end"
        assert trace.events[-1].actions is None

    def test_solve_does_not_bracket(self, trace: RecordingTrace) -> None:
        solve(primitive("go"), CounterState(), trace)
        kinds = [event.kind for event in trace.events]
        assert "begin" not in kinds
        assert "end" not in kinds

    def test_default_trace_is_null(self) -> None:
        assert plan(primitive("go"), CounterState(), None) == Plan.of("go")
        assert plan(primitive("go"), CounterState(), NullTrace()) == Plan.of("go")

    def test_repeatable(self) -> None:
        """The graph is read-only: planning twice gives the same answer."""
        task = sequence("s", primitive("a", effects=[increment("a")]), primitive("b"))
        state = CounterState()
        assert plan(task, state) == plan(task, state)

    def test_effect_errors_propagate(self) -> None:
        def boom(state: CounterState) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            plan(primitive("explode", effects=[boom]), CounterState())

    def test_effect_error_leaves_caller_state(self) -> None:
        def boom(state: CounterState) -> None:
            raise RuntimeError("boom")

        state = CounterState()
        with pytest.raises(RuntimeError):
            plan(sequence("s", primitive("inc", effects=[increment("a")]), primitive("x", effects=[boom])), state)
        assert state.a == 0


# ---------------------------------------------------------------------------
# Planner facade
# ---------------------------------------------------------------------------


class TestPlanner:
    """Tests for the domain-bound Planner."""

    def test_plans_domain_root(
        self, dinner_domain: Domain[DinnerState], cook_at_home_state: DinnerState
    ) -> None:
        planner = Planner(dinner_domain)
        assert planner.plan(cook_at_home_state) == Plan.of("cook_dinner", "eat_dinner", "wash_dishes")

    def test_plans_named_task(
        self, dinner_domain: Domain[DinnerState], takeout_state: DinnerState
    ) -> None:
        planner = Planner(dinner_domain)
        result = planner.find_plan(takeout_state, task="get_dinner")
        assert result.unwrap() == Plan.of("order_takeout")
        assert result.final_state.cash == 10

    def test_unknown_task(self, dinner_domain: Domain[DinnerState]) -> None:
        with pytest.raises(DomainConfigurationError):
            Planner(dinner_domain).plan(DinnerState(), task="nap")

    def test_wrong_state_type(self, dinner_domain: Domain[DinnerState]) -> None:
        with pytest.raises(TypeError, match="DinnerState"):
            Planner(dinner_domain).plan(CounterState())

    def test_explicit_trace(
        self, dinner_domain: Domain[DinnerState], not_hungry_state: DinnerState, trace: RecordingTrace
    ) -> None:
        Planner(dinner_domain).plan(not_hungry_state, trace=trace)
        assert trace.executed == ["watch_tv"]

    def test_trace_kind(self, dinner_domain: Domain[DinnerState]) -> None:
        planner = Planner(dinner_domain, trace_kind="record")
        assert repr(planner) == "Planner(domain='dinner', trace_kind='record')"
        assert planner.domain is dinner_domain

    def test_invalid_trace_kind(self, dinner_domain: Domain[DinnerState]) -> None:
        with pytest.raises(ValueError):
            Planner(dinner_domain, trace_kind="loud")

    def test_default_trace_kind(self, dinner_domain: Domain[DinnerState]) -> None:
        assert repr(Planner(dinner_domain)) == f"Planner(domain='dinner', trace_kind='{TraceKind.NULL.value}')"
