"""Demonstration of the htnplan planner on the dinner domain.

This script shows how to:
1. Build the dinner domain and inspect its tasks
2. Plan from several initial states
3. Watch the search with a printing trace
4. Execute a plan through an action registry
"""

from __future__ import annotations

from typing import Any

from htnplan.domains import get_domain
from htnplan.execution import ActionRegistry, PlanExecutor
from htnplan.planning import Planner, PrintingTrace


def main() -> None:
    """Run the demonstration."""
    print("=" * 70)
    print("HTN Planning Demonstration")
    print("=" * 70)
    print()

    # Step 1: Build the domain
    print("1. Building the dinner domain...")
    domain = get_domain("dinner")
    print(f"   {domain!r}")
    print(f"   Actions: {', '.join(domain.actions())}")
    print()

    # Step 2: Plan from several states
    print("2. Planning from several states...")
    planner = Planner(domain)
    scenarios: dict[str, dict[str, Any]] = {
        "cook at home": {"hungry": True, "food_in_fridge": True, "can_cook": True, "cash": 30},
        "order takeout": {"hungry": True, "cash": 30},
        "too broke": {"hungry": True, "cash": 10},
        "not hungry": {"cash": 30},
    }
    for label, fields in scenarios.items():
        result = planner.find_plan(domain.new_state(**fields))
        print(f"   {label:14s} -> {result.plan}")
    print()

    # Step 3: Trace one search
    print("3. Tracing a search...")
    planner.find_plan(
        domain.new_state(hungry=True, cash=30),
        trace=PrintingTrace(show_contexts=False),
    )
    print()

    # Step 4: Execute a plan
    print("4. Executing a plan...")
    registry = ActionRegistry()
    for action in domain.actions():
        registry.register(action, lambda ctx, _a=action: ctx.append(_a))
    performed: list[str] = []
    plan = planner.plan(domain.new_state(hungry=True, food_in_fridge=True, can_cook=True))
    if plan is not None:
        report = PlanExecutor(registry).execute(plan, performed)
        print(f"   Completed: {report.completed}")
        print(f"   Performed: {performed}")
    print()

    print("=" * 70)
    print("Demonstration complete")
    print("=" * 70)


if __name__ == "__main__":
    main()
