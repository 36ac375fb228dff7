"""htnplan command-line entry point.

Plans a task of a built-in domain from a state given on the command line::

    htnplan --domain dinner --set hungry=true --set cash=30 --trace print

Exit status is 0 when a plan is found, 1 when no plan exists, and 2 for
configuration errors (unknown domain or task, invalid state).
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import Any

import structlog

from htnplan.config.settings import HtnPlanSettings
from htnplan.core.errors import DomainConfigurationError, UnknownActionError
from htnplan.domains import available_domains, get_domain
from htnplan.execution.executor import PlanExecutor
from htnplan.execution.registry import ActionRegistry
from htnplan.observability.logging_config import LogFilter, LoggingConfig, configure_htnplan_logging
from htnplan.planning.engine import Planner
from htnplan.planning.nodes import Domain
from htnplan.planning.trace import TraceKind

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_NO_PLAN = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    try:
        from importlib.metadata import version as _pkg_version

        _version = _pkg_version("htnplan")
    except Exception:
        _version = "0.0.0-dev"

    parser = argparse.ArgumentParser(
        prog="htnplan",
        description="Hierarchical task network planner",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_version}",
    )
    parser.add_argument(
        "--domain",
        type=str,
        default=None,
        help=f"Domain to plan in (available: {', '.join(available_domains())})",
    )
    parser.add_argument(
        "--task",
        type=str,
        default=None,
        help="Task to plan (default: the domain's root task)",
    )
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Initial state field; VALUE is parsed as JSON when possible (repeatable)",
    )
    parser.add_argument(
        "--trace",
        type=str,
        default=None,
        choices=[kind.value for kind in TraceKind if kind != TraceKind.RECORD],
        help="Trace output (default: from settings)",
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Run the plan through an executor that logs each action",
    )
    parser.add_argument(
        "--list-tasks",
        action="store_true",
        help="List the domain's tasks and exit",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (.env)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: from settings)",
    )
    return parser.parse_args(argv)


def parse_assignments(assignments: list[str]) -> dict[str, Any]:
    """Turn ``FIELD=VALUE`` strings into state fields.

    Values are decoded as JSON (``true``, ``30``, ``"x"``); anything that
    is not valid JSON is kept as a plain string.

    Raises:
        DomainConfigurationError: If an assignment has no ``=``.
    """
    fields: dict[str, Any] = {}
    for assignment in assignments:
        key, sep, raw = assignment.partition("=")
        if not sep or not key.strip():
            msg = f"Invalid state assignment {assignment!r}; expected FIELD=VALUE"
            raise DomainConfigurationError(msg)
        try:
            fields[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            fields[key.strip()] = raw
    return fields


def _load_settings(config: str | None) -> HtnPlanSettings:
    from dotenv import load_dotenv

    load_dotenv(config if config else ".env", override=False)

    settings_kwargs: dict[str, Any] = {}
    if config:
        if not pathlib.Path(config).exists():
            logger.warning("config_file_not_found", path=config)
        settings_kwargs["_env_file"] = config
    return HtnPlanSettings(**settings_kwargs)


def build_logging_config(args: argparse.Namespace, settings: HtnPlanSettings) -> LoggingConfig:
    """Logging configuration from settings, with ``--log-level`` taking precedence."""
    log = settings.log
    config = LoggingConfig().configure(
        level=args.log_level or log.level,
        fmt=log.format,
        output=log.output,
    )
    for key, value in log.context.items():
        config.add_context(key, value)
    if log.filter_domains or log.filter_tasks or log.filter_level:
        log_filter = LogFilter()
        for domain in log.filter_domains:
            log_filter.by_domain(domain)
        for task in log.filter_tasks:
            log_filter.by_task(task)
        if log.filter_level:
            log_filter.by_level(log.filter_level)
        config.log_filter = log_filter
    return config


def planner_trace(args: argparse.Namespace, settings: HtnPlanSettings) -> TraceKind:
    """Trace kind chosen by ``--trace``, falling back to settings."""
    return TraceKind(args.trace or settings.planner.trace)


def _logging_executor(domain: Domain[Any]) -> PlanExecutor:
    """Executor whose handlers only log the action they stand for."""
    registry = ActionRegistry()
    for action in domain.actions():

        def _handler(context: Any, _action: str = action) -> str:
            logger.info("action.executed", domain=domain.name, action=_action)
            return _action

        registry.register(action, _handler, description=f"log '{action}'")
    return PlanExecutor(registry)


def run(args: argparse.Namespace) -> int:
    """Run one planning request.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Process exit status.
    """
    settings = _load_settings(args.config)
    configure_htnplan_logging(build_logging_config(args, settings))

    try:
        domain = get_domain(args.domain or settings.planner.default_domain)
        if args.list_tasks:
            for name, node in sorted(domain.tasks.items()):
                print(f"{name}\t{node.kind.value}")
            return EXIT_OK
        state = domain.new_state(**parse_assignments(args.assignments))
        planner = Planner(domain, trace_kind=planner_trace(args, settings))
        result = planner.find_plan(state, task=args.task)
    except DomainConfigurationError as exc:
        logger.error("configuration_error", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if not result.success:
        print(f"No plan found for '{result.root}'")
        return EXIT_NO_PLAN

    plan = result.unwrap()
    print(f"Plan: {plan}" if len(plan) else "Plan: (empty)")
    print(f"Final state: {result.final_state.describe()}")

    if args.execute:
        try:
            report = _logging_executor(domain).execute(plan)
        except UnknownActionError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        print(f"Executed {len(report.steps)}/{report.total_actions} actions")
    return EXIT_OK


def cli() -> None:
    """CLI entry point for ``htnplan`` command."""
    sys.exit(run(parse_args()))


if __name__ == "__main__":
    cli()
