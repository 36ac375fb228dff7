"""Structured logging configuration for htnplan.

Library modules log through ``structlog.get_logger(__name__)`` and never
configure output themselves. Applications (including the ``htnplan``
command) call :func:`configure_htnplan_logging` once to set up the
processor chain: timestamping, level filtering, context injection, optional
event filtering, and JSON or console rendering.
"""

from __future__ import annotations

__all__ = [
    "LogFilter",
    "LogFormat",
    "LoggingConfig",
    "configure_htnplan_logging",
]

import logging
import sys
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar, TextIO

import structlog
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# LogFormat enum
# ---------------------------------------------------------------------------


class LogFormat(StrEnum):
    """Supported log output formats."""

    JSON = "json"
    CONSOLE = "console"


# ---------------------------------------------------------------------------
# LogFilter
# ---------------------------------------------------------------------------


class LogFilter:
    """Filter log events by domain, planned task, or minimum level.

    Planner events carry ``domain`` and ``root`` / ``task`` keys. An event
    must satisfy **all** active criteria to pass through.
    """

    _LEVEL_MAP: ClassVar[dict[str, int]] = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }

    def __init__(self) -> None:
        self._domains: set[str] | None = None
        self._tasks: set[str] | None = None
        self._min_level: int | None = None

    def by_domain(self, domain: str) -> LogFilter:
        """Only pass events whose ``domain`` is *domain* (repeatable)."""
        if self._domains is None:
            self._domains = set()
        self._domains.add(domain)
        return self

    def by_task(self, task: str) -> LogFilter:
        """Only pass events whose ``root`` or ``task`` is *task* (repeatable)."""
        if self._tasks is None:
            self._tasks = set()
        self._tasks.add(task)
        return self

    def by_level(self, min_level: str) -> LogFilter:
        """Only pass events at or above *min_level*.

        Raises:
            ValueError: If *min_level* is not a recognised level name.
        """
        key = min_level.lower()
        if key not in self._LEVEL_MAP:
            msg = f"Unknown log level: {min_level!r}"
            raise ValueError(msg)
        self._min_level = self._LEVEL_MAP[key]
        return self

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        """structlog processor: drop events that do not pass the filter."""
        if self._domains is not None and event_dict.get("domain") not in self._domains:
            raise structlog.DropEvent

        if self._tasks is not None:
            task = event_dict.get("root", event_dict.get("task"))
            if task not in self._tasks:
                raise structlog.DropEvent

        if self._min_level is not None:
            level_number = self._LEVEL_MAP.get(method_name.lower(), logging.DEBUG)
            if level_number < self._min_level:
                raise structlog.DropEvent

        return event_dict


# ---------------------------------------------------------------------------
# LoggingConfig
# ---------------------------------------------------------------------------


class LoggingConfig(BaseModel):
    """Configuration container for htnplan structured logging.

    Attributes:
        level: Root log level (e.g. ``"INFO"``).
        format: Output format (:class:`LogFormat`).
        output: ``"stdout"`` or ``"stderr"``.
        context: Key-value pairs injected into every log event.
        log_filter: Optional :class:`LogFilter` instance.
    """

    level: str = "INFO"
    format: LogFormat = LogFormat.CONSOLE
    output: str = "stderr"
    context: dict[str, str] = Field(default_factory=dict)
    log_filter: LogFilter | None = None

    model_config = {"arbitrary_types_allowed": True}

    def configure(
        self,
        level: str | None = None,
        fmt: LogFormat | str | None = None,
        output: str | None = None,
    ) -> LoggingConfig:
        """Set top-level logging parameters (builder-style)."""
        if level is not None:
            self.level = level.upper()
        if fmt is not None:
            self.format = LogFormat(fmt)
        if output is not None:
            self.output = output
        return self

    def add_context(self, key: str, value: str) -> LoggingConfig:
        """Add a key-value pair injected into **every** log event."""
        self.context[key] = value
        return self

    @property
    def stream(self) -> TextIO:
        return sys.stdout if self.output == "stdout" else sys.stderr


# ---------------------------------------------------------------------------
# structlog processors
# ---------------------------------------------------------------------------


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ISO-8601 timestamp to the event dict."""
    event_dict["timestamp"] = datetime.now(tz=UTC).isoformat()
    return event_dict


def _add_log_level(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ``level`` key derived from the method name."""
    event_dict["level"] = method_name
    return event_dict


def _make_context_injector(
    context: dict[str, str],
) -> structlog.types.Processor:
    """Return a processor that merges *context* into every event."""

    def _inject_context(
        logger: Any,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return _inject_context


def _build_processor_chain(config: LoggingConfig) -> list[structlog.types.Processor]:
    """Build the structlog processor chain from *config*."""
    processors: list[structlog.types.Processor] = [
        _add_timestamp,
        _add_log_level,
    ]

    if config.context:
        processors.append(_make_context_injector(config.context))

    if config.log_filter is not None:
        processors.append(config.log_filter)

    if config.format == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return processors


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def configure_htnplan_logging(config: LoggingConfig | None = None) -> LoggingConfig:
    """Configure structlog for htnplan.

    Args:
        config: A :class:`LoggingConfig`, or ``None`` for defaults
            (console output to stderr at INFO level).

    Returns:
        The :class:`LoggingConfig` that was applied.
    """
    if config is None:
        config = LoggingConfig()

    root_level = getattr(logging, config.level.upper(), logging.INFO)

    structlog.configure(
        processors=_build_processor_chain(config),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=config.stream),
        cache_logger_on_first_use=False,
    )

    return config
