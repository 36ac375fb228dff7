"""Observability: structured logging configuration."""

from htnplan.observability.logging_config import (
    LogFilter,
    LogFormat,
    LoggingConfig,
    configure_htnplan_logging,
)

__all__ = [
    "LogFilter",
    "LogFormat",
    "LoggingConfig",
    "configure_htnplan_logging",
]
