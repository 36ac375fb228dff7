"""htnplan configuration management using pydantic-settings.

Loads settings from environment variables (with HTNPLAN_ prefix) and .env
files. Nested settings use '__' as delimiter (e.g., HTNPLAN_LOG__LEVEL=DEBUG).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from htnplan.observability.logging_config import LogFormat
from htnplan.planning.trace import TraceKind

_LEVELS = ("debug", "info", "warning", "error", "critical")


class LogSettings(BaseModel):
    """Logging settings.

    ``context`` is added to every event. The ``filter_*`` fields drop events
    outside the listed domains or tasks, or below the given level.
    """

    level: str = "INFO"
    format: LogFormat = LogFormat.CONSOLE
    output: str = "stderr"
    context: dict[str, str] = Field(default_factory=dict)
    filter_domains: list[str] = Field(default_factory=list)
    filter_tasks: list[str] = Field(default_factory=list)
    filter_level: str | None = None

    @field_validator("filter_level")
    @classmethod
    def _known_level(cls, value: str | None) -> str | None:
        if value is not None and value.lower() not in _LEVELS:
            msg = f"Unknown log level: {value!r}"
            raise ValueError(msg)
        return value


class PlannerSettings(BaseModel):
    """Planner defaults used by the command line."""

    default_domain: str = "dinner"
    trace: TraceKind = TraceKind.NULL


class HtnPlanSettings(BaseSettings):
    """Root settings for htnplan.

    Examples:
        HTNPLAN_LOG__LEVEL=DEBUG
        HTNPLAN_LOG__FORMAT=json
        HTNPLAN_PLANNER__TRACE=print
        HTNPLAN_LOG__CONTEXT='{"run": "nightly"}'
        HTNPLAN_LOG__FILTER_TASKS='["have_dinner"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="HTNPLAN_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    log: LogSettings = Field(default_factory=LogSettings)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)


def get_settings(**overrides: object) -> HtnPlanSettings:
    """Create an HtnPlanSettings instance with optional overrides."""
    return HtnPlanSettings(**overrides)
