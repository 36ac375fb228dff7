"""Configuration management for htnplan."""

from htnplan.config.settings import HtnPlanSettings, LogSettings, PlannerSettings, get_settings

__all__ = ["HtnPlanSettings", "LogSettings", "PlannerSettings", "get_settings"]
