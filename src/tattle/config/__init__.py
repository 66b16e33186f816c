"""Configuration management module.

This module provides:
- Environment-based settings via pydantic-settings
- Cached settings access via get_settings()

Reporter options validation lives in ``tattle.config.options``; it depends
on the delivery transports, so it is not imported here.
"""

from .settings import LogFormat, LogLevel, ReporterSettings, get_settings

__all__ = [
    "ReporterSettings",
    "get_settings",
    "LogLevel",
    "LogFormat",
]
