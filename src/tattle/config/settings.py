"""Environment-driven settings with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)
"""

from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class ReporterSettings(BaseSettings):
    """Reporter settings read from ``TATTLE_*`` variables.

    Only the url transport can be configured from the environment; a delivery
    function has to be passed in code.
    """

    model_config = SettingsConfigDict(
        env_prefix="TATTLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="tattle", description="Service name for log events")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    url: str | None = Field(default=None, description="Collector endpoint")
    username: str | None = Field(default=None, description="Basic auth username")
    password: str | None = Field(default=None, description="Basic auth password")
    object_name: str | None = Field(
        default="transaction",
        description="Wrapper key for the record; empty sends it flat",
    )
    timeout_seconds: float | None = Field(default=10.0, description="Collector request timeout")

    @field_validator("object_name")
    @classmethod
    def empty_object_name_is_flat(cls, v: str | None) -> str | None:
        """Treat an empty wrapper key as 'no wrapper'."""
        if v is not None and not v.strip():
            return None
        return v

    def to_options(self) -> dict[str, Any]:
        """Build raw reporter options from the environment."""
        options: dict[str, Any] = {
            "object_name": self.object_name,
            "timeout": self.timeout_seconds,
        }
        if self.url:
            options["url"] = self.url
        if self.username is not None or self.password is not None:
            options["auth"] = {"username": self.username, "password": self.password}
        return options


@lru_cache
def get_settings() -> ReporterSettings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return ReporterSettings()
