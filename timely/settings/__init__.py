"""
Application settings and configuration health utilities.

Provides a single typed interface for environment-driven settings along with
a helper to diagnose configuration that would disable runtime features.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dateutil import tz
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from timely.constants import DEFAULT_MAX_WORKERS


class ConfigurationIssue(BaseModel):
    """Represents a configuration validation issue."""

    name: str
    message: str
    severity: str  # 'error' or 'warning'


class ConfigurationStatus(BaseModel):
    """Aggregated configuration validation results."""

    issues: List[ConfigurationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> List[ConfigurationIssue]:
        """Return error-severity issues."""
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> List[ConfigurationIssue]:
        """Return warning-severity issues."""
        return [issue for issue in self.issues if issue.severity == "warning"]

    @property
    def is_healthy(self) -> bool:
        """Return True when no error-severity issues exist."""
        return not self.errors

    def add_issue(self, name: str, message: str, severity: str = "error") -> None:
        """Append an issue to the collection."""
        self.issues.append(ConfigurationIssue(name=name, message=message, severity=severity))


class AppSettings(BaseSettings):
    """
    Infrastructure settings loaded from environment variables.

    Secrets (LOGFIRE_TOKEN) are read from the environment as well but are
    never echoed back by the validation helpers.
    """

    model_config = SettingsConfigDict(env_file=None, extra="ignore", case_sensitive=True)

    system_root: Path = Field(default=Path.home() / ".timely", alias="TIMELY_SYSTEM_ROOT")
    timezone: Optional[str] = Field(default=None, alias="TIMELY_TIMEZONE")
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, alias="TIMELY_MAX_WORKERS")
    logfire_enabled: bool = Field(default=False, alias="TIMELY_LOGFIRE")
    console_logging: bool = Field(default=True, alias="TIMELY_CONSOLE_LOGGING")
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")

    @field_validator("system_root", mode="before")
    @classmethod
    def _expand_system_root(cls, value):
        """Expand user paths to absolute Path instances."""
        if value in (None, ""):
            return Path.home() / ".timely"
        return Path(value).expanduser()

    @field_validator("timezone", mode="before")
    @classmethod
    def _blank_timezone(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Load application settings from environment variables.
    """
    return AppSettings()


def refresh_app_settings_cache() -> None:
    """Clear cached settings so future calls reload from environment."""
    get_app_settings.cache_clear()  # type: ignore[attr-defined]


def validate_settings(settings: Optional[AppSettings] = None) -> ConfigurationStatus:
    """
    Validate core configuration requirements.

    Args:
        settings: Optional pre-loaded AppSettings instance.

    Returns:
        ConfigurationStatus describing any issues discovered.
    """
    active_settings = settings or get_app_settings()
    status = ConfigurationStatus()

    if active_settings.max_workers < 1:
        status.add_issue(
            name="TIMELY_MAX_WORKERS",
            message=f"TIMELY_MAX_WORKERS must be at least 1, got {active_settings.max_workers}.",
        )

    if active_settings.timezone and tz.gettz(active_settings.timezone) is None:
        status.add_issue(
            name="TIMELY_TIMEZONE",
            message=f"Unknown timezone '{active_settings.timezone}'.",
        )

    if active_settings.logfire_enabled and not active_settings.logfire_token:
        status.add_issue(
            name="LOGFIRE_TOKEN",
            message="Logfire is enabled but LOGFIRE_TOKEN is not set; traces stay local.",
            severity="warning",
        )

    return status
