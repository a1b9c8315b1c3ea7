"""
Runtime configuration for timely bootstrap.

Provides structured configuration for trigger engine initialization with
validation, defaults, and path management.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dateutil import tz

from timely.constants import DEFAULT_MAX_WORKERS
from timely.settings import get_app_settings


@dataclass
class RuntimeConfig:
    """
    Configuration for timely runtime bootstrap.

    Attributes:
        system_root: Path for system data (activity log)
        max_workers: Maximum trigger engine worker threads
        timezone: Timezone name for cron matching (None uses the local zone)
        log_level: Level applied to the apscheduler logger (DEBUG, INFO, WARNING, ERROR)
        features: Feature flags and configuration overrides
    """

    system_root: Path
    max_workers: int = DEFAULT_MAX_WORKERS
    timezone: Optional[str] = None
    log_level: str = "INFO"
    features: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.system_root, str):
            self.system_root = Path(self.system_root)

        try:
            self.system_root.mkdir(parents=True, exist_ok=True)
        except (OSError, PermissionError) as e:
            raise RuntimeConfigError(f"Cannot create required directories: {e}")

        if self.max_workers < 1:
            raise RuntimeConfigError("max_workers must be at least 1")

        if self.timezone and tz.gettz(self.timezone) is None:
            raise RuntimeConfigError(f"Unknown timezone '{self.timezone}'")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise RuntimeConfigError(f"Invalid log_level '{self.log_level}'. Must be one of: {valid_levels}")

    @classmethod
    def for_production(cls) -> "RuntimeConfig":
        """Create production configuration from environment settings."""
        settings = get_app_settings()
        return cls(
            system_root=settings.system_root,
            max_workers=settings.max_workers,
            timezone=settings.timezone,
            log_level="INFO"
        )

    @classmethod
    def for_testing(cls, run_path: Path, timezone: Optional[str] = "UTC") -> "RuntimeConfig":
        """Create test configuration isolated under run_path."""
        return cls(
            system_root=Path(run_path) / "system",
            max_workers=1,
            timezone=timezone,
            log_level="DEBUG",
            features={"testing": True}
        )


class RuntimeConfigError(Exception):
    """Raised when runtime configuration is invalid."""
    pass
