"""
Runtime context for timely.

Provides access to the trigger engine and schedule manager created by
bootstrap_runtime() and manages their shutdown.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from timely.logger import UnifiedLogger
from timely.scheduling.jobs import RefreshReport, ScheduleManager
from timely.scheduling.registry import ScheduledItem
from timely.scheduling.triggers import APSchedulerEngine
from .config import RuntimeConfig


@dataclass
class RuntimeContext:
    """
    Central runtime context for timely services.

    Attributes:
        config: Runtime configuration
        engine: APScheduler-backed trigger engine
        manager: Schedule lifecycle manager bound to the engine
        logger: Unified logger for runtime operations
        started_at: When bootstrap completed
        last_refresh: Timestamp of the most recent refresh (if any)
    """

    config: RuntimeConfig
    engine: APSchedulerEngine
    manager: ScheduleManager
    logger: UnifiedLogger
    started_at: datetime
    last_refresh: Optional[datetime] = None

    def refresh(self, items: Iterable[ScheduledItem]) -> RefreshReport:
        """Reconcile the registered schedules with items."""
        items = list(items)
        with self.logger.span("refresh", batch_size=len(items)):
            report = self.manager.refresh_schedules(items)
        self.last_refresh = datetime.now()
        return report

    def shutdown(self, wait: bool = True) -> None:
        """Deregister all schedules and stop the trigger engine."""
        self.logger.info("Shutting down runtime context")
        removed = self.manager.end_all_schedules()
        self.engine.stop(wait=wait)
        self.logger.activity(
            "Runtime shutdown complete",
            metadata={"schedules_removed": removed},
        )

    def get_runtime_summary(self) -> dict:
        """
        Get runtime context summary for diagnostics.

        Returns basic information about the runtime state without
        exposing internal objects.
        """
        if self.engine.running:
            engine_info = f"running ({self.engine.job_count()} jobs)"
        else:
            engine_info = "stopped"

        return {
            "system_root": str(self.config.system_root),
            "timezone": self.config.timezone or "local",
            "engine": engine_info,
            "schedules": len(self.manager),
            "started_at": self.started_at.isoformat(),
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
            "features": self.config.features,
            "log_level": self.config.log_level
        }
