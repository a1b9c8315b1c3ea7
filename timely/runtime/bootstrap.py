"""
Runtime bootstrap for timely.

Provides single entry point for initializing the trigger engine and
schedule manager with proper configuration and error handling.
"""

import logging
from datetime import datetime
from typing import Iterable

from timely.logger import UnifiedLogger
from timely.scheduling.jobs import ScheduleManager
from timely.scheduling.registry import ScheduledItem
from timely.scheduling.triggers import APSchedulerEngine
from timely.settings import validate_settings
from .config import RuntimeConfig, RuntimeConfigError
from .context import RuntimeContext


def bootstrap_runtime(config: RuntimeConfig, items: Iterable[ScheduledItem] = ()) -> RuntimeContext:
    """
    Bootstrap the timely runtime.

    Starts the trigger engine paused, registers the initial schedules, then
    resumes the engine so no trigger fires before the initial set is in place.

    Args:
        config: Runtime configuration with paths and settings
        items: Initial scheduled items

    Returns:
        RuntimeContext with initialized services

    Raises:
        RuntimeConfigError: If configuration is invalid
        RuntimeStartupError: If service initialization fails
    """
    logger = UnifiedLogger(tag="runtime-bootstrap")
    logger.info("Starting runtime bootstrap", system_root=str(config.system_root))

    config_status = validate_settings()
    if not config_status.is_healthy:
        error_messages = [f"{issue.name}: {issue.message}" for issue in config_status.errors]
        logger.error("Critical configuration validation failed", errors=error_messages)
        raise RuntimeConfigError("; ".join(error_messages))

    for warning in config_status.warnings:
        logger.warning(warning.message, issue=warning.name, severity=warning.severity)

    logging.getLogger("apscheduler").setLevel(config.log_level.upper())

    engine = None
    try:
        engine = APSchedulerEngine(max_workers=config.max_workers, timezone=config.timezone)

        engine.start(paused=True)

        manager = ScheduleManager(engine)
        report = manager.refresh_schedules(items)

        engine.resume()

    except Exception as e:
        logger.error(f"Runtime bootstrap failed: {e}")
        if engine is not None:
            try:
                engine.stop(wait=False)
            except Exception as cleanup_error:
                logger.error(f"Error during bootstrap cleanup: {cleanup_error}")
        raise RuntimeStartupError(f"Failed to bootstrap runtime: {e}") from e

    runtime_context = RuntimeContext(
        config=config,
        engine=engine,
        manager=manager,
        logger=logger,
        started_at=datetime.now(),
    )

    logger.activity(
        "Runtime bootstrap completed successfully",
        metadata={
            "system_root": str(config.system_root),
            "max_workers": config.max_workers,
            "timezone": config.timezone,
            "schedules": report.to_dict(),
            "features": config.features,
        },
    )

    return runtime_context


class RuntimeBootstrapError(Exception):
    """Base exception for runtime bootstrap failures."""
    pass


class RuntimeStartupError(RuntimeBootstrapError):
    """Raised when service initialization fails during bootstrap."""
    pass
