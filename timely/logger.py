"""Unified logger providing technical instrumentation and activity logging."""

from __future__ import annotations

import hashlib
import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Tuple

import logfire

from timely import constants as timely_constants
from timely.settings import get_app_settings


_activity_logger: Optional[logging.Logger] = None
_activity_log_path: Optional[Path] = None
_activity_logger_lock = Lock()
_logfire_config_state: Optional[Tuple[bool, bool, Optional[str]]] = None
_logger_internal = logging.getLogger(__name__)


def _token_fingerprint(token: Optional[str]) -> Optional[str]:
    """Create a stable fingerprint for secret comparison without storing raw values."""
    if not token:
        return None
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_logfire_configuration(force: bool = False) -> None:
    """
    Reconfigure the global Logfire client based on current settings.

    Args:
        force: When True, always reapply configuration even if nothing changed.
    """
    global _logfire_config_state

    try:
        settings = get_app_settings()
        enabled = bool(settings.logfire_enabled)
        console = bool(settings.console_logging)
        token = settings.logfire_token
    except Exception as exc:  # pragma: no cover - settings errors surface elsewhere
        _logger_internal.error("Failed to read logging settings, defaulting to local only: %s", exc)
        enabled, console, token = False, True, None

    desired_state = (enabled, console, _token_fingerprint(token))

    # Keep environment token synchronized for logfire itself.
    if token:
        os.environ["LOGFIRE_TOKEN"] = token

    if not force and _logfire_config_state == desired_state:
        return

    send_option: str | bool = "if-token-present" if enabled else False

    logfire.configure(
        send_to_logfire=send_option,
        console=None if console else False,
        scrubbing=False,
    )

    _logfire_config_state = desired_state


# Configure at import time
refresh_logfire_configuration(force=True)


def _resolve_activity_log_path() -> Path:
    """Determine the activity log path from the active settings."""
    return Path(get_app_settings().system_root) / timely_constants.ACTIVITY_LOG_FILENAME


def _ensure_activity_logger() -> logging.Logger:
    """Create or return the process-wide activity logger."""

    global _activity_logger
    global _activity_log_path

    desired_path = _resolve_activity_log_path()

    if _activity_logger and _activity_log_path == desired_path:
        return _activity_logger

    with _activity_logger_lock:
        if _activity_logger and _activity_log_path == desired_path:
            return _activity_logger

        # Tear down existing handlers if the target path changes between runs
        if _activity_logger and _activity_log_path != desired_path:
            for handler in list(_activity_logger.handlers):
                _activity_logger.removeHandler(handler)
                handler.close()
            _activity_logger = None

        desired_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            desired_path,
            maxBytes=timely_constants.ACTIVITY_LOG_MAX_BYTES,
            backupCount=timely_constants.ACTIVITY_LOG_BACKUP_COUNT,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

        logger = logging.getLogger("timely.activity")
        logger.setLevel(logging.INFO)
        logger.propagate = False
        logger.addHandler(handler)

        _activity_logger = logger
        _activity_log_path = desired_path
        return logger


class UnifiedLogger:
    """Unified logger providing instrumentation and persistent activity logging."""

    def __init__(self, tag: str, schedule_context: Optional[str] = None):
        """
        Initialize unified logger for a module or component.

        Args:
            tag: Module or component identifier
            schedule_context: Optional schedule id attached to every activity entry
        """
        self.tag = tag
        self.schedule_context = schedule_context
        self._logfire_instance = None  # Lazy initialization

    @property
    def _logfire(self):
        """Lazy-loaded Logfire instance."""
        if self._logfire_instance is None:
            refresh_logfire_configuration()
            self._logfire_instance = logfire
        return self._logfire_instance

    # Technical Instrumentation Methods

    def info(self, message: str, **extra: Any) -> None:
        """Technical info logging."""
        self._logfire.info(message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        """Technical warning logging."""
        self._logfire.warning(message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        """Technical error logging."""
        self._logfire.error(message, **extra)

    def debug(self, message: str, **extra: Any) -> None:
        """Technical debug logging."""
        self._logfire.debug(message, **extra)

    @contextmanager
    def span(self, operation: str, **span_data: Any):
        """
        Manual instrumentation span for critical code paths.

        Usage:
            with logger.span("refresh", batch_size=3):
                # critical operation
                pass
        """
        with self._logfire.span(f"{self.tag}:{operation}", **span_data):
            yield

    def trace(self, func_name_template: Optional[str] = None):
        """
        Decorator for function instrumentation with sensible defaults.

        Args:
            func_name_template: Optional span name (defaults to "<tag>:<function name>")

        Usage:
            @logger.trace()
            def refresh(items): pass

            @logger.trace("start_schedule")
            def start_schedule(item): pass
        """
        def decorator(func):
            span_name = func_name_template or f"{self.tag}:{func.__name__}"
            return self._logfire.instrument(
                span_name,
                extract_args=True,
                record_return=True
            )(func)
        return decorator

    # Activity Logging

    def activity(
        self,
        message: str,
        *,
        schedule_id: Optional[str] = None,
        level: str = "info",
        metadata: Optional[Dict[str, Any]] = None,
        **context: Any,
    ) -> None:
        """Record an operational activity entry and mirror it to Logfire.

        Args:
            message: Human-readable description of the activity.
            schedule_id: Schedule the entry belongs to. Falls back to the
                logger's schedule context, then to ``"system"``.
            level: Activity level; used for Logfire mirroring and stored payload.
            metadata: Optional structured payload persisted alongside the message.
            **context: Additional context persisted with the entry.
        """
        resolved = schedule_id or self.schedule_context or timely_constants.SYSTEM_CONTEXT

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": level,
            "tag": self.tag,
            "schedule": resolved,
            "message": message,
        }

        if metadata:
            payload["metadata"] = metadata

        if context:
            payload["context"] = context

        activity_logger = _ensure_activity_logger()
        activity_logger.info(json.dumps(payload, ensure_ascii=False, default=str))

        log_method = getattr(self._logfire, level, None)
        if callable(log_method):
            log_method(message, tag=self.tag, schedule=resolved, metadata=metadata, **context)
        else:
            self._logfire.info(message, tag=self.tag, schedule=resolved, metadata=metadata, level=level, **context)
