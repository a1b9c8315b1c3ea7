"""
Trigger engine adapter for APScheduler.

Validates compiled cron expressions and registers them as APScheduler
CronTrigger jobs on a BackgroundScheduler, which owns the thread pool that
fires the callbacks.
"""

import re
import uuid
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from timely.constants import APSCHEDULER_WEEKDAYS, DEFAULT_MAX_WORKERS, FIELD_BOUNDS, FIELD_ORDER
from timely.logger import UnifiedLogger
from timely.settings import get_app_settings
from timely.utils.instants import resolve_timezone
from .exceptions import InvalidCronExpression, RegistrationError

# Create module logger
logger = UnifiedLogger(tag="scheduling-triggers")

# One comma-separated field: '*', '*/N', 'N', 'N-M' or a list of those
_FIELD_PATTERN = re.compile(r"^(\*|\*/\d+|\d+|\d+-\d+)(,(\*|\*/\d+|\d+|\d+-\d+))*$")


#######################################################################
## Engine Protocol
#######################################################################

@runtime_checkable
class TriggerEngine(Protocol):
    """Contract for the engine that fires callbacks on cron matches."""

    def register(self, cron_expr: str, callback: Callable[[], Any], name: Optional[str] = None) -> Any:
        """Register a callback for a cron expression and return an opaque handle.

        Raises:
            InvalidCronExpression: If cron_expr is not a valid five-field expression
            RegistrationError: If the engine cannot register the trigger
        """
        ...

    def deregister(self, handle: Any) -> None:
        """Remove a registration. No-op if the handle is unknown."""
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


#######################################################################
## Cron Validation
#######################################################################

def validate_cron_expression(cron_expr: str) -> list:
    """Check a five-field cron expression and return its fields.

    Raises:
        InvalidCronExpression: If the syntax or any numeric value is invalid
    """
    if not isinstance(cron_expr, str):
        raise InvalidCronExpression(f"Cron expression must be a string, got {cron_expr!r}", expression=str(cron_expr))

    parts = cron_expr.split(" ")
    if len(parts) != 5:
        raise InvalidCronExpression(
            f"Invalid crontab expression: '{cron_expr}'\n"
            f"Expected format: 'minute hour day month day_of_week'",
            expression=cron_expr,
        )

    for name, part in zip(FIELD_ORDER, parts):
        if not _FIELD_PATTERN.match(part):
            raise InvalidCronExpression(
                f"Invalid {name} field '{part}' in crontab expression: '{cron_expr}'",
                expression=cron_expr,
            )
        if any(token.startswith("*/") and int(token[2:]) < 1 for token in part.split(",")):
            raise InvalidCronExpression(
                f"Step must be at least 1 in {name} field '{part}': '{cron_expr}'",
                expression=cron_expr,
            )
        low, high = FIELD_BOUNDS[name]
        for number in _field_numbers(part):
            if not low <= number <= high:
                raise InvalidCronExpression(
                    f"Value {number} out of range for {name} ({low}-{high}) in '{cron_expr}'",
                    expression=cron_expr,
                )
    return parts


def _field_numbers(part: str):
    for token in part.split(","):
        if token.startswith("*"):
            continue
        for number in token.split("-"):
            yield int(number)


def day_of_week_to_names(part: str) -> str:
    """Translate a cron day-of-week field (Sunday = 0) to APScheduler weekday names.

    Steps and ranges are expanded to explicit names, e.g. '1-3' -> 'mon,tue,wed'
    and '*/3' -> 'sun,wed,sat'. A bare wildcard is kept as '*'.
    """
    if part == "*":
        return part

    names = []
    for token in part.split(","):
        if token == "*":
            days = range(7)
        elif token.startswith("*/"):
            days = range(0, 7, int(token[2:]))
        elif "-" in token:
            start, end = (int(value) for value in token.split("-"))
            if start > end:
                raise InvalidCronExpression(f"Inverted day-of-week range '{token}' in '{part}'", expression=part)
            days = range(start, end + 1)
        else:
            days = [int(token)]
        names.extend(APSCHEDULER_WEEKDAYS[day] for day in days)

    return ",".join(names)


#######################################################################
## APScheduler Engine
#######################################################################

class APSchedulerEngine:
    """TriggerEngine backed by an APScheduler BackgroundScheduler.

    Example:
        >>> engine = APSchedulerEngine(max_workers=2)
        >>> engine.start()
        >>> handle = engine.register("*/5 * * * *", lambda: print("tick"))
        >>> engine.deregister(handle)
        >>> engine.stop()
    """

    name = "apscheduler"

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, timezone: Optional[str] = None):
        self.timezone = timezone or get_app_settings().timezone
        if self.timezone:
            resolve_timezone(self.timezone)

        scheduler_options = {
            "executors": {"default": ThreadPoolExecutor(max_workers)},
            "job_defaults": {"coalesce": True, "max_instances": 1},
        }
        if self.timezone:
            scheduler_options["timezone"] = self.timezone
        self._scheduler = BackgroundScheduler(**scheduler_options)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self, paused: bool = False) -> None:
        """Start the scheduler thread; paused defers firing until resume()."""
        if self._scheduler.running:
            logger.warning("Trigger engine already started")
            return
        self._scheduler.start(paused=paused)
        logger.info(f"Trigger engine started (paused={paused})")

    def resume(self) -> None:
        self._scheduler.resume()
        logger.info("Trigger engine resumed")

    def stop(self, wait: bool = True) -> None:
        """Shut down the scheduler, waiting for running callbacks when wait is True."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Trigger engine stopped")

    def create_trigger(self, cron_expr: str) -> CronTrigger:
        """Create an APScheduler CronTrigger from a five-field cron expression.

        Raises:
            InvalidCronExpression: If the expression is invalid
        """
        parts = validate_cron_expression(cron_expr)
        parts[4] = day_of_week_to_names(parts[4])
        try:
            return CronTrigger.from_crontab(" ".join(parts), timezone=self.timezone)
        except (ValueError, TypeError) as e:
            raise InvalidCronExpression(
                f"Invalid crontab expression: '{cron_expr}'\n"
                f"Error: {str(e)}",
                expression=cron_expr,
            ) from e

    def register(self, cron_expr: str, callback: Callable[[], Any], name: Optional[str] = None) -> str:
        """Add a cron job for callback and return its job id as the handle.

        Raises:
            InvalidCronExpression: If the expression is invalid
            RegistrationError: If the engine is not started or APScheduler fails
        """
        if not self._scheduler.running:
            raise RegistrationError("Trigger engine must be started before registering triggers")

        trigger = self.create_trigger(cron_expr)
        handle = uuid.uuid4().hex

        try:
            self._scheduler.add_job(
                callback,
                trigger=trigger,
                id=handle,
                name=name or f"cron: {cron_expr}",
            )
        except Exception as e:
            raise RegistrationError(f"Failed to register trigger '{cron_expr}': {e}") from e

        return handle

    def deregister(self, handle: Any) -> None:
        try:
            self._scheduler.remove_job(handle)
        except JobLookupError:
            pass

    def get_job(self, handle: Any):
        """Return the APScheduler job for a handle, or None."""
        return self._scheduler.get_job(handle)

    def job_count(self) -> int:
        return len(self._scheduler.get_jobs())
