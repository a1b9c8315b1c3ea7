"""
Cron compiler.

Renders a Schedule's five time fields as a standard five-field cron
expression: 'minute hour day month day_of_week', space separated.
"""

from typing import Any, Optional

from timely.utils.instants import Instant, resolve_timezone, to_datetime
from .builder import Schedule
from .exceptions import CronRenderError
from .fields import Interval, Number, Range, ValueList, Wildcard


def render_field(value: Any) -> str:
    """Render one field value as cron text.

    Lists keep their original order. Range elements are rendered with
    render_field themselves.

    Raises:
        CronRenderError: If the value is not a known field value variant
    """
    if isinstance(value, Wildcard):
        return "*"
    if isinstance(value, ValueList):
        return ",".join(render_field(item) for item in value.items)
    if isinstance(value, Interval):
        return f"*/{value.step}"
    if isinstance(value, Range):
        return f"{render_field(value.start)}-{render_field(value.end)}"
    if isinstance(value, Number):
        return str(value.value)
    raise CronRenderError(f"Cannot render field value: {value!r}")


def compile_schedule(schedule: Schedule) -> str:
    """Compile a schedule to its five-field cron expression.

    Example:
        >>> compile_schedule(daily(at(hour(9), minute(20))))
        '20 9 * * *'
    """
    return " ".join(render_field(value) for value in schedule.field_values())


def time_to_cron(instant: Instant, tz_name: Optional[str] = None) -> str:
    """Return the cron expression matching the minute of an instant.

    The instant is converted to tz_name (default: configured or local zone)
    before its fields are read. Day of week uses cron numbering (Sunday 0).
    """
    moment = to_datetime(instant, tz_name).astimezone(resolve_timezone(tz_name))
    return " ".join(
        str(part)
        for part in (
            moment.minute,
            moment.hour,
            moment.day,
            moment.month,
            moment.isoweekday() % 7,
        )
    )
