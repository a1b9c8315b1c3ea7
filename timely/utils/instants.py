"""Instant resolution helpers.

Schedules store their start/end instants verbatim. These helpers resolve
them to timezone-aware datetimes at the point of comparison.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

from dateutil import parser as dateutil_parser
from dateutil import tz

from timely.settings import get_app_settings

Instant = Union[datetime, int, float, str]


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """Return the named timezone, the configured one, or the local zone.

    Raises:
        ValueError: If the timezone name is unknown
    """
    name = name or get_app_settings().timezone
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: '{name}'")
    return zone


def to_datetime(instant: Instant, tz_name: Optional[str] = None) -> datetime:
    """Resolve an instant to an aware datetime.

    Args:
        instant: Aware or naive datetime, epoch seconds, or an explicit
            datetime string such as '2025-12-25 10:00'
        tz_name: Timezone used for naive values (defaults to configured/local)

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the instant cannot be interpreted
    """
    if isinstance(instant, bool):
        raise ValueError(f"Not an instant: {instant!r}")

    if isinstance(instant, datetime):
        value = instant
    elif isinstance(instant, (int, float)):
        return datetime.fromtimestamp(instant, tz=timezone.utc)
    elif isinstance(instant, str):
        try:
            value = dateutil_parser.parse(instant)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Could not parse instant: '{instant}'") from e
    else:
        raise ValueError(f"Not an instant: {instant!r}")

    if value.tzinfo is None:
        value = value.replace(tzinfo=resolve_timezone(tz_name))
    return value


def to_timestamp(instant: Instant, tz_name: Optional[str] = None) -> float:
    """Resolve an instant to epoch seconds."""
    return to_datetime(instant, tz_name).timestamp()
