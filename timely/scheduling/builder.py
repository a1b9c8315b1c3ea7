"""
Schedule builder DSL.

Constructors (daily, hourly, weekly, ...) start from a base skeleton of the
five cron fields and overlay filters in call order. A filter is a plain
mapping of field names (and start_time/end_time) to values; later filters
win for a given field.

Example:
    >>> from timely.scheduling.builder import daily, at, hour, minute, on, month
    >>> sched = daily(at(hour(9), minute(20)), on(month("apr")))
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from timely.constants import (
    DAY,
    DAY_OF_WEEK,
    END_TIME,
    FIELD_ORDER,
    HOUR,
    MINUTE,
    MONTH,
    START_TIME,
    WINDOW_KEYS,
)
from timely.utils.instants import to_datetime
from .exceptions import InvalidFieldValue
from .fields import (
    ALL,
    FieldValue,
    Range,
    ValueList,
    interval,
    normalize,
    resolve_field_name,
)

Filter = Mapping[str, Any]


#######################################################################
## Data Classes
#######################################################################

@dataclass(frozen=True)
class Schedule:
    """Five validated cron fields plus an optional validity window.

    start_time is inclusive and end_time is exclusive. Both are stored
    verbatim and resolved when compared (see timely.utils.instants).
    """
    minute: FieldValue
    hour: FieldValue
    day: FieldValue
    month: FieldValue
    day_of_week: FieldValue
    start_time: Any = None
    end_time: Any = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Schedule":
        """Build a schedule from a mapping that must name all five fields.

        Raises:
            InvalidFieldValue: If a field is missing or fails validation
        """
        fields: Dict[str, Any] = {}
        window: Dict[str, Any] = {}
        for key, value in values.items():
            if key in WINDOW_KEYS:
                window[key] = _checked_instant(key, value)
            else:
                fields[resolve_field_name(key)] = value

        missing = [name for name in FIELD_ORDER if name not in fields]
        if missing:
            raise InvalidFieldValue(f"Schedule is missing fields: {', '.join(missing)}", value=missing)

        normalized = {name: normalize(name, fields[name]) for name in FIELD_ORDER}
        return cls(**normalized, **window)

    def field_values(self) -> tuple:
        """Return the five field values in cron wire order."""
        return tuple(getattr(self, name) for name in FIELD_ORDER)

    def merge(self, *filters: Filter) -> "Schedule":
        """Overlay filters in order onto this schedule (later filters win)."""
        changes: Dict[str, Any] = {}
        for flt in filters:
            for key, value in _validated_items(flt):
                changes[key] = value
        return replace(self, **changes) if changes else self


@dataclass
class BuildResult:
    """Result of building a schedule without raising."""
    schedule: Optional[Schedule]
    success: bool
    error: Optional[InvalidFieldValue] = None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None


def _validated_items(flt: Filter):
    if not isinstance(flt, Mapping):
        raise InvalidFieldValue(f"Filters must be mappings, got {flt!r}", value=flt)
    for key, value in flt.items():
        if key in WINDOW_KEYS:
            yield key, _checked_instant(key, value)
        else:
            name = resolve_field_name(key)
            yield name, normalize(name, value)


def _checked_instant(key: str, value: Any) -> Any:
    """Return value unchanged after checking it resolves to an instant."""
    if value is None:
        return value
    try:
        to_datetime(value)
    except ValueError as e:
        raise InvalidFieldValue(f"Invalid {key}: {e}", field=key, value=value) from e
    return value


#######################################################################
## Base Constructors
#######################################################################

def create_schedule(minute: Any, hour: Any, day: Any, month: Any, day_of_week: Any, *filters: Filter) -> Schedule:
    """Create a schedule from five base values, then apply filters.

    Filters available: at, on, per, each, start_time, end_time

    Raises:
        InvalidFieldValue: If any value fails validation
    """
    base = Schedule(
        minute=normalize(MINUTE, minute),
        hour=normalize(HOUR, hour),
        day=normalize(DAY, day),
        month=normalize(MONTH, month),
        day_of_week=normalize(DAY_OF_WEEK, day_of_week),
    )
    return base.merge(*filters)


def each_minute(*filters: Filter) -> Schedule:
    """Create a schedule that runs every minute."""
    return create_schedule(ALL, ALL, ALL, ALL, ALL, *filters)


def hourly(*filters: Filter) -> Schedule:
    """Create a schedule that runs every hour, at minute 0 unless filtered.

    For example hourly(at(minute(10))) runs at ten past each hour.
    """
    return create_schedule(0, ALL, ALL, ALL, ALL, *filters)


def daily(*filters: Filter) -> Schedule:
    """Create a schedule that runs once a day, at midnight unless filtered.

    For example daily(at(hour(9), minute(30))) runs at 9:30am.
    """
    return create_schedule(0, 0, ALL, ALL, ALL, *filters)


def weekly(*filters: Filter) -> Schedule:
    """Create a schedule that runs once a week, Sunday midnight unless filtered.

    For example weekly(on(day_of_week("wed")), at(hour(9), minute(10)))
    runs on Wednesdays at 9:10am.
    """
    return create_schedule(0, 0, ALL, ALL, 0, *filters)


def monthly(*filters: Filter) -> Schedule:
    """Create a schedule that runs on the 1st of each month at midnight unless filtered.

    For example monthly(at(day(3), hour(9), minute(10))) runs on the 3rd at 9:10am.
    """
    return create_schedule(0, 0, 1, ALL, ALL, *filters)


def every(amount: int, unit: str, *filters: Filter) -> Schedule:
    """Create a schedule that recurs on an interval of the given unit.

    For example every(5, "minutes") runs every five minutes. The interval
    is applied after the filters.
    """
    return each_minute(*filters).merge(per(unit, amount))


def _set_list_values(schedule: Schedule, field: str, values: Any) -> Schedule:
    if isinstance(values, (str, int)) or not isinstance(values, Iterable):
        values = [values]
    return replace(schedule, **{field: normalize(field, list(values))})


def on_days(values: Any, *filters: Filter) -> Schedule:
    """Run daily on each day of the month in values, e.g. on_days([1, 15])."""
    return _set_list_values(daily(*filters), DAY, values)


def on_months(values: Any, *filters: Filter) -> Schedule:
    """Run daily in each month in values, e.g. on_months(["jun", "dec"])."""
    return _set_list_values(daily(*filters), MONTH, values)


def on_days_of_week(values: Any, *filters: Filter) -> Schedule:
    """Run daily on each day of the week in values, e.g. on_days_of_week(["mon", "fri"])."""
    return _set_list_values(daily(*filters), DAY_OF_WEEK, values)


#######################################################################
## Filters
#######################################################################

def on(*values: Filter) -> Dict[str, Any]:
    """Filter to run on particular field values, e.g. on(day_of_week("wed", "fri"))."""
    merged: Dict[str, Any] = {}
    for value in values:
        merged.update(dict(_validated_items(value)))
    return merged


def at(*values: Filter) -> Dict[str, Any]:
    """Filter to run at particular field values, e.g. at(hour(9), minute(10))."""
    return on(*values)


def per(field: str, amount: int) -> Dict[str, Any]:
    """Filter to recur on an interval of a field, e.g. per("day", 2) for every other day."""
    return {resolve_field_name(field): interval(amount)}


def each(amount: int, unit: str) -> Dict[str, Any]:
    """Filter form of every(), e.g. every(2, "minutes", each(2, "days"))."""
    return per(unit, amount)


def in_range(start: Any, end: Any) -> Range:
    """Inclusive range value for a field, e.g. month(in_range("apr", "sep"))."""
    return Range(start, end)


def start_time(instant: Any) -> Dict[str, Any]:
    """Filter setting an inclusive start instant for the schedule."""
    return {START_TIME: instant}


def end_time(instant: Any) -> Dict[str, Any]:
    """Filter setting an exclusive end instant for the schedule."""
    return {END_TIME: instant}


#######################################################################
## Field Setters
#######################################################################

def _field_setter(field: str, values: tuple) -> Dict[str, FieldValue]:
    if not values:
        raise InvalidFieldValue(f"No value given for field '{field}'", field=field)
    if len(values) == 1:
        return {field: normalize(field, values[0])}
    return {field: normalize(field, ValueList(tuple(values)))}


def minute(*values: Any) -> Dict[str, FieldValue]:
    """Minute value(s), 0-59."""
    return _field_setter(MINUTE, values)


def hour(*values: Any) -> Dict[str, FieldValue]:
    """Hour value(s), 0-23. See am() and pm() for 12-hour input."""
    return _field_setter(HOUR, values)


def day(*values: Any) -> Dict[str, FieldValue]:
    """Day of month value(s), 1-31."""
    return _field_setter(DAY, values)


def month(*values: Any) -> Dict[str, FieldValue]:
    """Month value(s), 1-12 or names such as 'apr'."""
    return _field_setter(MONTH, values)


def day_of_week(*values: Any) -> Dict[str, FieldValue]:
    """Day of week value(s), 0-6 (Sunday is 0) or names such as 'mon'."""
    return _field_setter(DAY_OF_WEEK, values)


#######################################################################
## Result API
#######################################################################

def build_schedule(constructor: Callable[..., Schedule], *args: Any, **kwargs: Any) -> BuildResult:
    """Call a schedule constructor, returning a BuildResult instead of raising.

    Example:
        >>> result = build_schedule(daily, at(hour(9)))
        >>> result.success
        True

    Note that filter arguments are evaluated before this call; wrap the
    whole construction in a lambda to capture their validation errors too.
    """
    try:
        schedule = constructor(*args, **kwargs)
    except InvalidFieldValue as e:
        return BuildResult(schedule=None, success=False, error=e)
    return BuildResult(schedule=schedule, success=True)
