"""
Field value model for the five cron time fields.

A field value is one of:
- Wildcard: any value, renders as '*'
- Number: a single concrete value
- ValueList: an ordered list of values (order preserved, never deduplicated)
- Interval: every N units, renders as '*/N'
- Range: an inclusive start/end pair

normalize() turns raw caller input (ints, symbolic names, lists, ranges)
into validated field values for a given field.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Tuple, Union

from timely.constants import FIELD_ALIASES, FIELD_BOUNDS, SYMBOL_TABLES
from .exceptions import InvalidFieldValue


#######################################################################
## Field Value Variants
#######################################################################

@dataclass(frozen=True)
class Wildcard:
    """Matches any value of the field."""

    def __repr__(self) -> str:
        return "ALL"


@dataclass(frozen=True)
class Number:
    """A single concrete field value."""
    value: int


@dataclass(frozen=True)
class ValueList:
    """Ordered list of field values, rendered comma-joined."""
    items: Tuple["FieldValue", ...]


@dataclass(frozen=True)
class Interval:
    """Recurring step over the whole field ('*/step')."""
    step: int


@dataclass(frozen=True)
class Range:
    """Inclusive range between two field values.

    Elements may be raw (ints or symbolic names) until normalized for a field.
    """
    start: Any
    end: Any


FieldValue = Union[Wildcard, Number, ValueList, Interval, Range]

ALL = Wildcard()

_WILDCARD_TOKENS = {"*", "all"}


#######################################################################
## Field Names
#######################################################################

def resolve_field_name(name: str) -> str:
    """Map a field name or interval unit alias to its canonical field name.

    Raises:
        InvalidFieldValue: If the name is not a known field or unit
    """
    key = str(name).strip().lstrip(":").lower()
    try:
        return FIELD_ALIASES[key]
    except KeyError:
        raise InvalidFieldValue(f"Unknown field: '{name}'", field=None, value=name) from None


#######################################################################
## Normalization
#######################################################################

def normalize(field: str, raw: Any) -> FieldValue:
    """Validate raw input for a field and convert it to a FieldValue.

    Resolves symbolic month and day-of-week names, range-checks numeric
    leaves and recurses into lists and ranges. Wildcards pass through.

    Args:
        field: Field name (or alias) the value belongs to
        raw: Raw value: FieldValue, int, numeric string, symbolic name,
            '*' / 'all', or a list/tuple of those

    Returns:
        Validated FieldValue

    Raises:
        InvalidFieldValue: If any leaf fails validation
    """
    field = resolve_field_name(field)

    if isinstance(raw, Wildcard):
        return ALL

    if isinstance(raw, Interval):
        return interval(raw.step)

    if isinstance(raw, Range):
        return Range(_normalize_leaf(field, raw.start), _normalize_leaf(field, raw.end))

    if isinstance(raw, ValueList):
        return _normalize_list(field, raw.items)

    if isinstance(raw, (list, tuple)):
        return _normalize_list(field, raw)

    if isinstance(raw, str) and raw.strip().lower() in _WILDCARD_TOKENS:
        return ALL

    return _normalize_leaf(field, raw)


def _normalize_list(field: str, items: Iterable[Any]) -> ValueList:
    normalized = tuple(normalize(field, item) for item in items)
    if not normalized:
        raise InvalidFieldValue(f"Empty value list for field '{field}'", field=field, value=[])
    return ValueList(normalized)


def _normalize_leaf(field: str, raw: Any) -> Number:
    """Resolve a single numeric or symbolic value and check field bounds."""
    if isinstance(raw, Number):
        value = raw.value
    elif isinstance(raw, bool):
        raise InvalidFieldValue(f"Invalid {field} value: {raw!r}", field=field, value=raw)
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        value = _resolve_symbol(field, raw)
    else:
        raise InvalidFieldValue(f"Invalid {field} value: {raw!r}", field=field, value=raw)

    low, high = FIELD_BOUNDS[field]
    if not low <= value <= high:
        raise InvalidFieldValue(
            f"Value {value} out of range for field '{field}' (expected {low}-{high})",
            field=field,
            value=raw,
        )
    return Number(value)


def _resolve_symbol(field: str, raw: str) -> int:
    token = raw.strip().lstrip(":").lower()
    if token.isdigit():
        return int(token)

    table = SYMBOL_TABLES.get(field)
    if table is None or token not in table:
        raise InvalidFieldValue(f"Unrecognized {field} name: '{raw}'", field=field, value=raw)
    return table[token]


#######################################################################
## Value Constructors
#######################################################################

def interval(step: Any) -> Interval:
    """Create an interval value; the step must be a positive integer.

    Raises:
        InvalidFieldValue: If step is not a positive integer
    """
    if isinstance(step, bool) or not isinstance(step, int) or step < 1:
        raise InvalidFieldValue(f"Interval step must be a positive integer, got {step!r}", value=step)
    return Interval(step)


def am(hour: int) -> int:
    """Convert a 12-hour clock morning hour to 24-hour form (am(12) == 0)."""
    _check_clock_hour(hour)
    return 0 if hour == 12 else hour


def pm(hour: int) -> int:
    """Convert a 12-hour clock afternoon hour to 24-hour form (pm(12) == 12)."""
    _check_clock_hour(hour)
    return 12 if hour == 12 else hour + 12


def _check_clock_hour(hour: Any) -> None:
    if isinstance(hour, bool) or not isinstance(hour, int) or not 1 <= hour <= 12:
        raise InvalidFieldValue(f"12-hour clock value must be 1-12, got {hour!r}", field="hour", value=hour)
