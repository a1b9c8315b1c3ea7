"""
Core system constants.

Only place true invariants here (field bounds, symbol tables, defaults).
Environment-derived values live in timely.settings; use those helpers or
RuntimeConfig rather than adding env-derived values here.
"""

from __future__ import annotations


# Cron field names in wire order
MINUTE = "minute"
HOUR = "hour"
DAY = "day"
MONTH = "month"
DAY_OF_WEEK = "day_of_week"

FIELD_ORDER = (MINUTE, HOUR, DAY, MONTH, DAY_OF_WEEK)

# Closed intervals accepted for numeric leaves
FIELD_BOUNDS = {
    MINUTE: (0, 59),
    HOUR: (0, 23),
    DAY: (1, 31),
    MONTH: (1, 12),
    DAY_OF_WEEK: (0, 6),
}

# Accepted spellings for field names and interval units
FIELD_ALIASES = {
    "minute": MINUTE,
    "minutes": MINUTE,
    "hour": HOUR,
    "hours": HOUR,
    "day": DAY,
    "days": DAY,
    "month": MONTH,
    "months": MONTH,
    "day_of_week": DAY_OF_WEEK,
    "day-of-week": DAY_OF_WEEK,
    "days_of_week": DAY_OF_WEEK,
    "days-of-week": DAY_OF_WEEK,
    "weekday": DAY_OF_WEEK,
    "weekdays": DAY_OF_WEEK,
}

DAY_OF_WEEK_NAMES = {
    "sun": 0, "sunday": 0,
    "mon": 1, "monday": 1,
    "tue": 2, "tues": 2, "tuesday": 2,
    "wed": 3, "wednesday": 3,
    "thu": 4, "thur": 4, "thurs": 4, "thursday": 4,
    "fri": 5, "friday": 5,
    "sat": 6, "saturday": 6,
}

MONTH_NAMES = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

SYMBOL_TABLES = {
    MONTH: MONTH_NAMES,
    DAY_OF_WEEK: DAY_OF_WEEK_NAMES,
}

# APScheduler numbers weekdays from Monday; cron numbers them from Sunday
APSCHEDULER_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

# Schedule keys that are not cron fields
START_TIME = "start_time"
END_TIME = "end_time"
WINDOW_KEYS = (START_TIME, END_TIME)

# Default worker count for the trigger engine thread pool
DEFAULT_MAX_WORKERS = 4

# Activity log rotation
ACTIVITY_LOG_FILENAME = "activity.log"
ACTIVITY_LOG_MAX_BYTES = 1_048_576
ACTIVITY_LOG_BACKUP_COUNT = 5

# Activity entries that cannot be tied to a schedule
SYSTEM_CONTEXT = "system"
