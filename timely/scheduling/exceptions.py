"""
Exceptions raised by schedule construction, compilation and registration.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base exception for scheduling errors."""
    pass


class InvalidFieldValue(SchedulingError, ValueError):
    """Raised when a field value fails range or symbol validation."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)


class CronRenderError(SchedulingError):
    """Raised when a field value variant cannot be rendered as cron text."""
    pass


class RegistrationError(SchedulingError):
    """Raised when the trigger engine fails to register a trigger."""
    pass


class InvalidCronExpression(RegistrationError):
    """Raised when the trigger engine rejects a cron expression."""

    def __init__(self, message: str, expression: str = ""):
        self.expression = expression
        super().__init__(message)
