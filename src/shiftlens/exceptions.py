"""Exception taxonomy for SHIFTLENS."""

from typing import Any


class ShiftlensError(Exception):
    """Base exception for analytics errors."""


class InvalidDateFormat(ShiftlensError, ValueError):
    """A supplied date or date-time string could not be parsed."""

    def __init__(self, message: str, value: str | None = None):
        super().__init__(message)
        self.value = value


class InvalidTimezone(ShiftlensError, ValueError):
    """Unrecognized timezone name or abbreviation."""

    def __init__(self, timezone: str):
        super().__init__(f"Unknown timezone: '{timezone}'")
        self.timezone = timezone


class SourceQueryError(ShiftlensError):
    """The event source failed to answer a query."""


class SourceTimeout(SourceQueryError):
    """The event source exceeded its query deadline."""

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout


class AggregationInvariantViolation(ShiftlensError):
    """
    Work hours and break time do not add up to the presence span.

    Indicates a session reconstruction problem; carries enough context to be
    logged as a data-quality signal.
    """

    def __init__(
        self,
        employee: str,
        residual_hours: float,
        sessions: list[Any] | None = None,
    ):
        super().__init__(
            f"Unaccounted time of {residual_hours:.6f}h for employee '{employee}'"
        )
        self.employee = employee
        self.residual_hours = residual_hours
        self.sessions = sessions or []


class PollTickError(ShiftlensError):
    """A realtime poll tick failed."""

    def __init__(self, message: str, window: tuple[float, float] | None = None):
        super().__init__(message)
        self.window = window
