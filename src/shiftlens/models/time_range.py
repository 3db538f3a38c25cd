"""Time window model shared by every aggregation."""

from pydantic import BaseModel, Field, model_validator

from shiftlens.constants import DEFAULT_TIMEZONE, SECONDS_PER_HOUR


class TimeRange(BaseModel):
    """
    Canonical query window in unix seconds.

    The primary filter is inclusive at both ends; adjacent windows can
    therefore both contain an event that sits exactly on their shared bound.
    """

    start: float = Field(description="Window start (unix seconds)")
    end: float = Field(description="Window end (unix seconds)")
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="IANA zone name")

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if self.start > self.end:
            raise ValueError(
                f"Invalid time range: start ({self.start}) must be before or "
                f"equal to end ({self.end})"
            )
        return self

    @property
    def duration_seconds(self) -> float:
        return self.end - self.start

    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / SECONDS_PER_HOUR

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end

    def previous(self) -> "TimeRange":
        """Return the immediately preceding window of equal length."""
        return TimeRange(
            start=self.start - self.duration_seconds,
            end=self.start,
            timezone=self.timezone,
        )
