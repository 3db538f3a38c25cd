"""Pydantic models for hour-of-day and day-of-week activity patterns."""

from typing import Literal

from pydantic import BaseModel, Field

from shiftlens.models.occupancy import PeakHour
from shiftlens.models.time_range import TimeRange

PeriodPreference = Literal[
    "morning_person", "afternoon_person", "evening_person", "balanced", "unknown"
]
WorkStyle = Literal["early_bird", "night_owl", "regular_schedule", "unknown"]


class ActivityPattern(BaseModel):
    """
    Temporal activity profile for one subject (employee or zone).

    Attributes:
        hourly: 24 counts indexed by local hour
        daily: 7 counts indexed Sunday..Saturday
        peak_hours: Up to three busiest hours, busiest first
        consistency: 100 - coefficient of variation of hourly counts
    """

    subject: str
    total_activity: int = 0
    hourly: list[int] = Field(default_factory=lambda: [0] * 24)
    daily: list[int] = Field(default_factory=lambda: [0] * 7)
    peak_hours: list[PeakHour] = Field(default_factory=list)
    most_active_day: str | None = None
    consistency: float = 0.0
    period_preference: PeriodPreference = "unknown"
    work_style: WorkStyle = "unknown"
    zone_diversity: int = 0
    camera_diversity: int = 0


class PatternInsights(BaseModel):
    total_subjects: int = 0
    most_active: str | None = None
    average_activity: float = 0.0
    period_distribution: dict[str, int] = Field(default_factory=dict)
    work_style_distribution: dict[str, int] = Field(default_factory=dict)


class ActivityPatternReport(BaseModel):
    employees: list[ActivityPattern] = Field(default_factory=list)
    zones: list[ActivityPattern] = Field(default_factory=list)
    insights: PatternInsights = Field(default_factory=PatternInsights)
    period: TimeRange
