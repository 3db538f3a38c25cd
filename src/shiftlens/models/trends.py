"""Pydantic models for trend buckets and statistics."""

from typing import Literal

from pydantic import BaseModel, Field

from shiftlens.constants import Granularity, TrendMetric
from shiftlens.models.time_range import TimeRange

Direction = Literal["up", "down", "stable"]
TrendDirection = Literal["increasing", "decreasing", "stable"]


class TrendBucket(BaseModel):
    """
    Events grouped into one period.

    `period_label` is "HH:00" for hourly buckets, "YYYY-MM-DD" for daily
    buckets and "YYYY-Www" (ISO week) for weekly buckets.
    """

    period_label: str
    period_start: float | None = Field(
        default=None, description="Earliest event timestamp in the bucket"
    )
    count: int = Field(default=0, ge=0)
    unique_subjects: int = Field(default=0, ge=0)
    unique_cameras: int = Field(default=0, ge=0)


class TrendComparison(BaseModel):
    """Change between a current and a previous value."""

    current: float
    previous: float
    change: float
    change_percent: float
    direction: Direction


class TrendStatistics(BaseModel):
    """Summary statistics over a bucket series."""

    total: float = 0.0
    mean: float = 0.0
    min: float = 0.0
    max: float = 0.0
    trend: TrendDirection = "stable"
    volatility: float = Field(default=0.0, description="Coefficient of variation (%)")


class MetricTrend(BaseModel):
    """Bucketed series for a single metric with its statistics."""

    metric: TrendMetric
    buckets: list[TrendBucket] = Field(default_factory=list)
    previous_buckets: list[TrendBucket] = Field(default_factory=list)
    statistics: TrendStatistics = Field(default_factory=TrendStatistics)
    comparison: TrendComparison | None = None
    insights: list[str] = Field(default_factory=list)


class TrendReport(BaseModel):
    """Trend analysis over a window and its preceding window."""

    granularity: Granularity
    period: TimeRange
    previous_period: TimeRange
    metrics: list[MetricTrend] = Field(default_factory=list)
