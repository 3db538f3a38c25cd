"""Pydantic models for desk and zone occupancy analysis."""

from typing import Literal

from pydantic import BaseModel, Field

from shiftlens.models.sessions import Session
from shiftlens.models.time_range import TimeRange

OccupancyTrend = Literal["increasing", "decreasing", "stable"]


class ZoneOccupancyRecord(BaseModel):
    """
    Occupancy aggregate for one (camera, zone) pair.

    Attributes:
        total_occupancy_hours: Sum of session durations
        utilization_rate: Occupancy / period length * 100 (may exceed 100
            when several occupants overlap)
        occupancy_trend: Recent vs. earlier mean session duration
        efficiency_score: Heuristic desk efficiency (0-100)
    """

    camera: str
    zone: str
    zone_type: str
    total_occupancy_hours: float = Field(ge=0)
    session_count: int = Field(ge=0)
    unique_occupants: list[str] = Field(default_factory=list)
    utilization_rate: float = Field(ge=0)
    average_session_hours: float = Field(ge=0)
    most_frequent_occupant: str | None = None
    last_occupied: float | None = None
    occupancy_trend: OccupancyTrend = "stable"
    efficiency_score: float = Field(default=0.0, ge=0, le=100)
    sessions: list[Session] = Field(default_factory=list)


class UtilizationDistribution(BaseModel):
    """Share of desks per utilization band (%)."""

    high: float
    medium: float
    low: float


class OccupancyInsights(BaseModel):
    """Population-level view over desks."""

    total_desks: int
    utilization_distribution: UtilizationDistribution
    average_utilization: float
    most_efficient: str | None = None
    least_efficient: str | None = None


class DeskOccupancyReport(BaseModel):
    """Desk occupancy for a window."""

    desks: list[ZoneOccupancyRecord]
    total_desks: int
    total_occupancy_hours: float
    average_utilization: float
    period: TimeRange
    sessions: list[Session] = Field(default_factory=list)
    insights: OccupancyInsights | None = None


class PeakHour(BaseModel):
    """Hour of day with its activity count."""

    hour: int = Field(ge=0, le=23)
    count: int = Field(ge=0)


class ZoneUtilization(BaseModel):
    """Entry/exit based utilization for one (camera, zone) pair."""

    camera: str
    zone: str
    zone_type: str
    total_entries: int = 0
    total_exits: int = 0
    activity_count: int = 0
    unique_employees: list[str] = Field(default_factory=list)
    peak_hours: list[PeakHour] = Field(default_factory=list)
    activity_intensity: float = Field(default=0.0, description="Transitions per hour")
    utilization_score: float = 0.0
    efficiency_rating: float = 0.0
    popularity_rank: int = 0


class ZoneUtilizationReport(BaseModel):
    """Utilization for every zone seen in a window."""

    zones: list[ZoneUtilization]
    total_zones: int
    average_utilization: float
    zone_type_distribution: dict[str, int] = Field(default_factory=dict)
    most_popular_zone: str | None = None
    least_popular_zone: str | None = None
    period: TimeRange


class ZonePreference(BaseModel):
    """One employee's visits to one zone."""

    camera: str
    zone: str
    visits: int = 0
    first_visit: float | None = None
    last_visit: float | None = None
    preference_score: float = 0.0


class EmployeeZonePreferences(BaseModel):
    """Zone preference profile for one employee."""

    employee: str
    total_zone_visits: int
    preferred_zones: list[ZonePreference] = Field(default_factory=list)
    zone_diversity: int = 0
    mobility_score: float = 0.0
    zone_loyalty: float = 0.0
    zone_consistency: float = 0.0


class ZonePreferenceReport(BaseModel):
    """Zone preferences for every employee seen in a window."""

    employees: list[EmployeeZonePreferences]
    total_employees: int
    average_zone_diversity: float
    high_mobility_percent: float = 0.0
    high_loyalty_percent: float = 0.0
    period: TimeRange
