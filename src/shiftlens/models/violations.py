"""Pydantic models for cell-phone violations and performance metrics."""

from pydantic import BaseModel, Field

from shiftlens.models.time_range import TimeRange
from shiftlens.models.trends import Direction


class Violation(BaseModel):
    """One cell-phone detection."""

    timestamp: float
    camera: str
    employee: str | None = Field(default=None, description="Recognized person, if any")
    confidence: float | None = Field(default=None, ge=0, le=1)
    zones: list[str] = Field(default_factory=list)
    source_id: str | None = None


class EmployeeViolations(BaseModel):
    """Violations attributed to one employee."""

    employee: str
    total_violations: int
    cameras: list[str] = Field(default_factory=list)
    first_violation: float
    last_violation: float
    average_confidence: float | None = None
    violations: list[Violation] = Field(default_factory=list)


class CameraViolations(BaseModel):
    """Violations seen by one camera."""

    camera: str
    total_violations: int
    unique_employees: int = 0
    unidentified: int = Field(default=0, description="Detections without a sub_label")
    last_violation: float
    violations: list[Violation] = Field(default_factory=list)


class ViolationReport(BaseModel):
    """
    Cell-phone violations in a window.

    `violations` is newest first and capped at the requested limit; the
    totals and groupings cover every detection in the window.
    """

    violations: list[Violation]
    total_violations: int
    unidentified_violations: int
    employees: list[EmployeeViolations]
    cameras: list[CameraViolations]
    period: TimeRange


class PerformanceDimension(BaseModel):
    """One heuristic performance score with its change against the previous window."""

    score: float = Field(ge=0, le=100)
    previous_score: float = Field(ge=0, le=100)
    trend: Direction
    factors: list[str] = Field(default_factory=list)


class PerformanceReport(BaseModel):
    """
    Team performance indicators.

    Every score is a heuristic in [0, 100] and `overall_score` is their
    weighted blend. They are indicators, not verified measures.
    """

    overall_score: float = Field(ge=0, le=100)
    productivity: PerformanceDimension
    efficiency: PerformanceDimension
    compliance: PerformanceDimension
    engagement: PerformanceDimension
    employees_analyzed: int
    period: TimeRange
    previous_period: TimeRange
    insights: list[str] = Field(default_factory=list)
