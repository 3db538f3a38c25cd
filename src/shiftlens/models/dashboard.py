"""Pydantic models for camera status and the dashboard summary."""

from typing import Literal

from pydantic import BaseModel, Field

from shiftlens.models.time_range import TimeRange
from shiftlens.models.trends import TrendComparison

CameraState = Literal["active", "recording_only", "detection_only", "inactive"]


class HourlyActivity(BaseModel):
    """Detection count for one local hour of day."""

    hour: int = Field(ge=0, le=23)
    count: int = Field(ge=0)


class CameraStatus(BaseModel):
    """
    Health of one camera derived from recent detections and recordings.

    `active` means both recent detections and recent recordings exist;
    `recording_only` and `detection_only` mean only one of them does.
    """

    camera: str
    status: CameraState
    recent_detections: int = 0
    recent_recordings: int = 0
    last_detection: float | None = None
    last_recording: float | None = None
    unique_employees: int = 0
    violations: int = 0
    hourly_activity: list[HourlyActivity] = Field(default_factory=list)


class CameraStatusReport(BaseModel):
    cameras: list[CameraStatus]
    total_cameras: int
    active_cameras: int
    generated_at: float


class ActivitySummary(BaseModel):
    total_events: int = 0
    unique_employees: int = 0
    unique_cameras: int = 0
    zone_events: int = 0


class ViolationSummary(BaseModel):
    total_violations: int = 0
    employees_with_violations: int = 0
    by_camera: dict[str, int] = Field(default_factory=dict)


class EmployeeSummary(BaseModel):
    employee: str
    events: int
    violations: int = 0
    first_seen: float | None = None
    last_seen: float | None = None


class CameraSummary(BaseModel):
    camera: str
    events: int
    unique_employees: int = 0
    last_activity: float | None = None


class Dashboard(BaseModel):
    """Headline numbers for a window compared against the preceding window."""

    period: TimeRange
    activity: ActivitySummary
    violations: ViolationSummary
    top_employees: list[EmployeeSummary] = Field(default_factory=list)
    cameras: list[CameraSummary] = Field(default_factory=list)
    activity_trend: TrendComparison
    violation_trend: TrendComparison
    employee_trend: TrendComparison
