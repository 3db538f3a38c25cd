"""Pydantic models for work-hours, break and attendance summaries."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from shiftlens.models.sessions import BreakInterval, Session
from shiftlens.models.time_range import TimeRange

AttendanceStatus = Literal["full_day", "half_day", "partial_day", "absent"]
DailyStatus = Literal["present", "partial", "late", "absent"]


class EmployeeWorkSummary(BaseModel):
    """
    Work-hours aggregate for one employee over a query window.

    `total_hours` is departure - arrival and always equals
    `work_hours + break_hours + unaccounted_hours`. `work_hours` sums session
    durations, so sessions overlapping across cameras count twice there and
    show up as negative `unaccounted_hours`. `presence_hours` is the union of
    the sessions, with overlaps counted once.

    Scores are heuristic indicators, not verified productivity measures.
    """

    employee: str
    work_hours: float = Field(ge=0, description="Sum of session durations (hours)")
    break_hours: float = Field(ge=0, description="Gaps between consecutive sessions (hours)")
    total_hours: float = Field(description="Departure - arrival (hours)")
    unaccounted_hours: float = Field(
        default=0.0, description="Residual of the work/break invariant (hours)"
    )
    presence_hours: float = Field(
        default=0.0, ge=0, description="Union of session intervals (hours)"
    )
    arrival: float | None = Field(default=None, description="First entry timestamp")
    departure: float | None = Field(default=None, description="Last exit timestamp")
    has_open_session: bool = False
    activity_count: int = Field(default=0, ge=0)
    average_session_hours: float = Field(default=0.0, ge=0)
    cameras: list[str] = Field(default_factory=list)
    zones: list[str] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)
    breaks: list[BreakInterval] = Field(default_factory=list)
    attendance_status: AttendanceStatus = "absent"
    productivity_score: float = Field(default=0.0, ge=0, le=100)
    work_efficiency: float = Field(default=0.0, ge=0, le=100)
    break_efficiency: float = Field(default=0.0, ge=0, le=100)

    @property
    def invariant_holds(self) -> bool:
        return self.unaccounted_hours == 0.0


class WorkHoursReport(BaseModel):
    """Work hours for every employee seen in a window."""

    employees: list[EmployeeWorkSummary]
    total_employees: int
    total_work_hours: float
    average_work_hours: float
    period: TimeRange


class EmployeeBreakSummary(BaseModel):
    """Break statistics for one employee."""

    employee: str
    total_breaks: int = 0
    total_break_hours: float = 0.0
    average_break_hours: float = 0.0
    longest_break_hours: float = 0.0
    shortest_break_hours: float = 0.0
    break_frequency: float = Field(default=0.0, description="Breaks per period hour")
    break_efficiency: float = 0.0
    breaks: list[BreakInterval] = Field(default_factory=list)


class BreakReport(BaseModel):
    """Break statistics for every employee seen in a window."""

    employees: list[EmployeeBreakSummary]
    total_employees: int
    total_break_hours: float
    average_break_hours: float
    period: TimeRange


class AttendanceRecord(BaseModel):
    """Presence for one employee on one local calendar day."""

    date: date
    first_seen: float
    last_seen: float
    work_hours: float
    activity_count: int
    status: DailyStatus


class EmployeeAttendance(BaseModel):
    """Attendance history for one employee."""

    employee: str
    total_days: int
    total_work_hours: float
    attendance_rate: float = Field(description="Days present / days in period (%)")
    average_daily_hours: float
    perfect_attendance: bool
    attendance_score: float
    consistency_rating: float
    records: list[AttendanceRecord] = Field(default_factory=list)


class AttendanceReport(BaseModel):
    """Attendance for every employee seen in a window."""

    employees: list[EmployeeAttendance]
    total_employees: int
    period_days: int
    overall_attendance_rate: float
    period: TimeRange
