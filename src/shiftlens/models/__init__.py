"""Pydantic models shared across the analytics engine."""

from shiftlens.models.dashboard import CameraStatus, CameraStatusReport, Dashboard
from shiftlens.models.events import (
    DetectionEvent,
    EventFilter,
    Recording,
    RecordingFilter,
)
from shiftlens.models.occupancy import (
    DeskOccupancyReport,
    EmployeeZonePreferences,
    ZoneOccupancyRecord,
    ZonePreference,
    ZonePreferenceReport,
    ZoneUtilization,
    ZoneUtilizationReport,
)
from shiftlens.models.patterns import ActivityPattern, ActivityPatternReport
from shiftlens.models.realtime import (
    BroadcastPayload,
    PollerStats,
    RealtimeEvent,
    Subscription,
)
from shiftlens.models.sessions import BreakInterval, Session
from shiftlens.models.time_range import TimeRange
from shiftlens.models.trends import (
    TrendBucket,
    TrendComparison,
    TrendReport,
    TrendStatistics,
)
from shiftlens.models.work import (
    AttendanceRecord,
    AttendanceReport,
    BreakReport,
    EmployeeAttendance,
    EmployeeBreakSummary,
    EmployeeWorkSummary,
    WorkHoursReport,
)

__all__ = [
    "ActivityPattern",
    "ActivityPatternReport",
    "AttendanceRecord",
    "AttendanceReport",
    "BreakInterval",
    "BreakReport",
    "BroadcastPayload",
    "CameraStatus",
    "CameraStatusReport",
    "Dashboard",
    "DeskOccupancyReport",
    "DetectionEvent",
    "EmployeeAttendance",
    "EmployeeBreakSummary",
    "EmployeeWorkSummary",
    "EmployeeZonePreferences",
    "EventFilter",
    "PollerStats",
    "RealtimeEvent",
    "Recording",
    "RecordingFilter",
    "Session",
    "Subscription",
    "TimeRange",
    "TrendBucket",
    "TrendComparison",
    "TrendReport",
    "TrendStatistics",
    "WorkHoursReport",
    "ZoneOccupancyRecord",
    "ZonePreference",
    "ZonePreferenceReport",
    "ZoneUtilization",
    "ZoneUtilizationReport",
]
