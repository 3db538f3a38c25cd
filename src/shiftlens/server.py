"""
SHIFTLENS Server

MCP server providing workplace analytics tools over Frigate NVR detections.
"""

import json
import logging

from typing import Any

from mcp.server.fastmcp import FastMCP

from shiftlens.analysis.performance import PerformanceAnalyzer
from shiftlens.analysis.scoring import AVAILABLE_STRATEGIES
from shiftlens.analysis.service import AnalyticsService
from shiftlens.config import Settings, load_settings
from shiftlens.constants import (
    COMMON_TIMEZONES,
    DEFAULT_EVENT_LIMIT,
    ZONE_CATEGORY_WORKSTATION,
    Granularity,
    TrendMetric,
)
from shiftlens.database import FrigateEventSource
from shiftlens.exceptions import ShiftlensError
from shiftlens.models.dashboard import CameraStatusReport, Dashboard
from shiftlens.models.occupancy import (
    DeskOccupancyReport,
    ZonePreferenceReport,
    ZoneUtilizationReport,
)
from shiftlens.models.patterns import ActivityPatternReport
from shiftlens.models.trends import TrendReport
from shiftlens.models.violations import PerformanceReport, ViolationReport
from shiftlens.models.work import AttendanceReport, BreakReport, WorkHoursReport
from shiftlens.utils.timezones import timezone_info

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
SHIFTLENS
Workplace analytics over Frigate NVR detections

You are the SHIFTLENS server. You provide read-only analytics over the detection
timeline of a Frigate NVR installation: employee presence, breaks, attendance,
desk and zone occupancy, activity patterns, trends and camera health.

IMPORTANT NOTES:
- Every report takes the same window arguments: start_date / end_date
  (YYYY-MM-DD or ISO 8601), or hours (look back N hours). With neither, the
  last 24 hours are used.
- Dates without a time are interpreted in the requested timezone: a start date
  begins at local midnight and an end date runs to 23:59:59.999 local time.
  A start date without an end date runs until now.
- timezone accepts IANA names (America/New_York) or abbreviations (EST, PKT).
- Sessions still open at the end of the window are marked "active"; their
  duration is measured against the window end.
- Scores (productivity, efficiency, loyalty, ...) are heuristics, not measurements.

AVAILABLE TOOLS:
- get_work_hours: Work hours, breaks and attendance status per employee
- get_break_time: Break statistics per employee
- get_attendance: Daily attendance records per employee
- get_desk_occupancy: Desk (workstation zone) utilization
- get_zone_utilization: Zone entries/exits and popularity ranking
- get_zone_preferences: Preferred zones per employee
- get_activity_patterns: Hour-of-day and weekday activity profiles
- get_trend_analysis: Bucketed trend vs. the previous period
- get_dashboard: Headline numbers with previous-period comparison
- get_camera_status: Detection / recording health per camera
- get_timezone_info: Offset and DST state of a timezone

WORKFLOW:
1. Use get_dashboard for an overview of a period
2. Use get_work_hours or get_attendance for employee questions
3. Use get_desk_occupancy or get_zone_utilization for space questions
4. Use get_trend_analysis to compare against the previous period
"""

server = FastMCP(name="shiftlens", instructions=INSTRUCTIONS)

_service: AnalyticsService | None = None


def configure(service: AnalyticsService) -> None:
    """Use an existing service (e.g. with a custom event source)."""
    global _service
    _service = service


def get_service(settings: Settings | None = None) -> AnalyticsService:
    """Return the shared service, creating it from the config file on first use."""
    global _service
    if _service is None:
        settings = settings or load_settings()
        source = FrigateEventSource.from_settings(settings.database)
        _service = AnalyticsService(source, settings)
    return _service


async def _report(name: str, call: Any) -> Any:
    """Run a service call, converting failures to ValueError for the client."""
    try:
        return await call
    except (ShiftlensError, ValueError) as e:
        logger.warning(f"{name} rejected: {e}")
        raise ValueError(str(e)) from e
    except Exception as e:
        logger.error(f"Error generating {name}: {e}", exc_info=True)
        raise ValueError(f"Error generating {name}: {e}") from e


# ============================================================================
# Resources (Documentation)
# ============================================================================


@server.resource("docs://timezones")
def get_timezones_documentation() -> str:
    """Supported timezone abbreviations."""
    return json.dumps(
        {
            "description": "Abbreviations accepted in place of IANA timezone names",
            "timezones": COMMON_TIMEZONES,
            "note": "Any IANA name is accepted; unknown names fall back to UTC",
        },
        indent=2,
    )


@server.resource("docs://scoring")
def get_scoring_documentation() -> str:
    """Heuristic scores reported by the analytics tools."""
    return json.dumps(
        {
            "description": "Heuristic scores (0-100); not authoritative measurements",
            "strategies": {
                name: strategy.description for name, strategy in AVAILABLE_STRATEGIES.items()
            },
            "performance_weights": PerformanceAnalyzer().weights,
        },
        indent=2,
    )


@server.resource("docs://attendance")
def get_attendance_documentation() -> str:
    """Attendance classification thresholds."""
    thresholds = get_service().settings.attendance
    return json.dumps(
        {
            "description": "Attendance status by hours present",
            "full_day": f">= {thresholds.full_day_hours} hours",
            "half_day": f">= {thresholds.half_day_hours} hours",
            "partial_day": "> 0 hours",
            "absent": "no presence",
            "note": "Thresholds are configurable in the [attendance] config section",
        },
        indent=2,
    )


# ============================================================================
# Tools (Actions)
# ============================================================================


@server.tool("get_work_hours")
async def get_work_hours(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> WorkHoursReport:
    """
    Work hours, breaks and attendance status per identified employee.

    Args:
        start_date: Start (YYYY-MM-DD or ISO 8601)
        end_date: End (YYYY-MM-DD or ISO 8601)
        hours: Look back N hours (used when no dates are given)
        timezone: IANA name or abbreviation
        camera: Restrict to one camera
        employee: Restrict to one employee

    Returns:
        Work hours report
    """
    return await _report(
        "work hours report",
        get_service().work_hours(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_break_time")
async def get_break_time(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> BreakReport:
    """Break statistics per identified employee."""
    return await _report(
        "break report",
        get_service().break_time(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_attendance")
async def get_attendance(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> AttendanceReport:
    """
    Daily attendance per identified employee.

    Days are local calendar days in the requested timezone.
    """
    return await _report(
        "attendance report",
        get_service().attendance(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_desk_occupancy")
async def get_desk_occupancy(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    zone: str | None = None,
    category: str = ZONE_CATEGORY_WORKSTATION,
) -> DeskOccupancyReport:
    """
    Occupancy and utilization of desk zones.

    Args:
        zone: Restrict to one zone
        category: Zone category to report on (default "workstation")
    """
    return await _report(
        "desk occupancy report",
        get_service().desk_occupancy(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            zone=zone,
            category=category,
        ),
    )


@server.tool("get_zone_utilization")
async def get_zone_utilization(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
) -> ZoneUtilizationReport:
    """Entry/exit counts, peak hours and popularity ranking for every zone."""
    return await _report(
        "zone utilization report",
        get_service().zone_utilization(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        ),
    )


@server.tool("get_zone_preferences")
async def get_zone_preferences(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> ZonePreferenceReport:
    """Preferred zones, mobility and loyalty per employee."""
    return await _report(
        "zone preference report",
        get_service().zone_preferences(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_activity_patterns")
async def get_activity_patterns(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> ActivityPatternReport:
    """Hour-of-day and weekday activity profiles for employees and zones."""
    return await _report(
        "activity pattern report",
        get_service().activity_patterns(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_trend_analysis")
async def get_trend_analysis(
    *,
    metric: str = TrendMetric.ACTIVITY.value,
    granularity: str = Granularity.HOURLY.value,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
) -> TrendReport:
    """
    Bucketed trend over the window compared with the preceding window.

    Args:
        metric: activity, violations, employees or all
        granularity: hourly, daily or weekly
    """
    return await _report(
        "trend analysis",
        get_service().trend_analysis(
            metric=metric,
            granularity=granularity,
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        ),
    )


@server.tool("get_dashboard")
async def get_dashboard(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
) -> Dashboard:
    """Headline activity, violation and employee numbers with trends."""
    return await _report(
        "dashboard",
        get_service().dashboard(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        ),
    )


@server.tool("get_violations")
async def get_violations(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
    limit: int = DEFAULT_EVENT_LIMIT,
) -> ViolationReport:
    """
    Cell-phone violations with timestamp and confidence, grouped per employee and camera.

    Args:
        start_date: Start (YYYY-MM-DD or ISO 8601)
        end_date: End (YYYY-MM-DD or ISO 8601)
        hours: Look back N hours (used when no dates are given)
        timezone: IANA name or abbreviation
        camera: Restrict to one camera
        employee: Restrict to one employee
        limit: Maximum violations listed (totals always cover the whole window)

    Returns:
        Violation report
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    return await _report(
        "violations report",
        get_service().violations(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
            limit=limit,
        ),
    )


@server.tool("get_performance_metrics")
async def get_performance_metrics(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = None,
    camera: str | None = None,
    employee: str | None = None,
) -> PerformanceReport:
    """Productivity, efficiency, compliance and engagement scores with an overall score."""
    return await _report(
        "performance metrics",
        get_service().performance_metrics(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        ),
    )


@server.tool("get_camera_status")
async def get_camera_status(
    *, camera: str | None = None, timezone: str | None = None
) -> CameraStatusReport:
    """Detection and recording health per camera at the current time."""
    return await _report(
        "camera status", get_service().camera_status(camera=camera, timezone=timezone)
    )


@server.tool("get_timezone_info")
def get_timezone_info(*, timezone: str = "UTC") -> dict[str, Any]:
    """
    Current offset, DST state and abbreviation of a timezone.

    Unknown names are reported as UTC.
    """
    return timezone_info(timezone)
