"""
Work-hours, break-time and attendance aggregation.

Work hours are the plain sum of session durations. Breaks are the positive
gaps between consecutive sessions taken in entry order. For well-formed
sessions that gives

    departure - arrival == work_hours + break_hours

Anything else (overlapping sessions from two cameras, an end before its
entry) leaves a residual. It is logged and exposed as `unaccounted_hours`
rather than folded into either figure. The de-duplicated union of the
sessions is reported separately as `presence_hours`.
"""

import logging
import math

from collections.abc import Iterable, Sequence
from datetime import date

from shiftlens.analysis.scoring import ScoringSet
from shiftlens.config import AttendanceThresholds
from shiftlens.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, AttendanceConstants, ScoringConstants
from shiftlens.exceptions import AggregationInvariantViolation
from shiftlens.models.sessions import BreakInterval, Session
from shiftlens.models.time_range import TimeRange
from shiftlens.models.work import (
    AttendanceRecord,
    AttendanceReport,
    AttendanceStatus,
    BreakReport,
    DailyStatus,
    EmployeeAttendance,
    EmployeeBreakSummary,
    EmployeeWorkSummary,
    WorkHoursReport,
)
from shiftlens.utils.timezones import get_timezone, to_local_datetime

logger = logging.getLogger(__name__)

Interval = tuple[float, float, str]  # (start, end, camera of the first session)


def merge_intervals(sessions: Iterable[Session]) -> list[Interval]:
    """
    Union session intervals.

    Touching intervals (end == next start) merge. Each merged interval keeps
    the camera of its earliest session.

    Returns:
        Non-overlapping intervals sorted by start
    """
    ordered = sorted(sessions, key=lambda s: (s.entry, s.end_bound))
    merged: list[Interval] = []
    for session in ordered:
        start, end = session.entry, max(session.end_bound, session.entry)
        if merged and start <= merged[-1][1]:
            prev_start, prev_end, camera = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end), camera)
        else:
            merged.append((start, end, session.camera))
    return merged


def classify_attendance(hours: float, thresholds: AttendanceThresholds) -> AttendanceStatus:
    if hours >= thresholds.full_day_hours:
        return "full_day"
    if hours >= thresholds.half_day_hours:
        return "half_day"
    if hours > 0:
        return "partial_day"
    return "absent"


def classify_daily_status(hours: float, thresholds: AttendanceThresholds) -> DailyStatus:
    if hours >= thresholds.full_day_hours:
        return "present"
    if hours >= thresholds.half_day_hours:
        return "partial"
    if hours > 0:
        return "late"
    return "absent"


class WorkHoursAggregator:
    """
    Aggregate reconstructed sessions into per-employee work/break summaries.

    Args:
        thresholds: Attendance hour thresholds
        scoring: Heuristic scoring strategies
        strict: Raise AggregationInvariantViolation instead of logging it
        epsilon_hours: Residual tolerated as float noise
    """

    def __init__(
        self,
        thresholds: AttendanceThresholds | None = None,
        scoring: ScoringSet | None = None,
        strict: bool = False,
        epsilon_hours: float = AttendanceConstants.INVARIANT_EPSILON_HOURS,
    ):
        self.thresholds = thresholds or AttendanceThresholds()
        self.scoring = scoring or ScoringSet(standard_hours=self.thresholds.standard_work_hours)
        self.strict = strict
        self.epsilon_hours = epsilon_hours

    def aggregate(
        self,
        employee: str,
        sessions: Sequence[Session],
        activity_count: int | None = None,
    ) -> EmployeeWorkSummary:
        """
        Summarize one employee's sessions.

        Args:
            employee: Employee name
            sessions: Sessions across all cameras/zones in the window
            activity_count: Source rows attributed to the employee (defaults
                to the sessions' folded event counts)

        Returns:
            EmployeeWorkSummary with `unaccounted_hours` exposing any residual

        Raises:
            AggregationInvariantViolation: Only when `strict` and the residual
                exceeds `epsilon_hours`
        """
        if activity_count is None:
            activity_count = sum(s.event_count for s in sessions)

        if not sessions:
            return EmployeeWorkSummary(
                employee=employee,
                work_hours=0.0,
                break_hours=0.0,
                total_hours=0.0,
                activity_count=activity_count,
                attendance_status="absent",
                productivity_score=self.scoring.productivity.score(
                    work_hours=0.0, activity_count=activity_count, session_count=0
                ),
                work_efficiency=0.0,
                break_efficiency=self.scoring.break_efficiency.score(break_hours=0.0),
            )

        ordered = sorted(sessions, key=lambda s: (s.entry, s.end_bound))
        work_seconds = sum(s.duration_seconds for s in ordered)
        presence_seconds = sum(end - start for start, end, _ in merge_intervals(ordered))

        breaks: list[BreakInterval] = []
        for previous, following in zip(ordered, ordered[1:]):
            if following.entry > previous.end_bound:
                breaks.append(
                    BreakInterval(
                        start=previous.end_bound, end=following.entry, camera=following.camera
                    )
                )
        break_seconds = sum(b.end - b.start for b in breaks)

        arrival = min(s.entry for s in sessions)
        departure = max(s.end_bound for s in sessions)

        work_hours = work_seconds / SECONDS_PER_HOUR
        break_hours = break_seconds / SECONDS_PER_HOUR
        total_hours = (departure - arrival) / SECONDS_PER_HOUR

        residual = total_hours - work_hours - break_hours
        unaccounted = 0.0
        if abs(residual) > self.epsilon_hours:
            unaccounted = residual
            violation = AggregationInvariantViolation(employee, residual, list(sessions))
            logger.error(
                f"{violation}: total={total_hours:.6f}h work={work_hours:.6f}h "
                f"break={break_hours:.6f}h sessions="
                f"{[(s.camera, s.zone, s.entry, s.exit, s.status) for s in sessions]}"
            )
            if self.strict:
                raise violation

        return EmployeeWorkSummary(
            employee=employee,
            work_hours=work_hours,
            break_hours=break_hours,
            total_hours=total_hours,
            unaccounted_hours=unaccounted,
            presence_hours=presence_seconds / SECONDS_PER_HOUR,
            arrival=arrival,
            departure=departure,
            has_open_session=any(s.is_open for s in sessions),
            activity_count=activity_count,
            average_session_hours=work_hours / len(sessions),
            cameras=sorted({s.camera for s in sessions}),
            zones=sorted({s.zone for s in sessions if s.zone}),
            sessions=ordered,
            breaks=breaks,
            attendance_status=classify_attendance(work_hours, self.thresholds),
            productivity_score=self.scoring.productivity.score(
                work_hours=work_hours,
                activity_count=activity_count,
                session_count=len(sessions),
            ),
            work_efficiency=self.scoring.work_efficiency.score(work_hours=work_hours),
            break_efficiency=self.scoring.break_efficiency.score(break_hours=break_hours),
        )

    def aggregate_report(
        self,
        sessions_by_employee: dict[str, list[Session]],
        time_range: TimeRange,
        activity_counts: dict[str, int] | None = None,
    ) -> WorkHoursReport:
        """Summarize every employee; employees are ordered by name."""
        activity_counts = activity_counts or {}
        summaries = [
            self.aggregate(employee, sessions, activity_counts.get(employee))
            for employee, sessions in sorted(sessions_by_employee.items())
        ]
        total = sum(s.work_hours for s in summaries)
        return WorkHoursReport(
            employees=summaries,
            total_employees=len(summaries),
            total_work_hours=total,
            average_work_hours=total / len(summaries) if summaries else 0.0,
            period=time_range,
        )

    def break_summary(
        self, employee: str, sessions: Sequence[Session], time_range: TimeRange
    ) -> EmployeeBreakSummary:
        """Break statistics derived from the same session timeline as work hours."""
        summary = self.aggregate(employee, sessions)
        durations = [b.duration_hours for b in summary.breaks]
        period_hours = time_range.duration_hours

        return EmployeeBreakSummary(
            employee=employee,
            total_breaks=len(durations),
            total_break_hours=summary.break_hours,
            average_break_hours=summary.break_hours / len(durations) if durations else 0.0,
            longest_break_hours=max(durations, default=0.0),
            shortest_break_hours=min(durations, default=0.0),
            break_frequency=len(durations) / period_hours if period_hours > 0 else 0.0,
            break_efficiency=summary.break_efficiency,
            breaks=summary.breaks,
        )

    def break_report(
        self, sessions_by_employee: dict[str, list[Session]], time_range: TimeRange
    ) -> BreakReport:
        summaries = [
            self.break_summary(employee, sessions, time_range)
            for employee, sessions in sorted(sessions_by_employee.items())
        ]
        total = sum(s.total_break_hours for s in summaries)
        return BreakReport(
            employees=summaries,
            total_employees=len(summaries),
            total_break_hours=total,
            average_break_hours=total / len(summaries) if summaries else 0.0,
            period=time_range,
        )

    def attendance(
        self, sessions_by_employee: dict[str, list[Session]], time_range: TimeRange
    ) -> AttendanceReport:
        """
        Per-day attendance in the window's timezone.

        A session belongs to the local calendar day of its entry. Attendance
        rate is days present over the number of (partial) days in the window.
        """
        zone = get_timezone(time_range.timezone)
        period_days = math.ceil(time_range.duration_seconds / SECONDS_PER_DAY)

        employees: list[EmployeeAttendance] = []
        for employee, sessions in sorted(sessions_by_employee.items()):
            by_day: dict[date, list[Session]] = {}
            for session in sessions:
                day = to_local_datetime(session.entry, zone).date()
                by_day.setdefault(day, []).append(session)

            records = []
            for day in sorted(by_day):
                day_sessions = by_day[day]
                hours = sum(s.duration_hours for s in day_sessions)
                records.append(
                    AttendanceRecord(
                        date=day,
                        first_seen=min(s.entry for s in day_sessions),
                        last_seen=max(s.end_bound for s in day_sessions),
                        work_hours=hours,
                        activity_count=sum(s.event_count for s in day_sessions),
                        status=classify_daily_status(hours, self.thresholds),
                    )
                )

            total_days = len(records)
            total_hours = sum(r.work_hours for r in records)
            rate = total_days / period_days * 100 if period_days > 0 else 0.0
            perfect = total_days > 0 and all(
                r.work_hours >= self.thresholds.full_day_hours for r in records
            )
            score = rate + (ScoringConstants.ATTENDANCE_PERFECT_BONUS if perfect else 0.0)

            employees.append(
                EmployeeAttendance(
                    employee=employee,
                    total_days=total_days,
                    total_work_hours=total_hours,
                    attendance_rate=rate,
                    average_daily_hours=total_hours / total_days if total_days else 0.0,
                    perfect_attendance=perfect,
                    attendance_score=min(score, 100.0),
                    consistency_rating=self.scoring.consistency.score(
                        values=[r.work_hours for r in records]
                    ),
                    records=records,
                )
            )

        return AttendanceReport(
            employees=employees,
            total_employees=len(employees),
            period_days=period_days,
            overall_attendance_rate=(
                sum(e.attendance_rate for e in employees) / len(employees) if employees else 0.0
            ),
            period=time_range,
        )
