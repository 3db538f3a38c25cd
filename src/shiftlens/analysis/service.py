"""
Analytics service for orchestrating report generation.

This module is the single entry point used by the CLI and the MCP server:
it resolves the requested window, reads rows from the event source and hands
them to the pure aggregators.
"""

import logging
import time

from collections import Counter
from collections.abc import Callable

from shiftlens.analysis.occupancy import ZoneClassifier, ZoneOccupancyAggregator
from shiftlens.analysis.patterns import ActivityPatternAnalyzer
from shiftlens.analysis.performance import PerformanceAnalyzer
from shiftlens.analysis.scoring import ScoringSet
from shiftlens.analysis.sessions import SessionReconstructor
from shiftlens.analysis.trends import (
    bucket_events,
    compare_buckets,
    compute_statistics,
    compute_trend,
    trend_insights,
)
from shiftlens.analysis.violations import build_violation_report
from shiftlens.analysis.work_hours import WorkHoursAggregator
from shiftlens.config import Settings
from shiftlens.constants import (
    CAMERA_RECENT_ACTIVITY_SECONDS,
    CAMERA_RECENT_RECORDING_SECONDS,
    DEFAULT_EVENT_LIMIT,
    LABEL_CELL_PHONE,
    LABEL_PERSON,
    SECONDS_PER_DAY,
    ZONE_CATEGORY_WORKSTATION,
    ZONE_TRANSITIONS,
    Granularity,
    TrendMetric,
)
from shiftlens.database.source import EventSource
from shiftlens.models.dashboard import (
    ActivitySummary,
    CameraState,
    CameraStatus,
    CameraStatusReport,
    CameraSummary,
    Dashboard,
    EmployeeSummary,
    HourlyActivity,
    ViolationSummary,
)
from shiftlens.models.events import DetectionEvent, EventFilter, RecordingFilter
from shiftlens.models.occupancy import (
    DeskOccupancyReport,
    ZonePreferenceReport,
    ZoneUtilizationReport,
)
from shiftlens.models.patterns import ActivityPatternReport
from shiftlens.models.time_range import TimeRange
from shiftlens.models.trends import MetricTrend, TrendBucket, TrendReport
from shiftlens.models.violations import PerformanceReport, ViolationReport
from shiftlens.models.work import AttendanceReport, BreakReport, WorkHoursReport
from shiftlens.utils.time_range import resolve_time_range
from shiftlens.utils.timezones import get_timezone, to_local_datetime

logger = logging.getLogger(__name__)

__all__ = ["AnalyticsService"]

TOP_EMPLOYEES = 10


class AnalyticsService:
    """
    Async facade over the event source and the analytics engines.

    Every report method accepts the same window arguments as
    `resolve_time_range` (`start_date`, `end_date`, `hours`, `timezone`);
    the timezone defaults to `[display].timezone`.

    Example:
        >>> service = AnalyticsService(source, load_settings())
        >>> report = await service.work_hours(hours=8)
        >>> print(report.total_work_hours)
    """

    def __init__(
        self,
        source: EventSource,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.settings = settings or Settings()
        self.clock = clock

        scoring = ScoringSet(standard_hours=self.settings.attendance.standard_work_hours)
        self.reconstructor = SessionReconstructor()
        self.work_hours_aggregator = WorkHoursAggregator(
            thresholds=self.settings.attendance, scoring=scoring
        )
        self.occupancy_aggregator = ZoneOccupancyAggregator(
            classifier=ZoneClassifier(self.settings.zone_categories),
            scoring=scoring,
            reconstructor=self.reconstructor,
        )
        self.pattern_analyzer = ActivityPatternAnalyzer(consistency=scoring.consistency)
        self.performance_analyzer = PerformanceAnalyzer()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
    ) -> TimeRange:
        return resolve_time_range(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone or self.settings.timezone,
            now=self.clock(),
        )

    async def _events(self, time_range: TimeRange, **criteria) -> list[DetectionEvent]:
        """Fetch every matching row in the window, oldest first."""
        filters = EventFilter(
            start_time=time_range.start,
            end_time=time_range.end,
            limit=None,
            ascending=True,
            **criteria,
        )
        events = await self.source.query_events(filters)
        logger.debug(
            f"Fetched {len(events)} events for {time_range.start:.0f}..{time_range.end:.0f} "
            f"({criteria or 'all'})"
        )
        return events

    async def _employee_events(
        self, time_range: TimeRange, camera: str | None, employee: str | None
    ) -> list[DetectionEvent]:
        return await self._events(
            time_range,
            label=LABEL_PERSON,
            has_sub_label=True,
            camera=camera,
            sub_label=employee,
        )

    async def _transition_events(
        self, time_range: TimeRange, camera: str | None, employee: str | None
    ) -> list[DetectionEvent]:
        """Zone entries and exits of identified people; presence rows are left out."""
        return await self._events(
            time_range,
            label=LABEL_PERSON,
            has_sub_label=True,
            class_types=ZONE_TRANSITIONS,
            camera=camera,
            sub_label=employee,
        )

    # ------------------------------------------------------------------
    # Employee reports
    # ------------------------------------------------------------------

    async def _work_report(
        self, time_range: TimeRange, camera: str | None, employee: str | None
    ) -> WorkHoursReport:
        events = await self._transition_events(time_range, camera, employee)
        sessions = self.reconstructor.reconstruct_all(events, time_range.end)
        activity = Counter(self.reconstructor.subject_key(e) for e in events)
        return self.work_hours_aggregator.aggregate_report(
            sessions, time_range, activity_counts=dict(activity)
        )

    async def work_hours(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> WorkHoursReport:
        """Work hours, breaks and attendance status per identified employee."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        report = await self._work_report(time_range, camera, employee)
        logger.info(
            f"Work hours: {report.total_employees} employees, "
            f"{report.total_work_hours:.2f}h total"
        )
        return report

    async def break_time(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> BreakReport:
        """Break statistics per identified employee."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._transition_events(time_range, camera, employee)
        sessions = self.reconstructor.reconstruct_all(events, time_range.end)
        return self.work_hours_aggregator.break_report(sessions, time_range)

    async def attendance(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> AttendanceReport:
        """Daily attendance records per identified employee."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._transition_events(time_range, camera, employee)
        sessions = self.reconstructor.reconstruct_all(events, time_range.end)
        return self.work_hours_aggregator.attendance(sessions, time_range)

    # ------------------------------------------------------------------
    # Zone reports
    # ------------------------------------------------------------------

    async def desk_occupancy(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        zone: str | None = None,
        category: str = ZONE_CATEGORY_WORKSTATION,
    ) -> DeskOccupancyReport:
        """Occupancy of desk (workstation) zones."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._events(
            time_range, label=LABEL_PERSON, has_zones=True, camera=camera, zone=zone
        )
        return self.occupancy_aggregator.desk_occupancy(
            events, time_range, category=category, zone=zone
        )

    async def zone_utilization(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
    ) -> ZoneUtilizationReport:
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._events(time_range, has_zones=True, camera=camera)
        return self.occupancy_aggregator.zone_utilization(events, time_range)

    async def zone_preferences(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> ZonePreferenceReport:
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._events(
            time_range,
            label=LABEL_PERSON,
            has_sub_label=True,
            has_zones=True,
            camera=camera,
            sub_label=employee,
        )
        return self.occupancy_aggregator.employee_zone_preferences(
            events, time_range, now=self.clock()
        )

    async def activity_patterns(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> ActivityPatternReport:
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._employee_events(time_range, camera, employee)
        return self.pattern_analyzer.analyze(events, time_range)

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    async def _metric_buckets(
        self,
        metric: TrendMetric,
        time_range: TimeRange,
        granularity: Granularity,
        camera: str | None,
    ) -> list[TrendBucket]:
        if metric == TrendMetric.VIOLATIONS:
            events = await self._events(time_range, label=LABEL_CELL_PHONE, camera=camera)
        elif metric == TrendMetric.EMPLOYEES:
            events = await self._employee_events(time_range, camera, None)
        elif metric == TrendMetric.ACTIVITY:
            events = await self._events(time_range, label=LABEL_PERSON, camera=camera)
        else:
            events = await self._events(time_range, camera=camera)

        buckets = bucket_events(events, granularity, time_range.timezone)
        if metric == TrendMetric.EMPLOYEES:
            # the employees series counts distinct people per period
            buckets = [b.model_copy(update={"count": b.unique_subjects}) for b in buckets]
        return buckets

    async def trend_analysis(
        self,
        *,
        metric: TrendMetric | str = TrendMetric.ACTIVITY,
        granularity: Granularity | str = Granularity.HOURLY,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
    ) -> TrendReport:
        """
        Bucketed series for one metric (or every metric with "all") over the
        window and the preceding window of equal length.
        """
        metric = TrendMetric(metric)
        granularity = Granularity(granularity)
        time_range = self._resolve(start_date, end_date, hours, timezone)
        previous_range = time_range.previous()

        metrics = (
            [TrendMetric.ACTIVITY, TrendMetric.VIOLATIONS, TrendMetric.EMPLOYEES]
            if metric == TrendMetric.ALL
            else [metric]
        )

        results = []
        for name in metrics:
            current = await self._metric_buckets(name, time_range, granularity, camera)
            previous = await self._metric_buckets(name, previous_range, granularity, camera)
            statistics = compute_statistics(current)
            results.append(
                MetricTrend(
                    metric=name,
                    buckets=current,
                    previous_buckets=previous,
                    statistics=statistics,
                    comparison=compare_buckets(current, previous),
                    insights=trend_insights(statistics),
                )
            )

        return TrendReport(
            granularity=granularity,
            period=time_range,
            previous_period=previous_range,
            metrics=results,
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    @staticmethod
    def _activity_summary(events: list[DetectionEvent]) -> ActivitySummary:
        people = [e for e in events if e.label == LABEL_PERSON]
        return ActivitySummary(
            total_events=len(people),
            unique_employees=len({e.sub_label for e in people if e.sub_label}),
            unique_cameras=len({e.camera for e in people}),
            zone_events=sum(1 for e in people if e.zones),
        )

    @staticmethod
    def _violation_summary(events: list[DetectionEvent]) -> ViolationSummary:
        violations = [e for e in events if e.label == LABEL_CELL_PHONE]
        return ViolationSummary(
            total_violations=len(violations),
            employees_with_violations=len({e.sub_label for e in violations if e.sub_label}),
            by_camera=dict(Counter(e.camera for e in violations)),
        )

    @staticmethod
    def _employee_summaries(events: list[DetectionEvent]) -> list[EmployeeSummary]:
        stats: dict[str, EmployeeSummary] = {}
        for event in events:
            if not event.sub_label:
                continue
            summary = stats.get(event.sub_label)
            if summary is None:
                summary = stats[event.sub_label] = EmployeeSummary(
                    employee=event.sub_label,
                    events=0,
                    first_seen=event.timestamp,
                    last_seen=event.timestamp,
                )
            if event.label == LABEL_CELL_PHONE:
                summary.violations += 1
            else:
                summary.events += 1
            summary.first_seen = min(summary.first_seen or event.timestamp, event.timestamp)
            summary.last_seen = max(summary.last_seen or event.timestamp, event.timestamp)

        ranked = sorted(stats.values(), key=lambda s: (-s.events, s.employee))
        return ranked[:TOP_EMPLOYEES]

    @staticmethod
    def _camera_summaries(events: list[DetectionEvent]) -> list[CameraSummary]:
        counts: Counter[str] = Counter()
        employees: dict[str, set[str]] = {}
        last: dict[str, float] = {}
        for event in events:
            counts[event.camera] += 1
            if event.sub_label:
                employees.setdefault(event.camera, set()).add(event.sub_label)
            last[event.camera] = max(last.get(event.camera, event.timestamp), event.timestamp)

        return [
            CameraSummary(
                camera=camera,
                events=count,
                unique_employees=len(employees.get(camera, ())),
                last_activity=last[camera],
            )
            for camera, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    async def dashboard(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
    ) -> Dashboard:
        """Headline activity and violation numbers with previous-period trends."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        previous_range = time_range.previous()

        events = await self._events(time_range, camera=camera)
        previous_events = await self._events(previous_range, camera=camera)

        activity = self._activity_summary(events)
        violations = self._violation_summary(events)
        previous_activity = self._activity_summary(previous_events)
        previous_violations = self._violation_summary(previous_events)

        return Dashboard(
            period=time_range,
            activity=activity,
            violations=violations,
            top_employees=self._employee_summaries(events),
            cameras=self._camera_summaries(events),
            activity_trend=compute_trend(
                activity.total_events, previous_activity.total_events
            ),
            violation_trend=compute_trend(
                violations.total_violations, previous_violations.total_violations
            ),
            employee_trend=compute_trend(
                activity.unique_employees, previous_activity.unique_employees
            ),
        )

    # ------------------------------------------------------------------
    # Violations and performance
    # ------------------------------------------------------------------

    async def _violation_events(
        self, time_range: TimeRange, camera: str | None, employee: str | None
    ) -> list[DetectionEvent]:
        return await self._events(
            time_range, label=LABEL_CELL_PHONE, camera=camera, sub_label=employee
        )

    async def violations(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
        limit: int | None = DEFAULT_EVENT_LIMIT,
    ) -> ViolationReport:
        """Cell-phone detections with timestamp and confidence, per employee and camera."""
        time_range = self._resolve(start_date, end_date, hours, timezone)
        events = await self._violation_events(time_range, camera, employee)
        report = build_violation_report(events, time_range, limit=limit)
        logger.info(
            f"Violations: {report.total_violations} "
            f"({report.unidentified_violations} unidentified)"
        )
        return report

    async def performance_metrics(
        self,
        *,
        start_date: str | None = None,
        end_date: str | None = None,
        hours: float | None = None,
        timezone: str | None = None,
        camera: str | None = None,
        employee: str | None = None,
    ) -> PerformanceReport:
        """
        Productivity, efficiency, compliance and engagement scores with an
        overall score, each compared with the preceding window.
        """
        time_range = self._resolve(start_date, end_date, hours, timezone)
        previous_range = time_range.previous()

        work = await self._work_report(time_range, camera, employee)
        previous_work = await self._work_report(previous_range, camera, employee)
        violations = Counter(
            e.sub_label
            for e in await self._violation_events(time_range, camera, employee)
            if e.sub_label
        )
        previous_violations = Counter(
            e.sub_label
            for e in await self._violation_events(previous_range, camera, employee)
            if e.sub_label
        )

        return self.performance_analyzer.report(
            work, violations, previous_work, previous_violations, time_range, previous_range
        )

    # ------------------------------------------------------------------
    # Camera status
    # ------------------------------------------------------------------

    async def camera_status(
        self, *, camera: str | None = None, timezone: str | None = None
    ) -> CameraStatusReport:
        """
        Health of each camera at the current time.

        A camera is `active` with detections in the last 5 minutes and
        recordings started in the last hour; `recording_only` or
        `detection_only` when just one of them holds; otherwise `inactive`.
        Hourly activity covers the last 24 hours in the given timezone.
        """
        now = self.clock()
        tz = get_timezone(timezone or self.settings.timezone)
        cameras = [camera] if camera else await self.source.list_cameras()

        statuses = []
        for name in cameras:
            day_events = await self.source.query_events(
                EventFilter(
                    start_time=now - SECONDS_PER_DAY, end_time=now, camera=name, limit=None
                )
            )
            recordings = await self.source.query_recordings(
                RecordingFilter(
                    start_time=now - CAMERA_RECENT_RECORDING_SECONDS,
                    end_time=now,
                    camera=name,
                    limit=None,
                )
            )

            recent = [e for e in day_events if e.timestamp > now - CAMERA_RECENT_ACTIVITY_SECONDS]
            recent_recordings = [
                r for r in recordings if r.start_time > now - CAMERA_RECENT_RECORDING_SECONDS
            ]

            status: CameraState = "inactive"
            if recent and recent_recordings:
                status = "active"
            elif recent_recordings:
                status = "recording_only"
            elif recent:
                status = "detection_only"

            hourly = Counter(to_local_datetime(e.timestamp, tz).hour for e in day_events)
            statuses.append(
                CameraStatus(
                    camera=name,
                    status=status,
                    recent_detections=len(recent),
                    recent_recordings=len(recent_recordings),
                    last_detection=max((e.timestamp for e in day_events), default=None),
                    last_recording=max((r.start_time for r in recent_recordings), default=None),
                    unique_employees=len({e.sub_label for e in day_events if e.sub_label}),
                    violations=sum(1 for e in day_events if e.label == LABEL_CELL_PHONE),
                    hourly_activity=[
                        HourlyActivity(hour=h, count=c) for h, c in sorted(hourly.items())
                    ],
                )
            )

        return CameraStatusReport(
            cameras=statuses,
            total_cameras=len(statuses),
            active_cameras=sum(1 for s in statuses if s.status == "active"),
            generated_at=now,
        )
