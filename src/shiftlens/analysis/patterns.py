"""Hour-of-day and day-of-week activity patterns for employees and zones."""

import logging

from collections import Counter
from collections.abc import Iterable

from shiftlens.analysis.scoring import ConsistencyScore
from shiftlens.constants import (
    AFTERNOON_HOURS,
    DAY_NAMES,
    EARLY_HOURS,
    EVENING_HOURS,
    LATE_HOURS,
    MORNING_HOURS,
    REGULAR_HOURS,
    UNKNOWN_SUBJECT,
    TrendConstants,
)
from shiftlens.models.events import DetectionEvent
from shiftlens.models.occupancy import PeakHour
from shiftlens.models.patterns import (
    ActivityPattern,
    ActivityPatternReport,
    PatternInsights,
    PeriodPreference,
    WorkStyle,
)
from shiftlens.models.time_range import TimeRange
from shiftlens.utils.timezones import get_timezone, to_local_datetime

logger = logging.getLogger(__name__)


def period_preference(hourly: list[int]) -> PeriodPreference:
    morning = sum(hourly[h] for h in MORNING_HOURS)
    afternoon = sum(hourly[h] for h in AFTERNOON_HOURS)
    evening = sum(hourly[h] for h in EVENING_HOURS)

    if morning + afternoon + evening == 0:
        return "unknown"
    if morning > afternoon and morning > evening:
        return "morning_person"
    if afternoon > morning and afternoon > evening:
        return "afternoon_person"
    if evening > morning and evening > afternoon:
        return "evening_person"
    return "balanced"


def work_style(hourly: list[int]) -> WorkStyle:
    early = sum(hourly[h] for h in EARLY_HOURS)
    regular = sum(hourly[h] for h in REGULAR_HOURS)
    late = sum(hourly[h] for h in LATE_HOURS)

    if early + regular + late == 0:
        return "unknown"
    if early > regular and early > late:
        return "early_bird"
    if late > early and late > regular:
        return "night_owl"
    return "regular_schedule"


def peak_hours(hourly: list[int], count: int = TrendConstants.PEAK_COUNT) -> list[PeakHour]:
    """Busiest hours first; ties go to the earlier hour."""
    ranked = sorted((h for h in range(24) if hourly[h] > 0), key=lambda h: (-hourly[h], h))
    return [PeakHour(hour=h, count=hourly[h]) for h in ranked[:count]]


class ActivityPatternAnalyzer:
    """Build temporal profiles from detection events in a given timezone."""

    def __init__(self, consistency: ConsistencyScore | None = None):
        self.consistency = consistency or ConsistencyScore()

    def _profile(self, subject: str, events: list[DetectionEvent], tz) -> ActivityPattern:
        hourly = [0] * 24
        daily = [0] * 7
        zones: set[str] = set()
        cameras: set[str] = set()

        for event in events:
            local = to_local_datetime(event.timestamp, tz)
            hourly[local.hour] += 1
            # isoweekday: Monday=1..Sunday=7; DAY_NAMES starts on Sunday
            daily[local.isoweekday() % 7] += 1
            zones.update(event.zones)
            cameras.add(event.camera)

        most_active_day = None
        if any(daily):
            most_active_day = DAY_NAMES[max(range(7), key=lambda d: (daily[d], -d))]

        return ActivityPattern(
            subject=subject,
            total_activity=len(events),
            hourly=hourly,
            daily=daily,
            peak_hours=peak_hours(hourly),
            most_active_day=most_active_day,
            consistency=self.consistency.score(values=[c for c in hourly if c > 0]),
            period_preference=period_preference(hourly),
            work_style=work_style(hourly),
            zone_diversity=len(zones),
            camera_diversity=len(cameras),
        )

    def employee_patterns(
        self, events: Iterable[DetectionEvent], timezone: str = "UTC"
    ) -> list[ActivityPattern]:
        tz = get_timezone(timezone)
        grouped: dict[str, list[DetectionEvent]] = {}
        for event in events:
            grouped.setdefault(event.sub_label or UNKNOWN_SUBJECT, []).append(event)
        return [self._profile(name, evs, tz) for name, evs in sorted(grouped.items())]

    def zone_patterns(
        self, events: Iterable[DetectionEvent], timezone: str = "UTC"
    ) -> list[ActivityPattern]:
        """Profiles keyed as "camera/zone"; an event counts once per zone it is in."""
        tz = get_timezone(timezone)
        grouped: dict[str, list[DetectionEvent]] = {}
        for event in events:
            for zone in event.zones:
                grouped.setdefault(f"{event.camera}/{zone}", []).append(event)
        return [self._profile(key, evs, tz) for key, evs in sorted(grouped.items())]

    def analyze(
        self, events: Iterable[DetectionEvent], time_range: TimeRange
    ) -> ActivityPatternReport:
        events = list(events)
        employees = self.employee_patterns(events, time_range.timezone)
        zones = self.zone_patterns(events, time_range.timezone)

        insights = PatternInsights(total_subjects=len(employees))
        if employees:
            top = max(employees, key=lambda p: p.total_activity)
            insights = PatternInsights(
                total_subjects=len(employees),
                most_active=top.subject,
                average_activity=round(
                    sum(p.total_activity for p in employees) / len(employees), 2
                ),
                period_distribution=dict(Counter(p.period_preference for p in employees)),
                work_style_distribution=dict(Counter(p.work_style for p in employees)),
            )

        return ActivityPatternReport(
            employees=employees, zones=zones, insights=insights, period=time_range
        )
