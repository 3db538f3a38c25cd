"""
Desk and zone occupancy aggregation.

Desk occupancy is built from reconstructed per-zone sessions; zone
utilization and employee preferences work directly on zone transition
counts. Zone types come from an ordered rule table (first match wins) so new
taxonomies are configuration, not code.
"""

import logging

from collections import Counter
from collections.abc import Iterable, Sequence

from shiftlens.analysis.scoring import ScoringSet
from shiftlens.analysis.sessions import SessionReconstructor, flatten_sessions
from shiftlens.config import ZoneCategoryRule, default_zone_rules
from shiftlens.constants import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    UNKNOWN_SUBJECT,
    ZONE_CATEGORY_GENERAL,
    ZONE_CATEGORY_WORKSTATION,
    ClassType,
    OccupancyConstants,
    ScoringConstants,
    TrendConstants,
)
from shiftlens.models.events import DetectionEvent
from shiftlens.models.occupancy import (
    DeskOccupancyReport,
    EmployeeZonePreferences,
    OccupancyInsights,
    OccupancyTrend,
    PeakHour,
    UtilizationDistribution,
    ZoneOccupancyRecord,
    ZonePreference,
    ZonePreferenceReport,
    ZoneUtilization,
    ZoneUtilizationReport,
)
from shiftlens.models.sessions import Session
from shiftlens.models.time_range import TimeRange
from shiftlens.utils.timezones import get_timezone, to_local_datetime

logger = logging.getLogger(__name__)

ZoneKey = tuple[str, str]  # (camera, zone)


class ZoneClassifier:
    """Map zone names to categories using an ordered rule table."""

    def __init__(self, rules: Sequence[ZoneCategoryRule] | None = None):
        self.rules = list(rules) if rules is not None else default_zone_rules()

    def categorize(self, zone_name: str) -> str:
        for rule in self.rules:
            if rule.matches(zone_name):
                return rule.category
        return ZONE_CATEGORY_GENERAL


def occupancy_trend(
    sessions: Sequence[Session],
    recent_count: int = TrendConstants.RECENT_SESSION_COUNT,
    threshold: float = TrendConstants.CHANGE_THRESHOLD,
) -> OccupancyTrend:
    """
    Compare the mean duration of the last `recent_count` sessions with the
    mean of all earlier sessions.
    """
    if len(sessions) < 2:
        return "stable"
    ordered = sorted(sessions, key=lambda s: s.entry)
    recent = ordered[-recent_count:]
    older = ordered[:-recent_count]
    if not recent or not older:
        return "stable"

    recent_mean = sum(s.duration_hours for s in recent) / len(recent)
    older_mean = sum(s.duration_hours for s in older) / len(older)
    if older_mean == 0:
        return "stable"

    change = (recent_mean - older_mean) / older_mean
    if change > threshold:
        return "increasing"
    if change < -threshold:
        return "decreasing"
    return "stable"


def _percent(part: int, whole: int) -> float:
    return float(round(part / whole * 100)) if whole else 0.0


class ZoneOccupancyAggregator:
    """
    Aggregate zone-scoped presence into occupancy statistics.

    Args:
        classifier: Zone taxonomy
        scoring: Heuristic scoring strategies
        reconstructor: Session reconstructor (per-zone sessions)
    """

    def __init__(
        self,
        classifier: ZoneClassifier | None = None,
        scoring: ScoringSet | None = None,
        reconstructor: SessionReconstructor | None = None,
    ):
        self.classifier = classifier or ZoneClassifier()
        self.scoring = scoring or ScoringSet()
        self.reconstructor = reconstructor or SessionReconstructor()

    # ------------------------------------------------------------------
    # Desk occupancy
    # ------------------------------------------------------------------

    def desk_occupancy(
        self,
        events: Iterable[DetectionEvent],
        time_range: TimeRange,
        category: str = ZONE_CATEGORY_WORKSTATION,
        zone: str | None = None,
    ) -> DeskOccupancyReport:
        """
        Occupancy per (camera, zone) for zones of the given category.

        Args:
            events: Zone transition and presence events
            time_range: Query window; open sessions close at its end
            category: Zone category to keep ("workstation" for desks)
            zone: Restrict to a single zone name

        Returns:
            DeskOccupancyReport ordered by camera then zone
        """
        zoned = [e for e in events if e.zones]
        sessions = [
            s
            for s in flatten_sessions(self.reconstructor.reconstruct_all(zoned, time_range.end))
            if s.zone is not None
            and (zone is None or s.zone == zone)
            and self.classifier.categorize(s.zone) == category
        ]

        by_zone: dict[ZoneKey, list[Session]] = {}
        for session in sessions:
            by_zone.setdefault((session.camera, session.zone or ""), []).append(session)

        period_hours = time_range.duration_hours
        desks = [
            self._desk_record(camera, zone_name, zone_sessions, period_hours)
            for (camera, zone_name), zone_sessions in sorted(by_zone.items())
        ]

        logger.debug(f"Desk occupancy: {len(desks)} desks from {len(sessions)} sessions")

        total = sum(d.total_occupancy_hours for d in desks)
        return DeskOccupancyReport(
            desks=desks,
            total_desks=len(desks),
            total_occupancy_hours=total,
            average_utilization=(
                sum(d.utilization_rate for d in desks) / len(desks) if desks else 0.0
            ),
            period=time_range,
            sessions=sessions,
            insights=self._occupancy_insights(desks) if desks else None,
        )

    def _desk_record(
        self, camera: str, zone: str, sessions: list[Session], period_hours: float
    ) -> ZoneOccupancyRecord:
        total_hours = sum(s.duration_hours for s in sessions)
        utilization = total_hours / period_hours * 100 if period_hours > 0 else 0.0
        average = total_hours / len(sessions)

        # most_common keeps first-encountered order for equal counts
        counts = Counter(s.subject for s in sessions)
        occupants = list(counts)

        return ZoneOccupancyRecord(
            camera=camera,
            zone=zone,
            zone_type=self.classifier.categorize(zone),
            total_occupancy_hours=total_hours,
            session_count=len(sessions),
            unique_occupants=occupants,
            utilization_rate=utilization,
            average_session_hours=average,
            most_frequent_occupant=counts.most_common(1)[0][0],
            last_occupied=max(s.entry for s in sessions),
            occupancy_trend=occupancy_trend(sessions),
            efficiency_score=self.scoring.desk_efficiency.score(
                utilization_rate=utilization,
                unique_occupants=len(occupants),
                average_session_hours=average,
            ),
            sessions=sessions,
        )

    def _occupancy_insights(self, desks: list[ZoneOccupancyRecord]) -> OccupancyInsights:
        total = len(desks)
        high = sum(1 for d in desks if d.utilization_rate > OccupancyConstants.HIGH_UTILIZATION)
        low = sum(1 for d in desks if d.utilization_rate < OccupancyConstants.LOW_UTILIZATION)
        ranked = sorted(desks, key=lambda d: d.efficiency_score, reverse=True)

        return OccupancyInsights(
            total_desks=total,
            utilization_distribution=UtilizationDistribution(
                high=_percent(high, total),
                medium=_percent(total - high - low, total),
                low=_percent(low, total),
            ),
            average_utilization=round(sum(d.utilization_rate for d in desks) / total, 2),
            most_efficient=f"{ranked[0].camera}/{ranked[0].zone}",
            least_efficient=f"{ranked[-1].camera}/{ranked[-1].zone}",
        )

    # ------------------------------------------------------------------
    # Zone utilization
    # ------------------------------------------------------------------

    def zone_utilization(
        self, events: Iterable[DetectionEvent], time_range: TimeRange
    ) -> ZoneUtilizationReport:
        """
        Entry/exit based utilization for every zone seen in the window.

        Zones are ranked by utilization score (rank 1 is the most popular).
        """
        tz = get_timezone(time_range.timezone)
        stats: dict[ZoneKey, dict] = {}

        for event in events:
            employee = event.sub_label or UNKNOWN_SUBJECT
            for zone in event.zones:
                entry = stats.setdefault(
                    (event.camera, zone),
                    {
                        "entries": [],
                        "exits": 0,
                        "activity": 0,
                        "employees": {},
                    },
                )
                entry["activity"] += 1
                entry["employees"].setdefault(employee, None)
                if event.class_type == ClassType.ENTERED_ZONE:
                    entry["entries"].append(event.timestamp)
                elif event.class_type == ClassType.LEFT_ZONE:
                    entry["exits"] += 1

        zones: list[ZoneUtilization] = []
        for (camera, zone), data in stats.items():
            entries: list[float] = sorted(data["entries"])
            employees = list(data["employees"])

            hour_counts = Counter(to_local_datetime(ts, tz).hour for ts in entries)
            peak_hours = [
                PeakHour(hour=hour, count=count)
                for hour, count in sorted(hour_counts.items(), key=lambda kv: (-kv[1], kv[0]))[
                    : TrendConstants.PEAK_COUNT
                ]
            ]

            span_hours = (entries[-1] - entries[0]) / SECONDS_PER_HOUR if len(entries) > 1 else 0.0
            transitions = len(entries) + data["exits"]
            intensity = float(round(transitions / span_hours)) if span_hours > 0 else float(transitions)

            utilization_score = self.scoring.zone_utilization.score(
                total_entries=len(entries),
                total_exits=data["exits"],
                unique_employees=len(employees),
                activity_count=data["activity"],
            )
            zones.append(
                ZoneUtilization(
                    camera=camera,
                    zone=zone,
                    zone_type=self.classifier.categorize(zone),
                    total_entries=len(entries),
                    total_exits=data["exits"],
                    activity_count=data["activity"],
                    unique_employees=employees,
                    peak_hours=peak_hours,
                    activity_intensity=intensity,
                    utilization_score=utilization_score,
                    efficiency_rating=self.scoring.zone_efficiency.score(
                        utilization_score=utilization_score,
                        activity_intensity=intensity,
                        unique_employees=len(employees),
                    ),
                )
            )

        zones.sort(key=lambda z: (-z.utilization_score, z.camera, z.zone))
        for rank, zone_stats in enumerate(zones, start=1):
            zone_stats.popularity_rank = rank

        return ZoneUtilizationReport(
            zones=zones,
            total_zones=len(zones),
            average_utilization=(
                round(sum(z.utilization_score for z in zones) / len(zones), 2) if zones else 0.0
            ),
            zone_type_distribution=dict(Counter(z.zone_type for z in zones)),
            most_popular_zone=f"{zones[0].camera}/{zones[0].zone}" if zones else None,
            least_popular_zone=f"{zones[-1].camera}/{zones[-1].zone}" if zones else None,
            period=time_range,
        )

    # ------------------------------------------------------------------
    # Employee zone preferences
    # ------------------------------------------------------------------

    def employee_zone_preferences(
        self,
        events: Iterable[DetectionEvent],
        time_range: TimeRange,
        now: float | None = None,
    ) -> ZonePreferenceReport:
        """
        Zone visit profile per employee.

        A visit is an `entered_zone` event; every zone row counts toward the
        employee's total. Preference blends visit share with recency relative
        to `now` (defaults to the window end).
        """
        if now is None:
            now = time_range.end

        per_employee: dict[str, dict[ZoneKey, ZonePreference]] = {}
        totals: Counter[str] = Counter()

        for event in sorted(events, key=lambda e: e.timestamp):
            employee = event.sub_label or UNKNOWN_SUBJECT
            zones = per_employee.setdefault(employee, {})
            for zone in event.zones:
                pref = zones.setdefault(
                    (event.camera, zone), ZonePreference(camera=event.camera, zone=zone)
                )
                if event.class_type == ClassType.ENTERED_ZONE:
                    pref.visits += 1
                    pref.last_visit = event.timestamp
                    if pref.first_visit is None:
                        pref.first_visit = event.timestamp
                totals[employee] += 1

        employees: list[EmployeeZonePreferences] = []
        for employee, zones in sorted(per_employee.items()):
            if not zones:
                continue
            total_visits = totals[employee]
            prefs = list(zones.values())
            for pref in prefs:
                pref.preference_score = self._preference_score(pref, total_visits, now)
            prefs.sort(key=lambda p: p.preference_score, reverse=True)

            visits = [p.visits for p in prefs]
            visit_sum = sum(visits)
            avg_visits = visit_sum / len(prefs)
            mobility = min(len(prefs) * 20 + min(avg_visits, 10) * 5, 100)

            employees.append(
                EmployeeZonePreferences(
                    employee=employee,
                    total_zone_visits=total_visits,
                    preferred_zones=prefs[: OccupancyConstants.TOP_PREFERRED_ZONES],
                    zone_diversity=len(prefs),
                    mobility_score=float(round(mobility)),
                    zone_loyalty=float(round(prefs[0].visits / visit_sum * 100)) if visit_sum else 0.0,
                    zone_consistency=self.scoring.consistency.score(values=visits),
                )
            )

        total = len(employees)
        return ZonePreferenceReport(
            employees=employees,
            total_employees=total,
            average_zone_diversity=(
                round(sum(e.zone_diversity for e in employees) / total, 2) if total else 0.0
            ),
            high_mobility_percent=_percent(
                sum(1 for e in employees if e.mobility_score > OccupancyConstants.HIGH_MOBILITY),
                total,
            ),
            high_loyalty_percent=_percent(
                sum(1 for e in employees if e.zone_loyalty > OccupancyConstants.HIGH_LOYALTY),
                total,
            ),
            period=time_range,
        )

    @staticmethod
    def _preference_score(pref: ZonePreference, total_visits: int, now: float) -> float:
        share = pref.visits / total_visits * 100 if total_visits > 0 else 0.0
        if pref.last_visit is not None:
            days = max(now - pref.last_visit, 0.0) / SECONDS_PER_DAY
        else:
            days = ScoringConstants.PREFERENCE_RECENCY_HORIZON_DAYS
        recency = max(0.0, 100 - days / 30 * 10)
        return float(
            round(
                share * ScoringConstants.PREFERENCE_VISIT_WEIGHT
                + recency * ScoringConstants.PREFERENCE_RECENCY_WEIGHT
            )
        )
