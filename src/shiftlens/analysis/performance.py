"""
Team performance indicators.

Four heuristic dimensions are derived from the work-hours summaries and the
violation counts of one window, compared with the previous window, and
blended into an overall score:

    productivity   mean per-employee productivity score
    efficiency     mean per-employee work efficiency
    compliance     mean of 100 minus a fixed penalty per cell-phone violation
    engagement     share of employees reaching at least a half day
"""

import logging

from collections.abc import Mapping

from shiftlens.analysis.trends import compute_trend
from shiftlens.constants import ScoringConstants
from shiftlens.models.time_range import TimeRange
from shiftlens.models.violations import PerformanceDimension, PerformanceReport
from shiftlens.models.work import WorkHoursReport

logger = logging.getLogger(__name__)

DIMENSIONS = ("productivity", "efficiency", "compliance", "engagement")


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class PerformanceAnalyzer:
    """
    Score a window's work-hours report and violation counts.

    Args:
        weights: Per-dimension weights for the overall score
        violation_penalty: Compliance points lost per violation
        low_score: Dimensions below this are called out in the insights
    """

    def __init__(
        self,
        weights: Mapping[str, float] | None = None,
        violation_penalty: float = ScoringConstants.COMPLIANCE_VIOLATION_PENALTY,
        low_score: float = ScoringConstants.LOW_PERFORMANCE_SCORE,
    ):
        self.weights = dict(
            weights
            or {
                "productivity": ScoringConstants.PERFORMANCE_PRODUCTIVITY_WEIGHT,
                "efficiency": ScoringConstants.PERFORMANCE_EFFICIENCY_WEIGHT,
                "compliance": ScoringConstants.PERFORMANCE_COMPLIANCE_WEIGHT,
                "engagement": ScoringConstants.PERFORMANCE_ENGAGEMENT_WEIGHT,
            }
        )
        missing = set(DIMENSIONS) - set(self.weights)
        if missing:
            raise ValueError(f"Missing performance weights: {sorted(missing)}")
        self.violation_penalty = violation_penalty
        self.low_score = low_score

    def scores(
        self, work: WorkHoursReport, violations: Mapping[str, int]
    ) -> tuple[dict[str, float], dict[str, list[str]]]:
        """
        Dimension scores and their contributing factors for one window.

        Employees are everyone with sessions plus anyone with a violation.
        With no employees every score is 0.
        """
        summaries = work.employees
        names = {s.employee for s in summaries} | {n for n, c in violations.items() if c > 0}
        if not names:
            return dict.fromkeys(DIMENSIONS, 0.0), {d: [] for d in DIMENSIONS}

        compliance_values = [
            max(0.0, 100.0 - self.violation_penalty * violations.get(name, 0)) for name in names
        ]
        engaged = sum(1 for s in summaries if s.attendance_status in ("full_day", "half_day"))
        total_violations = sum(violations.get(name, 0) for name in names)
        violators = sum(1 for name in names if violations.get(name, 0) > 0)

        scores = {
            "productivity": _mean([s.productivity_score for s in summaries]),
            "efficiency": _mean([s.work_efficiency for s in summaries]),
            "compliance": _mean(compliance_values),
            "engagement": engaged / len(names) * 100,
        }
        factors = {
            "productivity": [
                f"{len(summaries)} employees with sessions",
                f"{work.average_work_hours:.2f}h average work",
            ],
            "efficiency": [f"{work.total_work_hours:.2f}h total work"],
            "compliance": [
                f"{total_violations} cell-phone violations",
                f"{violators} of {len(names)} employees with violations",
            ],
            "engagement": [f"{engaged} of {len(names)} employees worked at least a half day"],
        }
        return {k: round(v, 2) for k, v in scores.items()}, factors

    def overall(self, scores: Mapping[str, float]) -> float:
        total_weight = sum(self.weights[d] for d in DIMENSIONS)
        if total_weight <= 0:
            return 0.0
        blended = sum(scores[d] * self.weights[d] for d in DIMENSIONS) / total_weight
        return float(min(max(round(blended), 0), 100))

    def report(
        self,
        work: WorkHoursReport,
        violations: Mapping[str, int],
        previous_work: WorkHoursReport,
        previous_violations: Mapping[str, int],
        time_range: TimeRange,
        previous_range: TimeRange,
    ) -> PerformanceReport:
        """Build the report for `time_range` against `previous_range`."""
        current, factors = self.scores(work, violations)
        previous, _ = self.scores(previous_work, previous_violations)

        dimensions = {
            name: PerformanceDimension(
                score=current[name],
                previous_score=previous[name],
                trend=compute_trend(current[name], previous[name]).direction,
                factors=factors[name],
            )
            for name in DIMENSIONS
        }
        overall = self.overall(current)

        insights = [f"Overall performance score: {overall:.0f}/100"]
        for name in DIMENSIONS:
            dimension = dimensions[name]
            if dimension.score < self.low_score:
                insights.append(f"Low {name} score ({dimension.score:.0f}/100)")
            if dimension.trend == "down":
                insights.append(
                    f"{name.capitalize()} fell from {dimension.previous_score:.0f} "
                    f"to {dimension.score:.0f}"
                )

        employees = {s.employee for s in work.employees}
        employees |= {n for n, c in violations.items() if c > 0}
        logger.info(f"Performance: overall {overall:.0f} across {len(employees)} employees")

        return PerformanceReport(
            overall_score=overall,
            employees_analyzed=len(employees),
            period=time_range,
            previous_period=previous_range,
            insights=insights,
            **dimensions,
        )
