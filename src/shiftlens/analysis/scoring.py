"""
Heuristic scoring strategies.

These scores are ad hoc weighted formulas kept for continuity with existing
dashboards. They are indicators, not verified productivity or efficiency
measures, and every weight is a constructor parameter so a deployment can
retune or replace them without touching the aggregation pipeline.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import numpy as np

from shiftlens.constants import AttendanceConstants, ScoringConstants


class ScoringStrategy(ABC):
    """Abstract base for a named heuristic score in [0, 100]."""

    name: str
    description: str

    @abstractmethod
    def score(self, **inputs: Any) -> float:
        """Compute the score from keyword inputs specific to the strategy."""
        pass


class ProductivityScore(ScoringStrategy):
    """Blend of hours worked, activity count and a bonus for any presence."""

    name = "productivity"
    description = "Weighted work-hours ratio, activity ratio and presence bonus"

    def __init__(
        self,
        standard_hours: float = AttendanceConstants.STANDARD_WORK_HOURS,
        hours_weight: float = ScoringConstants.PRODUCTIVITY_HOURS_WEIGHT,
        activity_weight: float = ScoringConstants.PRODUCTIVITY_ACTIVITY_WEIGHT,
        session_bonus: float = ScoringConstants.PRODUCTIVITY_SESSION_BONUS,
        activity_target: int = ScoringConstants.PRODUCTIVITY_ACTIVITY_TARGET,
    ):
        self.standard_hours = standard_hours
        self.hours_weight = hours_weight
        self.activity_weight = activity_weight
        self.session_bonus = session_bonus
        self.activity_target = activity_target

    def score(  # type: ignore[override]
        self, work_hours: float, activity_count: int, session_count: int, **_: Any
    ) -> float:
        base = min(work_hours / self.standard_hours, 1.0) * self.hours_weight
        activity = min(activity_count / self.activity_target, 1.0) * self.activity_weight
        bonus = self.session_bonus if session_count > 0 else 0.0
        return float(round(base + activity + bonus))


class WorkEfficiencyScore(ScoringStrategy):
    name = "work_efficiency"
    description = "Hours worked as a share of a standard day, capped at 100"

    def __init__(self, standard_hours: float = AttendanceConstants.STANDARD_WORK_HOURS):
        self.standard_hours = standard_hours

    def score(self, work_hours: float, **_: Any) -> float:  # type: ignore[override]
        return float(min(round(work_hours / self.standard_hours * 100), 100))


class BreakEfficiencyScore(ScoringStrategy):
    name = "break_efficiency"
    description = "Share of a standard day not spent on breaks, floored at 0"

    def __init__(self, standard_hours: float = AttendanceConstants.STANDARD_WORK_HOURS):
        self.standard_hours = standard_hours

    def score(self, break_hours: float, **_: Any) -> float:  # type: ignore[override]
        remaining = (self.standard_hours - break_hours) / self.standard_hours * 100
        return float(max(round(remaining), 0))


class DeskEfficiencyScore(ScoringStrategy):
    """Utilization, occupant diversity and session length, capped at 100."""

    name = "desk_efficiency"
    description = "Weighted utilization, occupant diversity and session length"

    def __init__(
        self,
        utilization_weight: float = ScoringConstants.DESK_UTILIZATION_WEIGHT,
        diversity_weight: float = ScoringConstants.DESK_DIVERSITY_WEIGHT,
        session_weight: float = ScoringConstants.DESK_SESSION_WEIGHT,
        session_cap_hours: float = ScoringConstants.DESK_SESSION_CAP_HOURS,
    ):
        self.utilization_weight = utilization_weight
        self.diversity_weight = diversity_weight
        self.session_weight = session_weight
        self.session_cap_hours = session_cap_hours

    def score(  # type: ignore[override]
        self,
        utilization_rate: float,
        unique_occupants: int,
        average_session_hours: float,
        **_: Any,
    ) -> float:
        value = (
            utilization_rate * self.utilization_weight
            + unique_occupants * 10 * self.diversity_weight
            + min(average_session_hours, self.session_cap_hours) * 10 * self.session_weight
        )
        return float(min(round(value), 100))


class ZoneUtilizationScore(ScoringStrategy):
    """Entry/exit balance, employee diversity and raw activity, capped at 100."""

    name = "zone_utilization"
    description = "Weighted entry/exit ratio, diversity and activity count"

    def __init__(
        self,
        ratio_weight: float = ScoringConstants.ZONE_ENTRY_RATIO_WEIGHT,
        diversity_weight: float = ScoringConstants.ZONE_DIVERSITY_WEIGHT,
        activity_divisor: float = ScoringConstants.ZONE_ACTIVITY_DIVISOR,
        activity_cap: float = ScoringConstants.ZONE_ACTIVITY_CAP,
    ):
        self.ratio_weight = ratio_weight
        self.diversity_weight = diversity_weight
        self.activity_divisor = activity_divisor
        self.activity_cap = activity_cap

    def score(  # type: ignore[override]
        self,
        total_entries: int,
        total_exits: int,
        unique_employees: int,
        activity_count: int,
        **_: Any,
    ) -> float:
        ratio = total_entries / total_exits if total_exits > 0 else float(total_entries)
        value = (
            ratio * self.ratio_weight
            + unique_employees * self.diversity_weight
            + min(activity_count / self.activity_divisor, self.activity_cap)
        )
        return float(min(round(value), 100))


class ZoneEfficiencyScore(ScoringStrategy):
    name = "zone_efficiency"
    description = "Weighted utilization score, activity intensity and diversity"

    def __init__(
        self,
        utilization_weight: float = ScoringConstants.ZONE_EFFICIENCY_UTILIZATION_WEIGHT,
        intensity_weight: float = ScoringConstants.ZONE_EFFICIENCY_INTENSITY_WEIGHT,
        diversity_weight: float = ScoringConstants.ZONE_EFFICIENCY_DIVERSITY_WEIGHT,
    ):
        self.utilization_weight = utilization_weight
        self.intensity_weight = intensity_weight
        self.diversity_weight = diversity_weight

    def score(  # type: ignore[override]
        self,
        utilization_score: float,
        activity_intensity: float,
        unique_employees: int,
        **_: Any,
    ) -> float:
        value = (
            utilization_score * self.utilization_weight
            + min(activity_intensity / 2, 25) * self.intensity_weight
            + unique_employees * 5 * self.diversity_weight
        )
        return float(min(round(value), 100))


class ConsistencyScore(ScoringStrategy):
    """100 minus the coefficient of variation; 100 for fewer than two values."""

    name = "consistency"
    description = "Inverse coefficient of variation of a series"

    def score(self, values: Sequence[float], **_: Any) -> float:  # type: ignore[override]
        if len(values) < 2:
            return 100.0
        arr = np.asarray(values, dtype=float)
        mean = float(np.mean(arr))
        std = float(np.std(arr))
        if std == 0:
            return 100.0
        if mean == 0:
            return 0.0
        cv = std / mean * 100
        return float(max(0, round(100 - cv)))


AVAILABLE_STRATEGIES: dict[str, type[ScoringStrategy]] = {
    "productivity": ProductivityScore,
    "work_efficiency": WorkEfficiencyScore,
    "break_efficiency": BreakEfficiencyScore,
    "desk_efficiency": DeskEfficiencyScore,
    "zone_utilization": ZoneUtilizationScore,
    "zone_efficiency": ZoneEfficiencyScore,
    "consistency": ConsistencyScore,
}


def get_strategy(name: str, **kwargs: Any) -> ScoringStrategy:
    """
    Factory function to get a scoring strategy by name.

    Args:
        name: Strategy name (e.g., "productivity", "desk_efficiency")
        **kwargs: Strategy-specific weights

    Returns:
        ScoringStrategy instance

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in AVAILABLE_STRATEGIES:
        raise ValueError(
            f"Unknown scoring strategy: {name}. "
            f"Available: {list(AVAILABLE_STRATEGIES.keys())}"
        )
    return AVAILABLE_STRATEGIES[name](**kwargs)


class ScoringSet:
    """The strategies used by the aggregators, overridable per instance."""

    def __init__(
        self,
        standard_hours: float = AttendanceConstants.STANDARD_WORK_HOURS,
        **overrides: ScoringStrategy,
    ):
        self.productivity = overrides.get("productivity") or ProductivityScore(
            standard_hours=standard_hours
        )
        self.work_efficiency = overrides.get("work_efficiency") or WorkEfficiencyScore(
            standard_hours=standard_hours
        )
        self.break_efficiency = overrides.get("break_efficiency") or BreakEfficiencyScore(
            standard_hours=standard_hours
        )
        self.desk_efficiency = overrides.get("desk_efficiency") or DeskEfficiencyScore()
        self.zone_utilization = overrides.get("zone_utilization") or ZoneUtilizationScore()
        self.zone_efficiency = overrides.get("zone_efficiency") or ZoneEfficiencyScore()
        self.consistency = overrides.get("consistency") or ConsistencyScore()
