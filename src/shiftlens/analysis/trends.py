"""
Trend and statistics engine.

Groups events into hourly, daily or weekly buckets and summarizes bucket
series. Hourly buckets are hour-of-day ("09:00") so a multi-day window folds
onto a 24-hour profile; daily and weekly buckets are calendar periods in the
window's timezone.
"""

import logging

from collections.abc import Callable, Iterable, Sequence

import numpy as np

from shiftlens.constants import Granularity, TrendConstants
from shiftlens.models.events import DetectionEvent
from shiftlens.models.trends import TrendBucket, TrendComparison, TrendStatistics
from shiftlens.utils.timezones import get_timezone, to_local_datetime

logger = logging.getLogger(__name__)


def compute_trend(current: float, previous: float) -> TrendComparison:
    """
    Compare a current value against the previous period.

    `change_percent` is rounded to two decimals and is 0 when the previous
    value is not positive.
    """
    change = current - previous
    change_percent = round(change / previous * 100, 2) if previous > 0 else 0.0
    if change > 0:
        direction = "up"
    elif change < 0:
        direction = "down"
    else:
        direction = "stable"
    return TrendComparison(
        current=current,
        previous=previous,
        change=change,
        change_percent=change_percent,
        direction=direction,
    )


def compute_statistics(
    series: Sequence[TrendBucket] | Sequence[float],
    threshold: float = TrendConstants.CHANGE_THRESHOLD,
) -> TrendStatistics:
    """
    Summarize a bucket series.

    Trend compares the mean of the first half of the series with the mean of
    the second half (the middle element goes to the second half). Volatility
    is the population coefficient of variation in percent.

    Args:
        series: TrendBuckets (their counts are used) or plain numbers
        threshold: Relative change that counts as a trend

    Returns:
        TrendStatistics; all zeros and "stable" for an empty series
    """
    if len(series) == 0:
        return TrendStatistics()

    values = np.asarray(
        [b.count if isinstance(b, TrendBucket) else b for b in series], dtype=float
    )
    mean = float(np.mean(values))

    trend = "stable"
    half = len(values) // 2
    if half > 0:
        first = float(np.mean(values[:half]))
        second = float(np.mean(values[half:]))
        if second > first * (1 + threshold):
            trend = "increasing"
        elif second < first * (1 - threshold):
            trend = "decreasing"

    volatility = float(np.std(values)) / mean * 100 if mean > 0 else 0.0

    return TrendStatistics(
        total=float(np.sum(values)),
        mean=round(mean, 2),
        min=float(np.min(values)),
        max=float(np.max(values)),
        trend=trend,
        volatility=round(volatility, 2),
    )


def _period_label(timestamp: float, granularity: Granularity, tz) -> str:
    local = to_local_datetime(timestamp, tz)
    if granularity == Granularity.HOURLY:
        return f"{local.hour:02d}:00"
    if granularity == Granularity.DAILY:
        return local.strftime("%Y-%m-%d")
    iso_year, iso_week, _ = local.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def bucket_events(
    events: Iterable[DetectionEvent],
    granularity: Granularity | str = Granularity.HOURLY,
    timezone: str = "UTC",
    subject_key: Callable[[DetectionEvent], str | None] | None = None,
) -> list[TrendBucket]:
    """
    Group events into period buckets.

    Args:
        events: Events to bucket (any order)
        granularity: hourly ("HH:00"), daily ("YYYY-MM-DD") or weekly
            ("YYYY-Www", ISO week)
        timezone: Zone used to derive local periods
        subject_key: Subject of an event for `unique_subjects` (defaults to
            the sub-label; None subjects are not counted)

    Returns:
        Buckets sorted ascending by label
    """
    granularity = Granularity(granularity)
    tz = get_timezone(timezone)
    key = subject_key or (lambda e: e.sub_label)

    counts: dict[str, int] = {}
    starts: dict[str, float] = {}
    subjects: dict[str, set[str]] = {}
    cameras: dict[str, set[str]] = {}

    for event in events:
        label = _period_label(event.timestamp, granularity, tz)
        counts[label] = counts.get(label, 0) + 1
        starts[label] = min(starts.get(label, event.timestamp), event.timestamp)
        subject = key(event)
        if subject:
            subjects.setdefault(label, set()).add(subject)
        cameras.setdefault(label, set()).add(event.camera)

    return [
        TrendBucket(
            period_label=label,
            period_start=starts[label],
            count=counts[label],
            unique_subjects=len(subjects.get(label, ())),
            unique_cameras=len(cameras.get(label, ())),
        )
        for label in sorted(counts)
    ]


def compare_buckets(
    current: Sequence[TrendBucket], previous: Sequence[TrendBucket]
) -> TrendComparison:
    """Compare the bucket totals of two periods."""
    return compute_trend(
        float(sum(b.count for b in current)), float(sum(b.count for b in previous))
    )


def trend_insights(
    statistics: TrendStatistics,
    high_volatility: float = TrendConstants.HIGH_VOLATILITY_PERCENT,
) -> list[str]:
    """Human-readable observations about a bucket series."""
    insights = []
    if statistics.trend == "increasing":
        insights.append(f"Upward trend detected with {statistics.volatility}% volatility")
    elif statistics.trend == "decreasing":
        insights.append(f"Declining trend detected with {statistics.volatility}% volatility")
    if statistics.volatility > high_volatility:
        insights.append(
            f"High volatility detected ({statistics.volatility}%) - data may be inconsistent"
        )
    return insights
