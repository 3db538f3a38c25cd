"""Tests for the trend and statistics engine."""

import pytest

from shiftlens.analysis.trends import (
    bucket_events,
    compare_buckets,
    compute_statistics,
    compute_trend,
    trend_insights,
)
from shiftlens.constants import Granularity
from shiftlens.models.trends import TrendBucket, TrendStatistics
from tests.helpers.synthetic_data import BASE_TS, HOUR, seen

DAY = 24 * HOUR


class TestComputeTrend:
    @pytest.mark.parametrize(
        "current,previous,percent,direction",
        [
            (150, 100, 50.0, "up"),
            (80, 100, -20.0, "down"),
            (100, 100, 0.0, "stable"),
            (0, 0, 0.0, "stable"),
            (50, 0, 0.0, "up"),
            (1, 3, -66.67, "down"),
        ],
    )
    def test_comparison(self, current, previous, percent, direction):
        result = compute_trend(current, previous)

        assert result.change == current - previous
        assert result.change_percent == percent
        assert result.direction == direction


class TestComputeStatistics:
    """Tests for bucket series statistics."""

    def test_empty_series(self):
        stats = compute_statistics([])

        assert stats == TrendStatistics()
        assert stats.trend == "stable"

    def test_increasing_series(self):
        stats = compute_statistics([10, 10, 20, 20])

        assert stats.total == 60
        assert stats.mean == 15
        assert stats.min == 10
        assert stats.max == 20
        assert stats.trend == "increasing"
        assert stats.volatility == pytest.approx(33.33)

    def test_decreasing_series(self):
        assert compute_statistics([20, 20, 10, 10]).trend == "decreasing"

    def test_change_within_threshold_is_stable(self):
        assert compute_statistics([100, 105]).trend == "stable"

    def test_single_value(self):
        stats = compute_statistics([7])

        assert stats.trend == "stable"
        assert stats.volatility == 0.0
        assert stats.mean == 7

    def test_all_zero_series(self):
        stats = compute_statistics([0, 0, 0])

        assert stats.volatility == 0.0
        assert stats.trend == "stable"

    def test_accepts_buckets(self):
        buckets = [TrendBucket(period_label="09:00", count=2), TrendBucket(period_label="10:00", count=4)]

        assert compute_statistics(buckets).total == 6


class TestBucketEvents:
    """Tests for period bucketing."""

    def test_hourly_labels(self):
        events = [
            seen(BASE_TS + 10 * HOUR, "alice"),
            seen(BASE_TS + 9 * HOUR, "alice"),
            seen(BASE_TS + 9.5 * HOUR, "bob"),
        ]

        buckets = bucket_events(events, Granularity.HOURLY)

        assert [b.period_label for b in buckets] == ["09:00", "10:00"]
        assert [b.count for b in buckets] == [2, 1]
        assert buckets[0].unique_subjects == 2
        assert buckets[0].period_start == BASE_TS + 9 * HOUR

    def test_hourly_folds_days_together(self):
        events = [seen(BASE_TS + 9 * HOUR, "alice"), seen(BASE_TS + DAY + 9 * HOUR, "alice")]

        buckets = bucket_events(events, "hourly")

        assert len(buckets) == 1
        assert buckets[0].count == 2
        assert buckets[0].unique_subjects == 1

    def test_daily_labels(self):
        events = [seen(BASE_TS + 9 * HOUR, "alice"), seen(BASE_TS + DAY + 9 * HOUR, "alice")]

        buckets = bucket_events(events, "daily")

        assert [b.period_label for b in buckets] == ["2024-01-15", "2024-01-16"]

    def test_weekly_labels_use_iso_weeks(self):
        events = [
            seen(BASE_TS, "alice"),
            seen(BASE_TS + 6 * DAY, "alice"),
            seen(BASE_TS + 7 * DAY, "alice"),
        ]

        buckets = bucket_events(events, "weekly")

        assert [(b.period_label, b.count) for b in buckets] == [("2024-W03", 2), ("2024-W04", 1)]

    def test_labels_follow_timezone(self):
        buckets = bucket_events([seen(BASE_TS, "alice")], "hourly", timezone="Asia/Tokyo")

        assert buckets[0].period_label == "09:00"

    def test_unidentified_not_counted_as_subjects(self):
        buckets = bucket_events([seen(BASE_TS, None), seen(BASE_TS, None)], "hourly")

        assert buckets[0].count == 2
        assert buckets[0].unique_subjects == 0
        assert buckets[0].unique_cameras == 1

    def test_invalid_granularity_rejected(self):
        with pytest.raises(ValueError):
            bucket_events([], "monthly")


class TestComparisonAndInsights:
    def test_compare_bucket_totals(self):
        current = [TrendBucket(period_label="09:00", count=90), TrendBucket(period_label="10:00", count=60)]
        previous = [TrendBucket(period_label="09:00", count=100)]

        result = compare_buckets(current, previous)

        assert result.change_percent == 50.0
        assert result.direction == "up"

    def test_upward_trend_insight(self):
        insights = trend_insights(compute_statistics([10, 10, 20, 20]))

        assert insights == ["Upward trend detected with 33.33% volatility"]

    def test_high_volatility_insight(self):
        insights = trend_insights(TrendStatistics(volatility=75.0))

        assert len(insights) == 1
        assert "High volatility" in insights[0]

    def test_no_insights_for_flat_series(self):
        assert trend_insights(compute_statistics([5, 5, 5, 5])) == []
