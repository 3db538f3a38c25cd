"""Tests for activity pattern analysis."""

import pytest

from shiftlens.analysis.patterns import (
    ActivityPatternAnalyzer,
    peak_hours,
    period_preference,
    work_style,
)
from shiftlens.models.time_range import TimeRange
from tests.helpers.synthetic_data import BASE_TS, HOUR, seen


def hourly(**counts):
    values = [0] * 24
    for hour, count in counts.items():
        values[int(hour.lstrip("h"))] = count
    return values


@pytest.fixture
def analyzer():
    return ActivityPatternAnalyzer()


@pytest.fixture
def day():
    return TimeRange(start=BASE_TS, end=BASE_TS + 24 * HOUR)


class TestClassification:
    @pytest.mark.parametrize(
        "counts,expected",
        [
            (hourly(h7=3, h14=1), "morning_person"),
            (hourly(h13=2, h9=1), "afternoon_person"),
            (hourly(h20=2), "evening_person"),
            (hourly(h10=1, h14=1), "balanced"),
            (hourly(h3=4), "unknown"),
        ],
    )
    def test_period_preference(self, counts, expected):
        assert period_preference(counts) == expected

    @pytest.mark.parametrize(
        "counts,expected",
        [
            (hourly(h6=2, h10=1), "early_bird"),
            (hourly(h22=3, h10=1), "night_owl"),
            (hourly(h10=3), "regular_schedule"),
            ([0] * 24, "unknown"),
        ],
    )
    def test_work_style(self, counts, expected):
        assert work_style(counts) == expected

    def test_peak_hours_ties_go_to_earlier_hour(self):
        peaks = peak_hours(hourly(h9=2, h11=2, h14=5, h16=1))

        assert [(p.hour, p.count) for p in peaks] == [(14, 5), (9, 2), (11, 2)]


class TestAnalyzer:
    """Tests for employee and zone profiles."""

    def test_employee_profile(self, analyzer, day):
        events = [
            seen(BASE_TS + 7 * HOUR, "alice"),
            seen(BASE_TS + 7.5 * HOUR, "alice"),
            seen(BASE_TS + 8 * HOUR, "alice", camera="lobby"),
        ]

        report = analyzer.analyze(events, day)

        alice = report.employees[0]
        assert alice.subject == "alice"
        assert alice.total_activity == 3
        assert alice.hourly[7] == 2
        assert alice.peak_hours[0].hour == 7
        assert alice.most_active_day == "Monday"
        assert alice.daily[1] == 3
        assert alice.period_preference == "morning_person"
        assert alice.work_style == "early_bird"
        assert alice.camera_diversity == 2
        assert alice.consistency == 67.0

    def test_hours_are_local(self, analyzer):
        window = TimeRange(start=BASE_TS, end=BASE_TS + 24 * HOUR, timezone="America/New_York")

        report = analyzer.analyze([seen(BASE_TS + 2 * HOUR, "alice")], window)

        # 02:00 UTC Monday is 21:00 Sunday in New York
        assert report.employees[0].hourly[21] == 1
        assert report.employees[0].most_active_day == "Sunday"

    def test_zone_profiles_count_each_zone(self, analyzer, day):
        events = [seen(BASE_TS + 9 * HOUR, "alice", zones=("desk_1", "open_floor"))]

        report = analyzer.analyze(events, day)

        assert [z.subject for z in report.zones] == ["office/desk_1", "office/open_floor"]

    def test_insights(self, analyzer, day):
        events = [
            seen(BASE_TS + 7 * HOUR, "alice"),
            seen(BASE_TS + 8 * HOUR, "alice"),
            seen(BASE_TS + 20 * HOUR, "bob"),
        ]

        insights = analyzer.analyze(events, day).insights

        assert insights.total_subjects == 2
        assert insights.most_active == "alice"
        assert insights.average_activity == 1.5
        assert insights.period_distribution == {"morning_person": 1, "evening_person": 1}
        assert insights.work_style_distribution == {"early_bird": 1, "night_owl": 1}

    def test_empty(self, analyzer, day):
        report = analyzer.analyze([], day)

        assert report.employees == []
        assert report.insights.total_subjects == 0
        assert report.insights.most_active is None
