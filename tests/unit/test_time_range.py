"""Tests for time range resolution."""

from datetime import datetime, timezone

import pytest

from shiftlens.exceptions import InvalidDateFormat
from shiftlens.models.time_range import TimeRange
from shiftlens.utils.time_range import resolve_time_range
from tests.helpers.synthetic_data import BASE_TS, HOUR

NOW = BASE_TS + 12 * HOUR


def utc(*args) -> float:
    return datetime(*args, tzinfo=timezone.utc).timestamp()


class TestDefaults:
    """Tests for the fallback windows."""

    def test_no_parameters_gives_last_24_hours(self):
        result = resolve_time_range(now=NOW)

        assert result.end == NOW
        assert result.start == NOW - 24 * HOUR
        assert result.timezone == "UTC"

    def test_hours_lookback(self):
        result = resolve_time_range(hours=8, now=NOW)

        assert result.start == NOW - 8 * HOUR
        assert result.end == NOW

    @pytest.mark.parametrize("hours", [0, -3, True])
    def test_invalid_hours_fall_back_to_24_hours(self, hours):
        result = resolve_time_range(hours=hours, now=NOW)

        assert result.start == NOW - 24 * HOUR

    def test_dates_take_precedence_over_hours(self):
        result = resolve_time_range(
            start_date="2024-01-14", end_date="2024-01-14", hours=2, now=NOW
        )

        assert result.start == utc(2024, 1, 14)


class TestDateExpansion:
    """Tests for date-only values."""

    def test_single_day_expands_to_full_day(self):
        result = resolve_time_range(
            start_date="2025-10-02", end_date="2025-10-02", timezone="UTC"
        )

        assert result.start == utc(2025, 10, 2)
        assert result.end == pytest.approx(utc(2025, 10, 2, 23, 59, 59, 999000))

    def test_start_date_only_runs_until_now(self):
        result = resolve_time_range(start_date="2024-01-15", now=NOW)

        assert result.start == BASE_TS
        assert result.end == NOW

    def test_end_date_only_starts_24_hours_before_now(self):
        result = resolve_time_range(end_date="2024-01-15", now=NOW)

        assert result.start == NOW - 24 * HOUR
        assert result.end == pytest.approx(BASE_TS + 24 * HOUR - 0.001)

    def test_old_end_date_only_keeps_a_full_day(self):
        result = resolve_time_range(end_date="2024-01-10", now=NOW)

        assert result.end == pytest.approx(utc(2024, 1, 10, 23, 59, 59, 999000))
        assert result.start == pytest.approx(result.end - 24 * HOUR)

    def test_single_day_in_named_timezone(self):
        result = resolve_time_range(
            start_date="2024-01-15", end_date="2024-01-15", timezone="Asia/Karachi"
        )

        # PKT is UTC+5 with no DST
        assert result.start == utc(2024, 1, 14, 19)
        assert result.timezone == "Asia/Karachi"

    def test_abbreviation_is_normalized(self):
        result = resolve_time_range(start_date="2024-01-15", end_date="2024-01-15", timezone="EST")

        assert result.timezone == "America/New_York"
        assert result.start == utc(2024, 1, 15, 5)

    def test_spring_forward_day_is_23_hours(self):
        result = resolve_time_range(
            start_date="2024-03-10", end_date="2024-03-10", timezone="America/New_York"
        )

        assert result.duration_seconds + 0.001 == pytest.approx(23 * HOUR)

    def test_fall_back_day_is_25_hours(self):
        result = resolve_time_range(
            start_date="2024-11-03", end_date="2024-11-03", timezone="America/New_York"
        )

        assert result.duration_seconds + 0.001 == pytest.approx(25 * HOUR)


class TestDateTimes:
    """Tests for values with a time component."""

    def test_naive_datetime_uses_requested_timezone(self):
        result = resolve_time_range(
            start_date="2024-01-15T09:30:00",
            end_date="2024-01-15T17:00:00",
            timezone="America/New_York",
        )

        assert result.start == utc(2024, 1, 15, 14, 30)
        assert result.end == utc(2024, 1, 15, 22, 0)

    def test_explicit_offset_is_kept(self):
        result = resolve_time_range(
            start_date="2024-01-15T09:00:00+00:00",
            end_date="2024-01-15T10:00:00Z",
            timezone="Asia/Tokyo",
        )

        assert result.start == utc(2024, 1, 15, 9)
        assert result.end == utc(2024, 1, 15, 10)


class TestFailures:
    """Tests for invalid input."""

    def test_invalid_timezone_falls_back_to_utc(self, caplog):
        result = resolve_time_range(
            start_date="2024-01-15", end_date="2024-01-15", timezone="Mars/Olympus_Mons"
        )

        assert result.timezone == "UTC"
        assert result.start == BASE_TS
        assert "Mars/Olympus_Mons" in caplog.text

    @pytest.mark.parametrize("value", ["not-a-date", "2024-13-45", "15/01/2024"])
    def test_unparseable_date_raises(self, value):
        with pytest.raises(InvalidDateFormat) as exc_info:
            resolve_time_range(start_date=value, now=NOW)

        assert exc_info.value.value == value

    def test_inverted_range_raises(self):
        with pytest.raises(InvalidDateFormat):
            resolve_time_range(start_date="2024-01-16", end_date="2024-01-15")

    def test_invalid_date_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_time_range(start_date="garbage")


class TestTimeRangeModel:
    """Tests for the TimeRange model."""

    def test_previous_window_has_equal_length(self):
        window = TimeRange(start=BASE_TS, end=BASE_TS + 8 * HOUR)

        previous = window.previous()

        assert previous.end == window.start
        assert previous.duration_seconds == window.duration_seconds

    def test_contains_is_inclusive(self):
        window = TimeRange(start=BASE_TS, end=BASE_TS + HOUR)

        assert window.contains(BASE_TS)
        assert window.contains(BASE_TS + HOUR)
        assert not window.contains(BASE_TS + HOUR + 0.001)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            TimeRange(start=BASE_TS + 1, end=BASE_TS)
