"""Tests for timezone utilities."""

import pytest

from shiftlens.constants import COMMON_TIMEZONES
from shiftlens.exceptions import InvalidTimezone
from shiftlens.utils.timezones import (
    common_timezones,
    get_timezone,
    is_valid_timezone,
    normalize_timezone,
    timezone_info,
    to_iso,
    to_local_datetime,
)
from tests.helpers.synthetic_data import BASE_TS

# 2024-07-15 12:00:00 UTC
SUMMER_TS = 1721044800.0


class TestNormalization:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("EST", "America/New_York"),
            ("est", "America/New_York"),
            ("PKT", "Asia/Karachi"),
            ("Europe/Berlin", "Europe/Berlin"),
            (None, "UTC"),
            ("", "UTC"),
        ],
    )
    def test_normalize(self, name, expected):
        assert normalize_timezone(name) == expected

    def test_validity(self):
        assert is_valid_timezone("PST")
        assert is_valid_timezone("Australia/Sydney")
        assert not is_valid_timezone("Nowhere/Special")
        assert not is_valid_timezone(None)


class TestGetTimezone:
    def test_unknown_falls_back_to_utc(self):
        assert get_timezone("Nowhere/Special").key == "UTC"

    def test_strict_raises(self):
        with pytest.raises(InvalidTimezone) as exc_info:
            get_timezone("Nowhere/Special", strict=True)

        assert exc_info.value.timezone == "Nowhere/Special"


class TestFormatting:
    def test_iso_in_utc(self):
        assert to_iso(BASE_TS) == "2024-01-15T00:00:00.000+00:00"

    def test_iso_in_zone(self):
        assert to_iso(BASE_TS, "Asia/Kolkata") == "2024-01-15T05:30:00.000+05:30"

    def test_iso_of_none(self):
        assert to_iso(None) is None

    def test_local_datetime_hour(self):
        assert to_local_datetime(BASE_TS, "America/Los_Angeles").hour == 16


class TestTimezoneInfo:
    def test_fixed_offset_zone(self):
        info = timezone_info("Asia/Kolkata", now=BASE_TS)

        assert info["timezone"] == "Asia/Kolkata"
        assert info["offset"] == "+05:30"
        assert info["offset_minutes"] == 330
        assert info["is_dst"] is False

    def test_dst_in_summer(self):
        info = timezone_info("EST", now=SUMMER_TS)

        assert info["timezone"] == "America/New_York"
        assert info["offset"] == "-04:00"
        assert info["is_dst"] is True
        assert info["abbreviation"] == "EDT"

    def test_no_dst_in_winter(self):
        info = timezone_info("America/New_York", now=BASE_TS)

        assert info["offset"] == "-05:00"
        assert info["is_dst"] is False

    def test_common_timezones_lists_every_abbreviation(self):
        listed = common_timezones(now=BASE_TS)

        assert [z["abbreviation"] for z in listed] == list(COMMON_TIMEZONES)
        assert all(z["offset"][0] in "+-" for z in listed)
