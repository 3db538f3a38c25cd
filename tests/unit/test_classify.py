"""Tests for realtime event mapping and filter evaluation."""

import pytest

from shiftlens.models.realtime import RealtimeEvent
from shiftlens.realtime.classify import (
    camera_activity_events,
    employee_event,
    matches_filter,
    violation_event,
    zone_event,
)
from tests.helpers.synthetic_data import BASE_TS, entered, left, phone, seen


class TestMapping:
    def test_violation(self):
        event = violation_event(phone(BASE_TS, "alice"))

        assert event.type == "violations"
        assert event.event == "cell_phone_detected"
        assert event.data["confidence"] == 0.8
        assert event.data["employee"] == "alice"
        assert event.data["timestamp"] == "2024-01-15T00:00:00.000+00:00"

    @pytest.mark.parametrize(
        "row,name",
        [
            (entered(BASE_TS, "alice", "desk_1"), "employee_entered"),
            (left(BASE_TS, "alice", "desk_1"), "employee_left"),
            (seen(BASE_TS, "alice"), "employee_detected"),
        ],
    )
    def test_employee_event_names(self, row, name):
        event = employee_event(row)

        assert event.type == "employee_activity"
        assert event.event == name

    def test_zone_event_carries_source_id(self):
        row = entered(BASE_TS, "alice", "desk_1")

        event = zone_event(row)

        assert event.event == "zone_entered"
        assert event.data["zones"] == ["desk_1"]
        assert event.data["source_id"] == row.source_id
        assert event.data["event_type"] == "entered_zone"

    def test_camera_activity_aggregates_per_camera(self):
        rows = [
            seen(BASE_TS, "alice", camera="office"),
            seen(BASE_TS + 5, "bob", camera="office"),
            seen(BASE_TS + 7, None, camera="office"),
            seen(BASE_TS + 9, "alice", camera="lobby"),
        ]

        events = camera_activity_events(rows)

        assert [e.data["camera"] for e in events] == ["lobby", "office"]
        office = events[1].data
        assert office["event_count"] == 3
        assert office["unique_employees"] == 2
        assert office["unix_timestamp"] == BASE_TS + 7
        assert all(e.event == "camera_activity_update" for e in events)


class TestMatchesFilter:
    """Tests for subscription filter evaluation."""

    @pytest.fixture
    def event(self):
        return employee_event(seen(BASE_TS, "alice", camera="office", zones=("desk_1", "aisle")))

    def test_empty_filter_matches(self, event):
        assert matches_filter(event, {})
        assert matches_filter(event, None)

    @pytest.mark.parametrize(
        "filters,expected",
        [
            ({"camera": "office"}, True),
            ({"camera": "lobby"}, False),
            ({"employee": "alice"}, True),
            ({"employee": "bob"}, False),
            ({"label": "person"}, True),
            ({"zone": "desk_1"}, True),
            ({"zone": "desk_9"}, False),
            ({"zones": ["desk_9", "aisle"]}, True),
            ({"zones": ["desk_9"]}, False),
            ({"zones": "aisle"}, True),
            ({"camera": "office", "employee": "bob"}, False),
            ({"unknown_key": 1}, True),
        ],
    )
    def test_keys(self, event, filters, expected):
        assert matches_filter(event, filters) is expected

    def test_absent_field_does_not_constrain(self):
        update = RealtimeEvent(
            type="camera_activity", event="camera_activity_update", data={"camera": "office"}
        )

        assert matches_filter(update, {"camera": "office", "employee": "alice", "zone": "x"})
        assert not matches_filter(update, {"camera": "lobby"})
