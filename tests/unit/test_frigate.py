"""Tests for the Frigate database event source."""

import asyncio
import json

from unittest.mock import AsyncMock, Mock

import pytest

from sqlalchemy.exc import OperationalError

from shiftlens.config import DatabaseSettings
from shiftlens.constants import ClassType
from shiftlens.database.engine import create_engine
from shiftlens.database.frigate import (
    FrigateEventSource,
    build_event_query,
    build_recording_query,
    parse_recording_row,
    parse_timeline_row,
)
from shiftlens.exceptions import SourceQueryError, SourceTimeout
from shiftlens.models.events import EventFilter, RecordingFilter
from tests.helpers.synthetic_data import BASE_TS


def timeline_row(**data):
    return {
        "timestamp": BASE_TS,
        "camera": "office",
        "source_id": "1705276800.0-abc",
        "class_type": "entered_zone",
        "data": data,
    }


class TestParseTimelineRow:
    """Tests for decoding timeline rows."""

    def test_full_row(self):
        row = timeline_row(
            label="person",
            sub_label=["alice", 0.92],
            zones=["desk_1", "desk_1", "aisle"],
            score=0.87,
        )

        event = parse_timeline_row(row)

        assert event.timestamp == BASE_TS
        assert event.camera == "office"
        assert event.label == "person"
        assert event.sub_label == "alice"
        assert event.zones == ("desk_1", "aisle")
        assert event.class_type == ClassType.ENTERED_ZONE
        assert event.score == 0.87
        assert event.source_id == "1705276800.0-abc"

    def test_json_string_data(self):
        row = timeline_row()
        row["data"] = json.dumps({"label": "cell phone", "zones": []})

        event = parse_timeline_row(row)

        assert event.label == "cell phone"
        assert event.zones == ()

    def test_malformed_data(self, caplog):
        row = timeline_row()
        row["data"] = "{not json"

        event = parse_timeline_row(row)

        assert event.label == ""
        assert event.sub_label is None
        assert "malformed timeline data" in caplog.text

    @pytest.mark.parametrize(
        "sub_label,expected",
        [("  bob ", "bob"), ("", None), ([], None), (None, None), (["carol"], "carol")],
    )
    def test_sub_label_shapes(self, sub_label, expected):
        event = parse_timeline_row(timeline_row(label="person", sub_label=sub_label))

        assert event.sub_label == expected

    @pytest.mark.parametrize("score", [1.5, -0.1, "high"])
    def test_invalid_score_dropped(self, score):
        assert parse_timeline_row(timeline_row(score=score)).score is None

    def test_unknown_class_type_is_other(self):
        row = timeline_row()
        row["class_type"] = "visible"

        assert parse_timeline_row(row).class_type == ClassType.OTHER

    def test_scalar_zone(self):
        assert parse_timeline_row(timeline_row(zones="lobby")).zones == ("lobby",)

    def test_recording_without_duration(self):
        recording = parse_recording_row(
            {"id": 7, "camera": "office", "start_time": BASE_TS, "end_time": BASE_TS + 10}
        )

        assert recording.id == "7"
        assert recording.duration == 10.0


class TestQueryBuilding:
    """Tests for SQL construction."""

    def test_minimal_query(self):
        sql, params = build_event_query(EventFilter(start_time=1.0, end_time=2.0))

        assert "timestamp >= :start_time" in sql
        assert "timestamp <= :end_time" in sql
        assert sql.endswith("ORDER BY timestamp DESC LIMIT :limit")
        assert params == {"start_time": 1.0, "end_time": 2.0, "limit": 100}

    def test_all_predicates(self):
        sql, params = build_event_query(
            EventFilter(
                start_time=1.0,
                end_time=2.0,
                camera="office",
                label="person",
                sub_label="alice",
                class_type=ClassType.LEFT_ZONE,
                zone="desk_1",
                has_sub_label=True,
                has_zones=True,
                limit=None,
                ascending=True,
            )
        )

        assert params["camera"] == "office"
        assert params["label"] == "person"
        assert params["sub_label"] == "alice"
        assert params["class_type"] == "left_zone"
        assert params["zone"] == "desk_1"
        assert "IS NOT NULL" in sql
        assert "jsonb_array_length" in sql
        assert "ORDER BY timestamp ASC" in sql
        assert "LIMIT" not in sql
        assert "limit" not in params

    def test_selects_only_parsed_columns(self):
        sql, _ = build_event_query(EventFilter(start_time=1.0, end_time=2.0))

        assert sql.startswith("SELECT timestamp, camera, source_id, class_type, data FROM timeline")

    def test_class_types_become_in_list(self):
        sql, params = build_event_query(
            EventFilter(
                start_time=1.0,
                end_time=2.0,
                class_types=(ClassType.ENTERED_ZONE, ClassType.LEFT_ZONE),
            )
        )

        assert "class_type IN (:class_type_0, :class_type_1)" in sql
        assert params["class_type_0"] == "entered_zone"
        assert params["class_type_1"] == "left_zone"

    def test_empty_class_types_match_nothing(self):
        sql, _ = build_event_query(EventFilter(start_time=1.0, end_time=2.0, class_types=()))

        assert "FALSE" in sql

    def test_values_are_never_interpolated(self):
        sql, _ = build_event_query(
            EventFilter(start_time=1.0, end_time=2.0, camera="x'; DROP TABLE timeline; --")
        )

        assert "DROP" not in sql

    def test_recording_query(self):
        sql, params = build_recording_query(
            RecordingFilter(start_time=1.0, end_time=2.0, camera="office", limit=5)
        )

        assert "FROM recordings" in sql
        assert params == {"start_time": 1.0, "end_time": 2.0, "camera": "office", "limit": 5}


class TestFrigateEventSource:
    """Tests for query execution with a stubbed connection layer."""

    @pytest.fixture
    def source(self):
        engine = Mock()
        engine.dispose = AsyncMock()
        return FrigateEventSource(engine, timeout=0.05)

    def test_query_events_parses_rows(self, source):
        source._fetch = AsyncMock(return_value=[timeline_row(label="person", sub_label=["alice", 0.9])])

        events = asyncio.run(source.query_events(EventFilter(start_time=0, end_time=BASE_TS)))

        assert [e.sub_label for e in events] == ["alice"]
        sql, params = source._fetch.await_args.args
        assert "FROM timeline" in sql
        assert params["end_time"] == BASE_TS

    def test_timeout(self, source):
        async def slow(sql, params):
            await asyncio.sleep(1)
            return []

        source._fetch = slow

        with pytest.raises(SourceTimeout) as exc_info:
            asyncio.run(source.query_events(EventFilter(start_time=0, end_time=1)))

        assert exc_info.value.timeout == 0.05

    def test_database_error(self, source):
        source._fetch = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone")))

        with pytest.raises(SourceQueryError, match="Database query failed"):
            asyncio.run(source.query_events(EventFilter(start_time=0, end_time=1)))

    def test_check_connection(self, source):
        source._fetch = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("gone")))

        assert asyncio.run(source.check_connection()) is False

    def test_list_cameras(self, source):
        source._fetch = AsyncMock(return_value=[{"camera": "lobby"}, {"camera": "office"}])

        assert asyncio.run(source.list_cameras()) == ["lobby", "office"]

    def test_close_disposes_engine(self, source):
        asyncio.run(source.close())

        source.engine.dispose.assert_awaited_once()


class TestEngine:
    def test_invalid_url(self):
        with pytest.raises(ValueError, match="Invalid database URL"):
            create_engine(DatabaseSettings(url="not a url"))

    def test_from_settings(self):
        settings = DatabaseSettings(query_timeout_seconds=3)

        source = FrigateEventSource.from_settings(settings)

        assert source.timeout == 3
        assert source.engine.url.drivername == "postgresql+asyncpg"
