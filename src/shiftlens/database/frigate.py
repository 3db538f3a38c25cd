"""
Event source backed by Frigate's PostgreSQL database.

Reads the `timeline` and `recordings` tables with parameterized SQL and turns
the JSON `data` column into typed DetectionEvents. All access is read-only.
"""

import asyncio
import json
import logging

from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from shiftlens.config import DatabaseSettings
from shiftlens.constants import DEFAULT_QUERY_TIMEOUT_SECONDS
from shiftlens.database.engine import create_engine
from shiftlens.exceptions import SourceQueryError, SourceTimeout
from shiftlens.models.events import DetectionEvent, EventFilter, Recording, RecordingFilter

logger = logging.getLogger(__name__)

# Employee identity is the first element of the sub_label pair
_SUB_LABEL = "data->'sub_label'->>0"


def _load_data(raw: Any) -> dict[str, Any]:
    """Decode the timeline `data` column (jsonb arrives as dict or str)."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Skipping malformed timeline data: {raw!r:.80}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _sub_label(value: Any) -> str | None:
    # Frigate stores [name, score]; older rows hold a bare string
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    name = str(value).strip()
    return name or None


def parse_timeline_row(row: Mapping[str, Any]) -> DetectionEvent:
    """
    Convert one `timeline` row into a DetectionEvent.

    Args:
        row: Mapping with timestamp, camera, source_id, class_type and data

    Returns:
        DetectionEvent
    """
    data = _load_data(row.get("data"))
    zones = data.get("zones") or []
    if not isinstance(zones, (list, tuple)):
        zones = [zones]

    score = data.get("score")
    try:
        score = float(score) if score is not None else None
    except (TypeError, ValueError):
        score = None
    if score is not None and not 0.0 <= score <= 1.0:
        score = None

    return DetectionEvent(
        timestamp=float(row["timestamp"]),
        camera=row["camera"],
        label=str(data.get("label") or ""),
        sub_label=_sub_label(data.get("sub_label")),
        zones=zones,
        class_type=row.get("class_type"),
        score=score,
        source_id=row.get("source_id"),
    )


def parse_recording_row(row: Mapping[str, Any]) -> Recording:
    start = float(row["start_time"])
    end = float(row["end_time"])
    duration = row.get("duration")
    return Recording(
        id=str(row["id"]) if row.get("id") is not None else None,
        camera=row["camera"],
        start_time=start,
        end_time=end,
        duration=float(duration) if duration is not None else max(end - start, 0.0),
    )


def build_event_query(filters: EventFilter) -> tuple[str, dict[str, Any]]:
    """
    Build the SQL and bind parameters for a timeline query.

    The time filter is inclusive at both ends.
    """
    conditions = ["timestamp >= :start_time", "timestamp <= :end_time"]
    params: dict[str, Any] = {
        "start_time": filters.start_time,
        "end_time": filters.end_time,
    }

    if filters.camera:
        conditions.append("camera = :camera")
        params["camera"] = filters.camera
    if filters.label:
        conditions.append("data->>'label' = :label")
        params["label"] = filters.label
    if filters.sub_label:
        conditions.append(f"{_SUB_LABEL} = :sub_label")
        params["sub_label"] = filters.sub_label
    if filters.class_type is not None:
        conditions.append("class_type = :class_type")
        params["class_type"] = filters.class_type.value
    if filters.class_types is not None:
        names = [f"class_type_{i}" for i in range(len(filters.class_types))]
        if names:
            conditions.append(f"class_type IN ({', '.join(':' + n for n in names)})")
        else:
            conditions.append("FALSE")
        params.update(zip(names, (c.value for c in filters.class_types)))
    if filters.zone:
        conditions.append("data->'zones' @> jsonb_build_array(CAST(:zone AS text))")
        params["zone"] = filters.zone
    if filters.has_sub_label:
        conditions.append(f"{_SUB_LABEL} IS NOT NULL")
    if filters.has_zones:
        conditions.append("jsonb_array_length(COALESCE(data->'zones', CAST('[]' AS jsonb))) > 0")

    order = "ASC" if filters.ascending else "DESC"
    sql = (
        "SELECT timestamp, camera, source_id, class_type, data "
        f"FROM timeline WHERE {' AND '.join(conditions)} "
        f"ORDER BY timestamp {order}"
    )
    if filters.limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = filters.limit
    return sql, params


def build_recording_query(filters: RecordingFilter) -> tuple[str, dict[str, Any]]:
    """Build the SQL and bind parameters for a recordings query."""
    conditions = ["start_time >= :start_time", "end_time <= :end_time"]
    params: dict[str, Any] = {
        "start_time": filters.start_time,
        "end_time": filters.end_time,
    }
    if filters.camera:
        conditions.append("camera = :camera")
        params["camera"] = filters.camera

    sql = (
        "SELECT id, camera, start_time, end_time, duration FROM recordings "
        f"WHERE {' AND '.join(conditions)} ORDER BY start_time DESC"
    )
    if filters.limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = filters.limit
    return sql, params


class FrigateEventSource:
    """
    EventSource over a Frigate PostgreSQL database.

    Every query runs in its own read-only transaction and is bounded by
    `timeout` seconds.
    """

    def __init__(self, engine: AsyncEngine, timeout: float = DEFAULT_QUERY_TIMEOUT_SECONDS):
        self.engine = engine
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "FrigateEventSource":
        """Create an engine for the configured URL and wrap it."""
        return cls(create_engine(settings), timeout=settings.query_timeout_seconds)

    async def _fetch(self, sql: str, params: dict[str, Any]) -> list[Mapping[str, Any]]:
        async with self.engine.connect() as conn:
            await conn.execute(text("SET TRANSACTION READ ONLY"))
            result = await conn.execute(text(sql), params)
            rows = [dict(row._mapping) for row in result]
            await conn.rollback()
        return rows

    async def _query(self, sql: str, params: dict[str, Any]) -> list[Mapping[str, Any]]:
        try:
            rows = await asyncio.wait_for(self._fetch(sql, params), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Query exceeded {self.timeout}s: {sql}")
            raise SourceTimeout(
                f"Query exceeded {self.timeout}s deadline", timeout=self.timeout
            ) from None
        except SQLAlchemyError as e:
            logger.error(f"Database query error: {e}")
            raise SourceQueryError(f"Database query failed: {e}") from e

        logger.debug(f"Executed query ({len(rows)} rows): {sql}")
        return rows

    async def query_events(self, filters: EventFilter) -> list[DetectionEvent]:
        sql, params = build_event_query(filters)
        rows = await self._query(sql, params)
        return [parse_timeline_row(row) for row in rows]

    async def query_recordings(self, filters: RecordingFilter) -> list[Recording]:
        sql, params = build_recording_query(filters)
        rows = await self._query(sql, params)
        return [parse_recording_row(row) for row in rows]

    async def list_cameras(self) -> list[str]:
        rows = await self._query("SELECT DISTINCT camera FROM recordings ORDER BY camera", {})
        return [row["camera"] for row in rows]

    async def check_connection(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            await self._query("SELECT 1", {})
        except SourceQueryError:
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Frigate database engine disposed")
