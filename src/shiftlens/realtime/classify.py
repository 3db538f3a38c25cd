"""Map detection rows to realtime events and evaluate subscription filters."""

from collections.abc import Iterable, Sequence
from typing import Any

from shiftlens.constants import ClassType, EventCategory
from shiftlens.models.events import DetectionEvent
from shiftlens.models.realtime import RealtimeEvent
from shiftlens.utils.timezones import to_iso


def _transition_name(prefix: str, class_type: ClassType) -> str:
    if class_type == ClassType.ENTERED_ZONE:
        return f"{prefix}_entered"
    if class_type == ClassType.LEFT_ZONE:
        return f"{prefix}_left"
    return f"{prefix}_detected"


def _base_data(event: DetectionEvent) -> dict[str, Any]:
    return {
        "timestamp": to_iso(event.timestamp),
        "unix_timestamp": event.timestamp,
        "camera": event.camera,
        "employee": event.sub_label,
        "zones": list(event.zones),
        "label": event.label,
        "source_id": event.source_id,
    }


def violation_event(event: DetectionEvent) -> RealtimeEvent:
    data = _base_data(event)
    data["confidence"] = event.score
    return RealtimeEvent(
        type=EventCategory.VIOLATIONS.value, event="cell_phone_detected", data=data
    )


def employee_event(event: DetectionEvent) -> RealtimeEvent:
    data = _base_data(event)
    data["event_type"] = event.class_type.value
    return RealtimeEvent(
        type=EventCategory.EMPLOYEE_ACTIVITY.value,
        event=_transition_name("employee", event.class_type),
        data=data,
    )


def zone_event(event: DetectionEvent) -> RealtimeEvent:
    data = _base_data(event)
    data["event_type"] = event.class_type.value
    return RealtimeEvent(
        type=EventCategory.ZONE_ACTIVITY.value,
        event=_transition_name("zone", event.class_type),
        data=data,
    )


def camera_activity_events(events: Iterable[DetectionEvent]) -> list[RealtimeEvent]:
    """
    One `camera_activity_update` per camera: row count, last activity and
    distinct identified employees. Ordered by last activity, newest first.
    """
    stats: dict[str, dict[str, Any]] = {}
    for event in events:
        entry = stats.setdefault(
            event.camera, {"count": 0, "last": event.timestamp, "employees": set()}
        )
        entry["count"] += 1
        entry["last"] = max(entry["last"], event.timestamp)
        if event.sub_label:
            entry["employees"].add(event.sub_label)

    ordered = sorted(stats.items(), key=lambda kv: kv[1]["last"], reverse=True)
    return [
        RealtimeEvent(
            type=EventCategory.CAMERA_ACTIVITY.value,
            event="camera_activity_update",
            data={
                "camera": camera,
                "event_count": entry["count"],
                "last_activity": to_iso(entry["last"]),
                "unix_timestamp": entry["last"],
                "unique_employees": len(entry["employees"]),
            },
        )
        for camera, entry in ordered
    ]


def matches_filter(event: RealtimeEvent, filters: dict[str, Any] | None) -> bool:
    """
    Evaluate a subscription filter against an event.

    Supported keys: camera, employee, label, zone, zones (any overlap).
    A key only constrains events whose data carries the corresponding field,
    and unknown keys are ignored.
    """
    if not filters:
        return True
    data = event.data

    for key in ("camera", "employee", "label"):
        expected = filters.get(key)
        if expected is None or key not in data:
            continue
        if data[key] != expected:
            return False

    if "zones" in data:
        zones: Sequence[str] = data["zones"] or []
        zone = filters.get("zone")
        if zone is not None and zone not in zones:
            return False
        wanted = filters.get("zones")
        if wanted:
            if isinstance(wanted, str):
                wanted = [wanted]
            if not set(wanted) & set(zones):
                return False

    return True
