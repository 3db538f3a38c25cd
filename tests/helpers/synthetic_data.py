"""
Synthetic test data generators for detection events.

Provides functions to generate controlled, reproducible timelines for unit
testing. All timestamps are unix seconds.
"""

import numpy as np

from shiftlens.constants import ClassType
from shiftlens.models.events import DetectionEvent, Recording

# 2024-01-15 00:00:00 UTC (a Monday)
BASE_TS = 1705276800.0
HOUR = 3600.0
MINUTE = 60.0

_counter = iter(range(1, 10**9))


def make_event(
    timestamp: float,
    *,
    camera: str = "office",
    label: str = "person",
    sub_label: str | None = None,
    zones: tuple[str, ...] | list[str] = (),
    class_type: ClassType | str = ClassType.OTHER,
    score: float | None = 0.9,
    source_id: str | None = None,
) -> DetectionEvent:
    """Build one DetectionEvent with sensible defaults."""
    return DetectionEvent(
        timestamp=timestamp,
        camera=camera,
        label=label,
        sub_label=sub_label,
        zones=tuple(zones),
        class_type=class_type,
        score=score,
        source_id=source_id or f"obj-{next(_counter)}",
    )


def entered(timestamp: float, employee: str, zone: str, camera: str = "office") -> DetectionEvent:
    return make_event(
        timestamp,
        camera=camera,
        sub_label=employee,
        zones=(zone,),
        class_type=ClassType.ENTERED_ZONE,
    )


def left(timestamp: float, employee: str, zone: str, camera: str = "office") -> DetectionEvent:
    return make_event(
        timestamp,
        camera=camera,
        sub_label=employee,
        zones=(zone,),
        class_type=ClassType.LEFT_ZONE,
    )


def seen(
    timestamp: float,
    employee: str | None,
    camera: str = "office",
    zones: tuple[str, ...] = (),
) -> DetectionEvent:
    return make_event(timestamp, camera=camera, sub_label=employee, zones=zones)


def phone(timestamp: float, employee: str | None = None, camera: str = "office") -> DetectionEvent:
    return make_event(timestamp, camera=camera, label="cell phone", sub_label=employee, score=0.8)


def generate_zone_visits(
    employee: str,
    zone: str,
    visits: list[tuple[float, float]],
    camera: str = "office",
    start: float = BASE_TS,
) -> list[DetectionEvent]:
    """
    Enter/leave pairs for one zone.

    Args:
        visits: (enter_offset, leave_offset) pairs in seconds from `start`
    """
    events = []
    for enter_at, leave_at in visits:
        events.append(entered(start + enter_at, employee, zone, camera))
        events.append(left(start + leave_at, employee, zone, camera))
    return events


def generate_random_timeline(
    employee: str,
    n_visits: int = 20,
    seed: int = 0,
    span: float = 10 * HOUR,
    start: float = BASE_TS,
    cameras: tuple[str, ...] = ("office", "hallway", "lobby"),
    zones: tuple[str, ...] = ("desk_1", "desk_2", "meeting_room", "break_area"),
    open_probability: float = 0.2,
) -> list[DetectionEvent]:
    """
    Random, possibly overlapping zone visits across cameras.

    Some visits have no matching leave event so they stay open until the
    window end.
    """
    rng = np.random.default_rng(seed)
    events = []
    for _ in range(n_visits):
        camera = str(rng.choice(cameras))
        zone = str(rng.choice(zones))
        enter_at = start + float(rng.uniform(0, span))
        duration = float(rng.uniform(MINUTE, 2 * HOUR))
        events.append(entered(enter_at, employee, zone, camera))
        if rng.random() >= open_probability:
            events.append(left(enter_at + duration, employee, zone, camera))
    return events


def generate_sequential_timeline(
    employee: str,
    n_visits: int = 20,
    seed: int = 0,
    start: float = BASE_TS,
    cameras: tuple[str, ...] = ("office", "hallway", "lobby"),
    zones: tuple[str, ...] = ("desk_1", "desk_2", "meeting_room", "break_area"),
    leave_last_open: bool = False,
) -> list[DetectionEvent]:
    """
    Random back-to-back zone visits that never overlap.

    Gaps between visits may be zero. Only the final visit can be left open.
    """
    rng = np.random.default_rng(seed)
    events = []
    cursor = start
    for i in range(n_visits):
        camera = str(rng.choice(cameras))
        zone = str(rng.choice(zones))
        cursor += float(rng.choice([0.0, rng.uniform(MINUTE, HOUR)]))
        duration = float(rng.uniform(MINUTE, 2 * HOUR))
        events.append(entered(cursor, employee, zone, camera))
        if not (leave_last_open and i == n_visits - 1):
            events.append(left(cursor + duration, employee, zone, camera))
        cursor += duration
    return events


def generate_office_day(start: float = BASE_TS) -> list[DetectionEvent]:
    """
    One office day plus a quieter previous day.

    Day of `start` (UTC):
        alice   desk_1 09:00-12:00 and 13:00-17:00, phone at 11:00
        bob     desk_2 from 10:00, never leaves
        carol   meeting_room 15:00-16:00
        unknown person on the lobby camera at 14:00
    Previous day:
        dave seen once at 10:00, two phone detections
    """
    events = generate_zone_visits(
        "alice", "desk_1", [(9 * HOUR, 12 * HOUR), (13 * HOUR, 17 * HOUR)], start=start
    )
    events.append(phone(start + 11 * HOUR, "alice"))
    events.append(entered(start + 10 * HOUR, "bob", "desk_2"))
    events += generate_zone_visits("carol", "meeting_room", [(15 * HOUR, 16 * HOUR)], start=start)
    events.append(seen(start + 14 * HOUR, None, camera="lobby"))

    previous = start - 24 * HOUR
    events.append(seen(previous + 10 * HOUR, "dave"))
    events.append(phone(previous + 11 * HOUR))
    events.append(phone(previous + 12 * HOUR))
    return events


def make_recording(start_time: float, camera: str = "office", duration: float = 10.0) -> Recording:
    return Recording(
        id=f"rec-{next(_counter)}",
        camera=camera,
        start_time=start_time,
        end_time=start_time + duration,
        duration=duration,
    )
