"""Timezone utilities backed by the IANA database (zoneinfo)."""

import logging

from datetime import datetime, timezone as dt_timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shiftlens.constants import COMMON_TIMEZONES, DEFAULT_TIMEZONE
from shiftlens.exceptions import InvalidTimezone

logger = logging.getLogger(__name__)


def normalize_timezone(name: str | None) -> str:
    """
    Map an abbreviation (EST, PKT, ...) to its IANA name.

    Unknown names are returned unchanged; None maps to UTC.
    """
    if not name:
        return DEFAULT_TIMEZONE
    return COMMON_TIMEZONES.get(name.upper(), name)


def is_valid_timezone(name: str | None) -> bool:
    """Check whether a name is a known abbreviation or IANA zone."""
    if not name:
        return False
    try:
        ZoneInfo(normalize_timezone(name))
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def get_timezone(name: str | None, *, strict: bool = False) -> ZoneInfo:
    """
    Resolve a timezone name to a ZoneInfo.

    Args:
        name: IANA name or common abbreviation
        strict: Raise instead of falling back to UTC

    Returns:
        ZoneInfo for the zone, or UTC when the name is unknown and not strict

    Raises:
        InvalidTimezone: If strict and the name is unknown
    """
    iana = normalize_timezone(name)
    try:
        return ZoneInfo(iana)
    except (ZoneInfoNotFoundError, ValueError):
        if strict:
            raise InvalidTimezone(str(name)) from None
        logger.warning(f"Unknown timezone '{name}', falling back to UTC")
        return ZoneInfo(DEFAULT_TIMEZONE)


def to_local_datetime(timestamp: float, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> datetime:
    """Convert a unix timestamp to an aware datetime in the given zone."""
    zone = tz if isinstance(tz, ZoneInfo) else get_timezone(tz)
    return datetime.fromtimestamp(timestamp, tz=dt_timezone.utc).astimezone(zone)


def to_iso(timestamp: float | None, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> str | None:
    """Format a unix timestamp as ISO 8601 with millisecond precision and offset."""
    if timestamp is None:
        return None
    return to_local_datetime(timestamp, tz).isoformat(timespec="milliseconds")


def to_readable(timestamp: float, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> str:
    """Format a unix timestamp as e.g. 'Jan 15, 2024 09:30:00'."""
    return to_local_datetime(timestamp, tz).strftime("%b %d, %Y %H:%M:%S")


def timezone_info(name: str | None = DEFAULT_TIMEZONE, now: float | None = None) -> dict[str, Any]:
    """
    Describe a timezone at a given instant.

    Returns:
        Dictionary with timezone, offset ("+05:00"), offset_minutes, is_dst,
        current_time and abbreviation
    """
    zone = get_timezone(name)
    if now is None:
        current = datetime.now(tz=zone)
    else:
        current = to_local_datetime(now, zone)

    offset = current.utcoffset()
    offset_minutes = int(offset.total_seconds() // 60) if offset else 0
    dst = current.dst()
    sign = "+" if offset_minutes >= 0 else "-"
    hours, minutes = divmod(abs(offset_minutes), 60)

    return {
        "timezone": zone.key,
        "offset": f"{sign}{hours:02d}:{minutes:02d}",
        "offset_minutes": offset_minutes,
        "is_dst": bool(dst),
        "current_time": current.strftime("%Y-%m-%d %H:%M:%S"),
        "abbreviation": current.tzname(),
    }


def common_timezones(now: float | None = None) -> list[dict[str, Any]]:
    """List the supported abbreviations with their IANA names and current offsets."""
    result = []
    for abbreviation, iana in COMMON_TIMEZONES.items():
        info = timezone_info(iana, now)
        result.append(
            {
                "abbreviation": abbreviation,
                "iana": iana,
                "name": iana.replace("_", " "),
                "offset": info["offset"],
                "current_time": info["current_time"],
            }
        )
    return result
