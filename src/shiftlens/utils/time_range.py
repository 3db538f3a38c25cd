"""Resolve user-supplied date/hour parameters into a canonical TimeRange."""

import logging
import re
import time

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from shiftlens.constants import DEFAULT_TIMEZONE, SECONDS_PER_DAY, SECONDS_PER_HOUR
from shiftlens.exceptions import InvalidDateFormat, InvalidTimezone
from shiftlens.models.time_range import TimeRange
from shiftlens.utils.timezones import get_timezone

logger = logging.getLogger(__name__)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Inclusive end of a calendar day
_END_OF_DAY = timedelta(days=1, microseconds=-1000)


def _parse(value: str, zone: ZoneInfo, *, end_of_day: bool) -> float:
    """
    Parse a date or date-time string into unix seconds.

    Date-only values resolve to 00:00:00 (or 23:59:59.999 when `end_of_day`)
    wall-clock time in `zone`. Naive date-times are interpreted in `zone`;
    date-times carrying an offset keep it.
    """
    text = value.strip()
    try:
        if _DATE_ONLY.match(text):
            day = date.fromisoformat(text)
            start = datetime(day.year, day.month, day.day, tzinfo=zone)
            if not end_of_day:
                return start.timestamp()
            # Wall-clock arithmetic keeps DST days at 23 or 25 hours
            return (start + _END_OF_DAY).timestamp()

        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise InvalidDateFormat(
            f"Invalid date format: '{value}'. Expected YYYY-MM-DD or ISO 8601 "
            "date-time (e.g., 2024-01-15 or 2024-01-15T09:30:00)",
            value=value,
        ) from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.timestamp()


def resolve_time_range(
    start_date: str | None = None,
    end_date: str | None = None,
    hours: float | None = None,
    timezone: str | None = DEFAULT_TIMEZONE,
    now: float | None = None,
) -> TimeRange:
    """
    Turn query parameters into an inclusive [start, end] window.

    Precedence:
        1. start_date and/or end_date (date-only values expand to whole days)
        2. hours lookback ending now (non-positive values are ignored)
        3. the last 24 hours

    An unknown timezone is logged and replaced with UTC.

    Args:
        start_date: ISO date or date-time
        end_date: ISO date or date-time
        hours: Lookback in hours
        timezone: IANA name or abbreviation (EST, PKT, ...)
        now: Reference time in unix seconds (defaults to the current time)

    Returns:
        TimeRange with start <= end

    Raises:
        InvalidDateFormat: If a date string cannot be parsed, or the resolved
            start is after the resolved end
    """
    if now is None:
        now = time.time()

    try:
        zone = get_timezone(timezone, strict=True)
        tz_name = zone.key
    except InvalidTimezone:
        logger.warning(f"Invalid timezone '{timezone}', using {DEFAULT_TIMEZONE}")
        zone = ZoneInfo(DEFAULT_TIMEZONE)
        tz_name = DEFAULT_TIMEZONE

    if start_date or end_date:
        end = _parse(end_date, zone, end_of_day=True) if end_date else now
        if start_date:
            start = _parse(start_date, zone, end_of_day=False)
        else:
            # an end date older than a day still gets a 24-hour window
            start = min(now - SECONDS_PER_DAY, end - SECONDS_PER_DAY)
    elif hours is not None and not isinstance(hours, bool) and hours > 0:
        start = now - hours * SECONDS_PER_HOUR
        end = now
    else:
        if hours is not None:
            logger.debug(f"Ignoring non-positive hours={hours}, using last 24 hours")
        start = now - SECONDS_PER_DAY
        end = now

    if start > end:
        raise InvalidDateFormat(
            f"Invalid date range: start ({start_date or start}) must be before "
            f"or equal to end ({end_date or end})",
            value=f"{start_date}..{end_date}",
        )

    return TimeRange(start=start, end=end, timezone=tz_name)
