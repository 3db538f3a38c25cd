"""
Constants and mappings for Frigate NVR analytics.

Based on the Frigate `timeline` and `recordings` table conventions.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Detection Vocabulary
# ============================================================================


class ClassType(str, Enum):
    """Timeline row classes emitted by Frigate for tracked objects."""

    ENTERED_ZONE = "entered_zone"
    LEFT_ZONE = "left_zone"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "ClassType":
        """Map a raw `class_type` column value, treating unknown values as OTHER."""
        if value == cls.ENTERED_ZONE.value:
            return cls.ENTERED_ZONE
        if value == cls.LEFT_ZONE.value:
            return cls.LEFT_ZONE
        return cls.OTHER


# Rows that open and close zone sessions
ZONE_TRANSITIONS = (ClassType.ENTERED_ZONE, ClassType.LEFT_ZONE)


class EventCategory(str, Enum):
    """Realtime broadcast categories."""

    VIOLATIONS = "violations"
    EMPLOYEE_ACTIVITY = "employee_activity"
    CAMERA_ACTIVITY = "camera_activity"
    ZONE_ACTIVITY = "zone_activity"


class Granularity(str, Enum):
    """Bucket widths for trend analysis."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class TrendMetric(str, Enum):
    """Metrics available for trend analysis."""

    ACTIVITY = "activity"
    VIOLATIONS = "violations"
    EMPLOYEES = "employees"
    ALL = "all"


LABEL_PERSON = "person"
LABEL_CELL_PHONE = "cell phone"
VIOLATION_LABELS = frozenset({LABEL_CELL_PHONE})

UNKNOWN_SUBJECT = "Unknown"

# ============================================================================
# Zone Taxonomy
# ============================================================================

ZONE_CATEGORY_WORKSTATION = "workstation"
ZONE_CATEGORY_GENERAL = "general"

# (pattern, match mode, category); evaluated in order, first match wins
DEFAULT_ZONE_CATEGORIES: list[tuple[str, str, str]] = [
    ("desk_", "prefix", ZONE_CATEGORY_WORKSTATION),
    ("meeting", "substring", "meeting_room"),
    ("break", "substring", "break_area"),
    ("reception", "substring", "reception"),
    ("admin", "substring", "admin_area"),
]

# ============================================================================
# Timezones
# ============================================================================

DEFAULT_TIMEZONE = "UTC"

# Abbreviations accepted in place of IANA names
COMMON_TIMEZONES: dict[str, str] = {
    "UTC": "UTC",
    "EST": "America/New_York",
    "PST": "America/Los_Angeles",
    "CST": "America/Chicago",
    "MST": "America/Denver",
    "IST": "Asia/Kolkata",
    "PKT": "Asia/Karachi",
    "GMT": "Europe/London",
    "CET": "Europe/Paris",
    "JST": "Asia/Tokyo",
    "AEST": "Australia/Sydney",
    "KST": "Asia/Seoul",
    "HKT": "Asia/Hong_Kong",
    "SGT": "Asia/Singapore",
    "UAE": "Asia/Dubai",
}

DAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

# ============================================================================
# Analysis Constants
# ============================================================================


class AttendanceConstants:
    """Default attendance thresholds (hours). Overridable via [attendance]."""

    FULL_DAY_HOURS = 8.0
    HALF_DAY_HOURS = 4.0
    STANDARD_WORK_HOURS = 8.0

    # work + break must reproduce departure - arrival within this tolerance
    INVARIANT_EPSILON_HOURS = 1e-6


class ScoringConstants:
    """Weights for the heuristic scoring strategies (non-authoritative)."""

    PRODUCTIVITY_HOURS_WEIGHT = 50.0
    PRODUCTIVITY_ACTIVITY_WEIGHT = 30.0
    PRODUCTIVITY_SESSION_BONUS = 20.0
    PRODUCTIVITY_ACTIVITY_TARGET = 100

    DESK_UTILIZATION_WEIGHT = 0.4
    DESK_DIVERSITY_WEIGHT = 0.3
    DESK_SESSION_WEIGHT = 0.3
    DESK_SESSION_CAP_HOURS = 8.0

    ATTENDANCE_PERFECT_BONUS = 10.0

    PREFERENCE_VISIT_WEIGHT = 0.7
    PREFERENCE_RECENCY_WEIGHT = 0.3
    PREFERENCE_RECENCY_HORIZON_DAYS = 365

    ZONE_ENTRY_RATIO_WEIGHT = 30.0
    ZONE_DIVERSITY_WEIGHT = 20.0
    ZONE_ACTIVITY_DIVISOR = 10.0
    ZONE_ACTIVITY_CAP = 50.0

    ZONE_EFFICIENCY_UTILIZATION_WEIGHT = 0.5
    ZONE_EFFICIENCY_INTENSITY_WEIGHT = 0.3
    ZONE_EFFICIENCY_DIVERSITY_WEIGHT = 0.2

    PERFORMANCE_PRODUCTIVITY_WEIGHT = 0.30
    PERFORMANCE_EFFICIENCY_WEIGHT = 0.25
    PERFORMANCE_COMPLIANCE_WEIGHT = 0.25
    PERFORMANCE_ENGAGEMENT_WEIGHT = 0.20
    # compliance points lost per cell-phone violation
    COMPLIANCE_VIOLATION_PENALTY = 10.0
    LOW_PERFORMANCE_SCORE = 50.0


class TrendConstants:
    """Thresholds for trend classification."""

    CHANGE_THRESHOLD = 0.10
    HIGH_VOLATILITY_PERCENT = 50.0
    RECENT_SESSION_COUNT = 5
    PEAK_COUNT = 3


class OccupancyConstants:
    """Utilization distribution bands (percent)."""

    HIGH_UTILIZATION = 80.0
    LOW_UTILIZATION = 20.0
    TOP_PREFERRED_ZONES = 5
    HIGH_MOBILITY = 70.0
    HIGH_LOYALTY = 80.0


# Hour-of-day bands used by activity pattern classification
MORNING_HOURS = range(6, 12)
AFTERNOON_HOURS = range(12, 18)
EVENING_HOURS = range(18, 24)
EARLY_HOURS = range(6, 9)
REGULAR_HOURS = range(9, 18)
LATE_HOURS = range(18, 24)

# ============================================================================
# Realtime Defaults
# ============================================================================


class RealtimeConstants:
    """Defaults for the polling broadcaster."""

    POLL_INTERVAL_SECONDS = 5.0
    WINDOW_SECONDS = 10.0
    VIOLATION_LIMIT = 50
    EMPLOYEE_ACTIVITY_LIMIT = 100
    ZONE_ACTIVITY_LIMIT = 50
    CAMERA_ACTIVITY_LIMIT = 1000


# Camera status windows (seconds)
CAMERA_RECENT_ACTIVITY_SECONDS = 300
CAMERA_RECENT_RECORDING_SECONDS = 3600

# ============================================================================
# Default Settings
# ============================================================================

DEFAULT_DATABASE_URL = "postgresql+asyncpg://frigate@localhost:5432/frigate"
DEFAULT_QUERY_TIMEOUT_SECONDS = 30.0
DEFAULT_POOL_SIZE = 10
DEFAULT_EVENT_LIMIT = 100
DATABASE_URL_ENV = "SHIFTLENS_DATABASE_URL"

# Logging configuration
DEFAULT_CONFIG_DIR = Path.home() / ".shiftlens"
DEFAULT_LOG_DIR = DEFAULT_CONFIG_DIR / "logs"
DEFAULT_LOG_FILE = "shiftlens.log"
MEBIBYTE = 1024 * 1024
DEFAULT_LOG_MAX_BYTES = 10 * MEBIBYTE
DEFAULT_LOG_BACKUP_COUNT = 5

# Time calculations
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
MILLISECONDS_PER_SECOND = 1000
