"""Configuration management for SHIFTLENS."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any, Literal

import tomli_w

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from shiftlens.constants import (
    DATABASE_URL_ENV,
    DEFAULT_CONFIG_DIR,
    DEFAULT_DATABASE_URL,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_BYTES,
    DEFAULT_POOL_SIZE,
    DEFAULT_QUERY_TIMEOUT_SECONDS,
    DEFAULT_TIMEZONE,
    DEFAULT_ZONE_CATEGORIES,
    MEBIBYTE,
    AttendanceConstants,
    RealtimeConstants,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Config File
# ============================================================================


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        Path to ~/.shiftlens/config.toml
    """
    return DEFAULT_CONFIG_DIR / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Args:
        config: Configuration dictionary to save

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def _coerce_value(raw: str) -> Any:
    """Interpret a CLI-supplied string as bool, int, float, or str."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def set_config_value(dotted_key: str, raw_value: str) -> Any:
    """
    Set a `section.key` value in the config file.

    Args:
        dotted_key: Key in `section.key` form (e.g. "realtime.window_seconds")
        raw_value: Value as typed on the command line

    Returns:
        The coerced value that was stored

    Raises:
        ValueError: If the key is not in `section.key` form
    """
    section, _, key = dotted_key.partition(".")
    if not section or not key:
        raise ValueError(
            f"Invalid key: '{dotted_key}'. Expected format: section.key "
            "(e.g. realtime.window_seconds)"
        )

    value = _coerce_value(raw_value)
    config = load_config()
    config.setdefault(section, {})[key] = value
    save_config(config)
    return value


def unset_config_value(dotted_key: str) -> bool:
    """
    Remove a `section.key` value from the config file.

    If the section becomes empty it is removed. If the config becomes empty
    the file is deleted.

    Returns:
        True if a value was removed
    """
    section, _, key = dotted_key.partition(".")
    config = load_config()

    if section not in config or key not in config[section]:
        return False

    del config[section][key]
    if not config[section]:
        del config[section]

    if not config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
    else:
        save_config(config)
    return True


# ============================================================================
# Typed Settings
# ============================================================================


class DatabaseSettings(BaseModel):
    """Read-only connection to the Frigate database."""

    url: str = Field(default=DEFAULT_DATABASE_URL, description="SQLAlchemy URL")
    query_timeout_seconds: float = Field(
        default=DEFAULT_QUERY_TIMEOUT_SECONDS, gt=0, description="Per-query deadline"
    )
    pool_size: int = Field(default=DEFAULT_POOL_SIZE, ge=1)


class AttendanceThresholds(BaseModel):
    """Hour thresholds for attendance classification."""

    full_day_hours: float = Field(default=AttendanceConstants.FULL_DAY_HOURS, gt=0)
    half_day_hours: float = Field(default=AttendanceConstants.HALF_DAY_HOURS, gt=0)
    standard_work_hours: float = Field(
        default=AttendanceConstants.STANDARD_WORK_HOURS, gt=0
    )

    @model_validator(mode="after")
    def _check_order(self) -> "AttendanceThresholds":
        if self.half_day_hours > self.full_day_hours:
            raise ValueError("half_day_hours must not exceed full_day_hours")
        return self


class PollerConfig(BaseModel):
    """Timing and row limits for the realtime poller."""

    poll_interval_seconds: float = Field(
        default=RealtimeConstants.POLL_INTERVAL_SECONDS, gt=0
    )
    window_seconds: float = Field(default=RealtimeConstants.WINDOW_SECONDS, ge=0)
    violation_limit: int = Field(default=RealtimeConstants.VIOLATION_LIMIT, ge=1)
    employee_activity_limit: int = Field(
        default=RealtimeConstants.EMPLOYEE_ACTIVITY_LIMIT, ge=1
    )
    zone_activity_limit: int = Field(
        default=RealtimeConstants.ZONE_ACTIVITY_LIMIT, ge=1
    )
    camera_activity_limit: int = Field(
        default=RealtimeConstants.CAMERA_ACTIVITY_LIMIT, ge=1
    )


class LoggingSettings(BaseModel):
    """Rotating log file written under ~/.shiftlens/logs."""

    enabled: bool = True
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"
    max_size_mb: float = Field(default=DEFAULT_LOG_MAX_BYTES / MEBIBYTE, gt=0)
    backup_count: int = Field(default=DEFAULT_LOG_BACKUP_COUNT, ge=0)

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def max_bytes(self) -> int:
        return int(self.max_size_mb * MEBIBYTE)


class ZoneCategoryRule(BaseModel):
    """One row of the zone taxonomy table."""

    pattern: str = Field(min_length=1)
    match: Literal["prefix", "substring"] = "substring"
    category: str = Field(min_length=1)

    def matches(self, zone_name: str) -> bool:
        name = zone_name.lower()
        pattern = self.pattern.lower()
        if self.match == "prefix":
            return name.startswith(pattern)
        return pattern in name


def default_zone_rules() -> list[ZoneCategoryRule]:
    """Build the built-in zone taxonomy."""
    return [
        ZoneCategoryRule(pattern=pattern, match=match, category=category)  # type: ignore[arg-type]
        for pattern, match, category in DEFAULT_ZONE_CATEGORIES
    ]


class Settings(BaseModel):
    """Validated application settings assembled from config.toml."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    attendance: AttendanceThresholds = Field(default_factory=AttendanceThresholds)
    realtime: PollerConfig = Field(default_factory=PollerConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    zone_categories: list[ZoneCategoryRule] = Field(default_factory=default_zone_rules)
    timezone: str = DEFAULT_TIMEZONE


def _table(config: dict[str, Any], name: str) -> dict[str, Any] | None:
    """Return config section `name`, or None (with a warning) when it is not a table."""
    raw = config.get(name, {})
    if not isinstance(raw, dict):
        logger.warning(f"Config section [{name}] is not a table; using defaults")
        return None
    return raw


def _section(
    config: dict[str, Any], name: str, model: type[BaseModel]
) -> BaseModel:
    """Validate one config section, falling back to defaults on error."""
    raw = _table(config, name)
    if raw is None:
        return model()
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Invalid [{name}] settings, using defaults: {e}")
        return model()


def load_settings(config: dict[str, Any] | None = None) -> Settings:
    """
    Build typed settings from the config file (or a supplied dict).

    Malformed sections are logged and replaced with defaults; the
    SHIFTLENS_DATABASE_URL environment variable overrides [database].url.

    Args:
        config: Raw configuration; loaded from disk when None

    Returns:
        Settings instance
    """
    if config is None:
        config = load_config()

    database = _section(config, "database", DatabaseSettings)
    attendance = _section(config, "attendance", AttendanceThresholds)
    realtime = _section(config, "realtime", PollerConfig)
    log_settings = _section(config, "logging", LoggingSettings)

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        database = database.model_copy(update={"url": env_url})

    zone_rules = default_zone_rules()
    raw_rules = (_table(config, "zones") or {}).get("categories")
    if raw_rules is not None:
        try:
            zone_rules = [ZoneCategoryRule.model_validate(r) for r in raw_rules]
        except (ValidationError, TypeError) as e:
            logger.warning(f"Invalid [zones].categories, using defaults: {e}")

    timezone = (_table(config, "display") or {}).get("timezone", DEFAULT_TIMEZONE)

    return Settings(
        database=database,  # type: ignore[arg-type]
        attendance=attendance,  # type: ignore[arg-type]
        realtime=realtime,  # type: ignore[arg-type]
        logging=log_settings,  # type: ignore[arg-type]
        zone_categories=zone_rules,
        timezone=str(timezone),
    )
