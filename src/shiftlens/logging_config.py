"""Logging for SHIFTLENS: stderr console plus the rotating file from [logging]."""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from shiftlens.config import LoggingSettings, load_settings
from shiftlens.constants import DEFAULT_LOG_DIR, DEFAULT_LOG_FILE

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logging_configured = False


def get_log_path() -> Path:
    """Path of the active log file; its directory is created on first use."""
    os.makedirs(DEFAULT_LOG_DIR, mode=0o700, exist_ok=True)
    return DEFAULT_LOG_DIR / DEFAULT_LOG_FILE


def build_logging_config(
    settings: LoggingSettings,
    verbose: bool = False,
    console_format: str | None = None,
) -> dict[str, Any]:
    """dictConfig mapping for the console handler and, when enabled, the log file."""
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or FILE_FORMAT},
            "file": {"format": FILE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if verbose else "INFO",
                "formatter": "console",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            # driver chatter stays out of the file at DEBUG
            "sqlalchemy.engine": {"level": "WARNING"},
            "asyncio": {"level": "WARNING"},
        },
        "root": {"level": "DEBUG", "handlers": ["console"]},
    }

    if settings.enabled:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.level,
            "formatter": "file",
            "filename": str(get_log_path()),
            "maxBytes": settings.max_bytes,
            "backupCount": settings.backup_count,
            "encoding": "utf-8",
        }
        config["root"]["handlers"].append("file")

    return config


def setup_logging(*, verbose: bool = False, console_format: str | None = None) -> None:
    """
    Configure logging once per process.

    When the log file cannot be opened, logging continues on the console only.
    """
    global _logging_configured

    if _logging_configured:
        return

    settings = load_settings().logging
    try:
        logging.config.dictConfig(build_logging_config(settings, verbose, console_format))
    except (OSError, ValueError) as e:
        sys.stderr.write(f"WARNING: log file disabled: {e}\n")
        console_only = settings.model_copy(update={"enabled": False})
        logging.config.dictConfig(build_logging_config(console_only, verbose, console_format))

    _logging_configured = True
