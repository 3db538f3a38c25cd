"""Tests for logging configuration."""

from unittest.mock import Mock

import pytest

from shiftlens import logging_config
from shiftlens.config import LoggingSettings, load_settings, set_config_value
from shiftlens.logging_config import build_logging_config, get_log_path, setup_logging


class TestBuildLoggingConfig:
    def test_file_handler_from_settings(self, isolated_config):
        settings = LoggingSettings(level="info", max_size_mb=2, backup_count=3)

        config = build_logging_config(settings)

        handler = config["handlers"]["file"]
        assert handler["level"] == "INFO"
        assert handler["maxBytes"] == 2 * 1024 * 1024
        assert handler["backupCount"] == 3
        assert handler["filename"] == str(isolated_config / "logs" / "shiftlens.log")
        assert config["root"]["handlers"] == ["console", "file"]

    def test_disabled_file_is_console_only(self):
        config = build_logging_config(LoggingSettings(enabled=False), verbose=True)

        assert "file" not in config["handlers"]
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_console_format_override(self):
        config = build_logging_config(LoggingSettings(), console_format="%(message)s")

        assert config["formatters"]["console"]["format"] == "%(message)s"

    def test_log_path_creates_directory(self, isolated_config):
        path = get_log_path()

        assert path.parent.is_dir()
        assert not path.exists()


class TestLoggingSettings:
    def test_read_from_config_file(self):
        set_config_value("logging.level", "warning")
        set_config_value("logging.enabled", "false")

        settings = load_settings().logging

        assert settings.level == "WARNING"
        assert settings.enabled is False

    def test_invalid_level_falls_back(self, caplog):
        settings = load_settings({"logging": {"level": "LOUD"}}).logging

        assert settings.level == "DEBUG"
        assert "Invalid [logging] settings" in caplog.text


class TestSetupLogging:
    """Tests for the one-shot setup."""

    @pytest.fixture
    def dict_config(self, monkeypatch):
        mock = Mock()
        monkeypatch.setattr(logging_config, "_logging_configured", False)
        monkeypatch.setattr(logging_config.logging.config, "dictConfig", mock)
        return mock

    def test_configures_once(self, dict_config):
        setup_logging()
        setup_logging(verbose=True)

        dict_config.assert_called_once()

    def test_unwritable_file_falls_back_to_console(self, dict_config, capsys):
        dict_config.side_effect = [OSError("read-only"), None]

        setup_logging()

        assert dict_config.call_count == 2
        assert "file" not in dict_config.call_args.args[0]["handlers"]
        assert "log file disabled" in capsys.readouterr().err
