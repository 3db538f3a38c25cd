"""Tests for the config file and typed settings."""

import pytest

from shiftlens.config import (
    Settings,
    get_config_path,
    load_config,
    load_settings,
    save_config,
    set_config_value,
    unset_config_value,
)
from shiftlens.constants import DEFAULT_DATABASE_URL


class TestConfigFile:
    """Tests for reading and writing config.toml."""

    def test_missing_file_is_empty(self, isolated_config):
        assert get_config_path() == isolated_config / "config.toml"
        assert load_config() == {}

    def test_save_and_load(self):
        save_config({"display": {"timezone": "PKT"}})

        assert load_config() == {"display": {"timezone": "PKT"}}
        assert not get_config_path().with_suffix(".toml.tmp").exists()

    def test_corrupted_file_treated_as_empty(self, caplog):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("[realtime\nwindow = ")

        assert load_config() == {}
        assert "Failed to load config" in caplog.text

    @pytest.mark.parametrize(
        "raw,expected",
        [("15", 15), ("2.5", 2.5), ("true", True), ("False", False), ("Asia/Tokyo", "Asia/Tokyo")],
    )
    def test_set_coerces_values(self, raw, expected):
        assert set_config_value("section.key", raw) == expected
        assert load_config()["section"]["key"] == expected

    def test_set_requires_dotted_key(self):
        with pytest.raises(ValueError, match="section.key"):
            set_config_value("window_seconds", "5")

    def test_unset_removes_empty_sections_and_file(self):
        set_config_value("realtime.window_seconds", "15")
        set_config_value("display.timezone", "EST")

        assert unset_config_value("realtime.window_seconds") is True
        assert load_config() == {"display": {"timezone": "EST"}}

        assert unset_config_value("display.timezone") is True
        assert not get_config_path().exists()

    def test_unset_missing_key(self):
        assert unset_config_value("realtime.nothing") is False


class TestSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        settings = load_settings()

        assert settings == Settings()
        assert settings.database.url == DEFAULT_DATABASE_URL
        assert settings.timezone == "UTC"

    def test_values_from_file(self):
        set_config_value("realtime.window_seconds", "15")
        set_config_value("attendance.full_day_hours", "7.5")
        set_config_value("display.timezone", "Asia/Karachi")

        settings = load_settings()

        assert settings.realtime.window_seconds == 15
        assert settings.attendance.full_day_hours == 7.5
        assert settings.timezone == "Asia/Karachi"

    def test_invalid_section_falls_back(self, caplog):
        settings = load_settings(
            {"realtime": {"poll_interval_seconds": -1}, "attendance": {"full_day_hours": 9}}
        )

        assert settings.realtime.poll_interval_seconds == 5.0
        assert settings.attendance.full_day_hours == 9
        assert "Invalid [realtime] settings" in caplog.text

    def test_non_table_section_falls_back(self):
        settings = load_settings({"database": "postgres://somewhere"})

        assert settings.database.url == DEFAULT_DATABASE_URL

    @pytest.mark.parametrize("value", ["Asia/Karachi", ["desk_"], 3])
    def test_non_table_zones_and_display_fall_back(self, value, caplog):
        settings = load_settings({"zones": value, "display": value})

        assert settings.timezone == "UTC"
        assert settings.zone_categories[0].pattern == "desk_"
        assert "Config section [zones] is not a table" in caplog.text
        assert "Config section [display] is not a table" in caplog.text

    def test_environment_overrides_url(self, monkeypatch):
        monkeypatch.setenv("SHIFTLENS_DATABASE_URL", "postgresql+asyncpg://ro@db/frigate")

        settings = load_settings({"database": {"url": "postgresql+asyncpg://other/frigate"}})

        assert settings.database.url == "postgresql+asyncpg://ro@db/frigate"

    def test_custom_zone_rules(self):
        settings = load_settings(
            {
                "zones": {
                    "categories": [
                        {"pattern": "hot_", "match": "prefix", "category": "workstation"},
                        {"pattern": "lab", "category": "lab"},
                    ]
                }
            }
        )

        assert [r.pattern for r in settings.zone_categories] == ["hot_", "lab"]
        assert settings.zone_categories[1].match == "substring"

    def test_invalid_zone_rules_fall_back(self, caplog):
        settings = load_settings({"zones": {"categories": [{"pattern": ""}]}})

        assert settings.zone_categories[0].pattern == "desk_"
        assert "Invalid [zones].categories" in caplog.text
