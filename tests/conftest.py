"""Pytest configuration and fixtures for SHIFTLENS tests."""

import pytest

from shiftlens.config import Settings
from tests.helpers.fake_source import FakeEventSource
from tests.helpers.synthetic_data import BASE_TS, HOUR


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )
    config.addinivalue_line("markers", "realtime: Tests for the polling broadcaster")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir so tests never read ~/.shiftlens."""
    config_dir = tmp_path / ".shiftlens"
    monkeypatch.setattr("shiftlens.config.DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr("shiftlens.logging_config.DEFAULT_LOG_DIR", config_dir / "logs")
    monkeypatch.delenv("SHIFTLENS_DATABASE_URL", raising=False)
    return config_dir


@pytest.fixture
def settings():
    """Default settings."""
    return Settings()


@pytest.fixture
def fake_source():
    """Empty in-memory event source."""
    return FakeEventSource()


@pytest.fixture
def workday_now():
    """A fixed 'now' at 18:00 UTC on the synthetic work day."""
    return BASE_TS + 18 * HOUR
