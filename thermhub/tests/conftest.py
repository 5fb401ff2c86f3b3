"""Shared test fixtures."""

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from thermhub.config.schema import ThermHubConfig
from thermhub.storage.database import connect, run_migrations

FIXTURE_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    with open(FIXTURE_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path: Path) -> sqlite3.Connection:
    """A migrated temporary SQLite database."""
    conn = connect(db_path)
    run_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 2, 11, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def test_config(db_path: Path) -> ThermHubConfig:
    """Config pointing at fake providers with instant retries."""
    return ThermHubConfig(
        db_path=str(db_path),
        weather={
            "hourly_url": "https://test-weather.example.com/forecast/hourly",
            "daily_url": "https://test-weather.example.com/forecast",
            "retry_attempts": 5,
            "retry_delay_seconds": 0.0,
        },
        ecobee={
            "client_id": "test-client",
            "base_url": "https://test-ecobee.example.com",
        },
    )


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "worker": {"throttle_seconds": 120, "tick_seconds": 2},
        "ecobee": {"client_id": "abc123"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def hourly_payload() -> dict:
    return load_fixture("weather_hourly.json")


@pytest.fixture
def daily_payload() -> dict:
    return load_fixture("weather_daily.json")


@pytest.fixture
def thermostat_payload() -> dict:
    return load_fixture("ecobee_thermostats.json")
