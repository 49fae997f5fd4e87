"""Shared test fixtures."""

import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from skyalert.models.forecast import CurrentConditions, DailyForecast, ForecastSnapshot
from skyalert.models.location import Location
from skyalert.notify.center import AuthorizationStatus, InMemoryNotificationCenter
from skyalert.notify.scheduler import TriggerScheduler
from skyalert.storage.database import open_store

JST = timezone(timedelta(hours=9))


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def now() -> datetime:
    """Tuesday 2026-03-10 10:00 in Tokyo."""
    return datetime(2026, 3, 10, 10, 0, tzinfo=JST)


@pytest.fixture
def tokyo() -> Location:
    return Location(
        id=1850147,
        name="Tokyo",
        latitude=35.6895,
        longitude=139.69171,
        admin1="Tokyo",
        country_code="JP",
        country="Japan",
    )


@pytest.fixture
def make_snapshot() -> Callable[..., ForecastSnapshot]:
    """Build a snapshot from (weather_code, max, min) tuples, day 0 first."""

    def _make(*days: tuple[int, float, float]) -> ForecastSnapshot:
        return ForecastSnapshot(
            current=CurrentConditions(
                temperature_c=20.0,
                apparent_temperature_c=20.0,
                wind_speed_kmh=5.0,
                weather_code=days[0][0],
                observed_at="2026-03-10T10:00",
            ),
            daily=tuple(
                DailyForecast(
                    date=f"2026-03-{10 + i:02d}",
                    weather_code=code,
                    max_temp_c=t_max,
                    min_temp_c=t_min,
                )
                for i, (code, t_max, t_min) in enumerate(days)
            ),
        )

    return _make


@pytest.fixture
def center() -> InMemoryNotificationCenter:
    return InMemoryNotificationCenter(status=AuthorizationStatus.AUTHORIZED)


@pytest.fixture
def scheduler(center: InMemoryNotificationCenter, now: datetime) -> TriggerScheduler:
    return TriggerScheduler(center, clock=lambda: now)


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    return open_store(tmp_path / "test.db")


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "retry": {"forecast_max_retries": 2, "base_delay_ms": 300},
        "notifications": {"locale": "en"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path
