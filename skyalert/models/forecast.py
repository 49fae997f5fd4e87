"""Forecast snapshot models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CurrentConditions:
    temperature_c: float
    apparent_temperature_c: float
    wind_speed_kmh: float
    weather_code: int
    observed_at: str


@dataclass(frozen=True)
class DailyForecast:
    date: str  # YYYY-MM-DD
    weather_code: int
    max_temp_c: float
    min_temp_c: float


@dataclass(frozen=True)
class ForecastSnapshot:
    current: CurrentConditions
    daily: tuple[DailyForecast, ...]  # index 0 = today
    fetched_at: str = ""

    def __post_init__(self) -> None:
        if not self.daily:
            raise ValueError("daily series must have at least one entry")

    @property
    def today(self) -> DailyForecast:
        return self.daily[0]

    @property
    def tomorrow(self) -> DailyForecast:
        """Day-1 entry, falling back to day 0 for a single-day series."""
        return self.daily[1] if len(self.daily) > 1 else self.daily[0]
