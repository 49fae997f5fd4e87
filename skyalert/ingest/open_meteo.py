"""Open-Meteo geocoding and forecast adapter.

Builds request parameters and decodes JSON payloads into Location and
ForecastSnapshot. The client only talks to this module through the
ForecastProvider protocol, so another provider can be swapped in.
"""

import logging
import math
from typing import Any, Protocol

from skyalert.config.defaults import OPEN_METEO_FORECAST_URL, OPEN_METEO_GEOCODING_URL
from skyalert.errors import DecodingFailed
from skyalert.models.common import utc_now
from skyalert.models.forecast import CurrentConditions, DailyForecast, ForecastSnapshot
from skyalert.models.location import Location

logger = logging.getLogger(__name__)

DAILY_FIELDS = "weathercode,temperature_2m_max,temperature_2m_min"


class ForecastProvider(Protocol):
    geocoding_url: str
    forecast_url: str

    def search_params(self, query: str, count: int, language: str) -> dict[str, str]: ...

    def forecast_params(self, location: Location) -> dict[str, str]: ...

    def parse_locations(self, payload: Any) -> list[Location]: ...

    def parse_forecast(self, payload: Any) -> ForecastSnapshot: ...


class OpenMeteoProvider:
    def __init__(
        self,
        geocoding_url: str = OPEN_METEO_GEOCODING_URL,
        forecast_url: str = OPEN_METEO_FORECAST_URL,
    ):
        self.geocoding_url = geocoding_url
        self.forecast_url = forecast_url

    def search_params(self, query: str, count: int, language: str) -> dict[str, str]:
        return {
            "name": query,
            "count": str(count),
            "language": language,
            "format": "json",
        }

    def forecast_params(self, location: Location) -> dict[str, str]:
        return {
            "latitude": str(location.latitude),
            "longitude": str(location.longitude),
            "current_weather": "true",
            "daily": DAILY_FIELDS,
            "timezone": "auto",
        }

    def parse_locations(self, payload: Any) -> list[Location]:
        return parse_locations(payload)

    def parse_forecast(self, payload: Any) -> ForecastSnapshot:
        return parse_forecast(payload)


def parse_locations(payload: Any) -> list[Location]:
    """Decode a geocoding response. Missing ``results`` means no matches."""
    if not isinstance(payload, dict):
        raise DecodingFailed("geocoding payload is not an object")
    results = payload.get("results") or []
    try:
        return [
            Location(
                id=r["id"],
                name=r["name"],
                latitude=_finite(r["latitude"]),
                longitude=_finite(r["longitude"]),
                admin1=r.get("admin1"),
                country_code=r.get("country_code"),
                country=r.get("country"),
            )
            for r in results
        ]
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise DecodingFailed(f"malformed geocoding result: {e!r}") from e


def parse_forecast(payload: Any) -> ForecastSnapshot:
    """Decode a forecast response with ``current_weather`` and ``daily`` blocks."""
    if not isinstance(payload, dict):
        raise DecodingFailed("forecast payload is not an object")
    try:
        cw = payload["current_weather"]
        temperature = _finite(cw["temperature"])
        current = CurrentConditions(
            temperature_c=temperature,
            apparent_temperature_c=_finite(cw.get("apparent_temperature", temperature)),
            wind_speed_kmh=_finite(cw["windspeed"]),
            weather_code=_code(cw["weathercode"]),
            observed_at=str(cw["time"]),
        )
        d = payload["daily"]
        columns = (
            d["time"],
            d["weathercode"],
            d["temperature_2m_max"],
            d["temperature_2m_min"],
        )
        if len({len(c) for c in columns}) != 1:
            logger.warning(
                "Forecast daily columns have uneven lengths: %s",
                [len(c) for c in columns],
            )
        daily = tuple(
            DailyForecast(
                date=str(day),
                weather_code=_code(code),
                max_temp_c=_finite(t_max),
                min_temp_c=_finite(t_min),
            )
            for day, code, t_max, t_min in zip(*columns)
        )
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise DecodingFailed(f"malformed forecast payload: {e!r}") from e

    if not daily:
        raise DecodingFailed("forecast has no daily entries")
    return ForecastSnapshot(
        current=current,
        daily=daily,
        fetched_at=utc_now().isoformat(),
    )


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def _code(value: Any) -> int:
    return int(_finite(value))
