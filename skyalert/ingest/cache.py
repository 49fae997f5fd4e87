"""In-memory cache for city searches and forecasts.

Two independent key spaces: search results keyed by normalized query text,
forecasts keyed by fixed-precision coordinates. All access goes through a
single lock so concurrent fetches never observe a half-written map.
"""

import threading
from collections import OrderedDict

from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.location import Location

COORD_PRECISION = 4


def city_key(query: str) -> str:
    return query.strip().lower()


def forecast_key(location: Location) -> str:
    return f"{location.latitude:.{COORD_PRECISION}f},{location.longitude:.{COORD_PRECISION}f}"


class ForecastCache:
    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._cities: OrderedDict[str, list[Location]] = OrderedDict()
        self._forecasts: OrderedDict[str, ForecastSnapshot] = OrderedDict()

    def lookup_city(self, query: str) -> list[Location] | None:
        with self._lock:
            return self._get(self._cities, city_key(query))

    def store_city(self, query: str, locations: list[Location]) -> None:
        with self._lock:
            self._put(self._cities, city_key(query), list(locations))

    def lookup_forecast(self, location: Location) -> ForecastSnapshot | None:
        with self._lock:
            return self._get(self._forecasts, forecast_key(location))

    def store_forecast(self, location: Location, snapshot: ForecastSnapshot) -> None:
        with self._lock:
            self._put(self._forecasts, forecast_key(location), snapshot)

    def invalidate_forecast(self, location: Location) -> None:
        with self._lock:
            self._forecasts.pop(forecast_key(location), None)

    def clear(self) -> None:
        with self._lock:
            self._cities.clear()
            self._forecasts.clear()

    def _get(self, store: OrderedDict, key: str):
        value = store.get(key)
        if value is not None:
            store.move_to_end(key)
        if isinstance(value, list):
            return list(value)
        return value

    def _put(self, store: OrderedDict, key: str, value) -> None:
        store[key] = value
        store.move_to_end(key)
        # Least recently used entries go first.
        if self.max_entries is not None:
            while len(store) > self.max_entries:
                store.popitem(last=False)
