"""Forecast API client with caching, in-flight de-duplication and retry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from skyalert.config.defaults import DEFAULT_USER_AGENT
from skyalert.config.schema import AppConfig
from skyalert.errors import (
    Cancelled,
    DecodingFailed,
    EmptyResult,
    ForecastError,
    InvalidRequest,
    Other,
    ServerError,
    TransportError,
)
from skyalert.ingest.cache import ForecastCache, city_key, forecast_key
from skyalert.ingest.open_meteo import ForecastProvider, OpenMeteoProvider
from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.location import Location

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ForecastClient:
    """Looks up cities and forecasts through a pluggable provider.

    Results are cached per normalized key. Concurrent lookups for the same
    key share one outstanding request. Forecast fetches retry transient
    failures with exponential backoff; cancellation is never retried and
    surfaces as ``Cancelled``.
    """

    def __init__(
        self,
        cache: ForecastCache | None = None,
        provider: ForecastProvider | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
        search_count: int = 10,
        language: str = "en",
        user_agent: str = DEFAULT_USER_AGENT,
        forecast_max_retries: int = 2,
        search_max_retries: int = 0,
        retry_base_delay: float = 0.3,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.cache = cache if cache is not None else ForecastCache()
        self.provider = provider if provider is not None else OpenMeteoProvider()
        self._owns_http = http is None
        self._http = http if http is not None else httpx.AsyncClient()
        self.timeout = timeout
        self.search_count = search_count
        self.language = language
        self.user_agent = user_agent
        self.forecast_max_retries = forecast_max_retries
        self.search_max_retries = search_max_retries
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep
        self._inflight_cities: dict[str, asyncio.Future] = {}
        self._inflight_forecasts: dict[str, asyncio.Future] = {}

    @classmethod
    def from_config(
        cls, config: AppConfig, http: httpx.AsyncClient | None = None
    ) -> "ForecastClient":
        ep = config.endpoints
        return cls(
            cache=ForecastCache(max_entries=config.cache.max_entries),
            provider=OpenMeteoProvider(ep.geocoding_base, ep.forecast_base),
            http=http,
            timeout=ep.timeout_seconds,
            search_count=ep.search_count,
            language=ep.language,
            user_agent=ep.user_agent,
            forecast_max_retries=config.retry.forecast_max_retries,
            search_max_retries=config.retry.search_max_retries,
            retry_base_delay=config.retry.base_delay_ms / 1000,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ForecastClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Public API ---

    async def search_cities(self, query: str) -> list[Location]:
        """Search cities by name. Raises EmptyResult when nothing matches."""
        if not query.strip():
            raise InvalidRequest("empty search query")
        cached = self.cache.lookup_city(query)
        if cached is not None:
            return cached

        async def load() -> list[Location]:
            params = self.provider.search_params(
                query.strip(), self.search_count, self.language
            )
            locations = await self._fetch(
                self.provider.geocoding_url,
                params,
                self.provider.parse_locations,
                self.search_max_retries,
            )
            if not locations:
                raise EmptyResult(f"no cities match {query.strip()!r}")
            self.cache.store_city(query, locations)
            return locations

        return list(await self._shared(self._inflight_cities, city_key(query), load))

    async def fetch_forecast(self, location: Location) -> ForecastSnapshot:
        """Fetch current conditions and the daily series for a location."""
        cached = self.cache.lookup_forecast(location)
        if cached is not None:
            return cached

        async def load() -> ForecastSnapshot:
            snapshot = await self._fetch(
                self.provider.forecast_url,
                self.provider.forecast_params(location),
                self.provider.parse_forecast,
                self.forecast_max_retries,
            )
            self.cache.store_forecast(location, snapshot)
            return snapshot

        return await self._shared(self._inflight_forecasts, forecast_key(location), load)

    # --- Internals ---

    async def _shared(
        self,
        inflight: dict[str, asyncio.Future],
        key: str,
        load: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``load`` once per key; concurrent callers await the same result."""
        pending = inflight.get(key)
        if pending is not None:
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError as e:
                raise Cancelled("lookup cancelled while waiting") from e

        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        inflight[key] = fut
        try:
            result = await load()
        except asyncio.CancelledError as e:
            err = Cancelled("lookup cancelled")
            fut.set_exception(err)
            fut.exception()
            raise err from e
        except Exception as e:
            fut.set_exception(e)
            fut.exception()
            raise
        else:
            fut.set_result(result)
            return result
        finally:
            inflight.pop(key, None)

    async def _fetch(
        self,
        url: str,
        params: dict[str, str],
        decode: Callable[[Any], T],
        max_retries: int,
    ) -> T:
        """GET and decode with bounded exponential backoff.

        Only retryable errors are retried, up to ``max_retries`` extra
        attempts; the last error is surfaced unchanged.
        """
        delay = self.retry_base_delay
        attempt = 0
        while True:
            try:
                try:
                    payload = await self._get_json(url, params)
                    return _decode(decode, payload)
                except ForecastError as e:
                    if not e.retryable or attempt >= max_retries:
                        raise
                    attempt += 1
                    logger.warning(
                        "GET %s failed (%s), retrying in %.2fs (attempt %d/%d)",
                        url, e.kind, delay, attempt, max_retries,
                    )
                await self._sleep(delay)
                delay *= 2
            except asyncio.CancelledError as e:
                raise Cancelled("request cancelled") from e

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            resp = await self._http.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidRequest(f"invalid request URL {url!r}: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        except Exception as e:
            raise Other(e) from e

        if not 200 <= resp.status_code < 300:
            logger.error("GET %s -> HTTP %d", url, resp.status_code)
            raise ServerError(resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise DecodingFailed(f"invalid JSON from {url}") from e


def _decode(decode: Callable[[Any], T], payload: Any) -> T:
    """Apply a provider decoder, keeping its failures inside ForecastError."""
    try:
        return decode(payload)
    except ForecastError:
        raise
    except Exception as e:
        raise Other(e) from e
