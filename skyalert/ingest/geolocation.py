"""One-shot current-position lookup.

Each request gets a unique token and a future. The position provider
reports back with ``resolve(token, ...)`` or ``fail(token, exc)`` from the
event loop, which completes the matching waiter.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

from skyalert.models.common import CURRENT_LOCATION_ID
from skyalert.models.location import Location

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_NAME = "Current Location"


class PositionDenied(Exception):
    """Raised by a provider when location access is not authorized."""


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Placemark:
    locality: str | None = None
    sub_locality: str | None = None
    administrative_area: str | None = None
    name: str | None = None
    country: str | None = None
    country_code: str | None = None


class PositionProvider(Protocol):
    def start(self, token: str) -> None:
        """Begin a lookup; the outcome is reported against ``token``."""
        ...


class ReverseGeocoder(Protocol):
    async def reverse(
        self, latitude: float, longitude: float, locale: str
    ) -> Placemark | None: ...


class PositionRequests:
    def __init__(self, provider: PositionProvider, timeout: float = 30.0):
        self.provider = provider
        self.timeout = timeout
        self._waiting: dict[str, asyncio.Future] = {}

    @property
    def pending_tokens(self) -> list[str]:
        return list(self._waiting)

    async def request(self) -> Coordinates:
        token = uuid.uuid4().hex
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        self._waiting[token] = fut
        try:
            self.provider.start(token)
            return await asyncio.wait_for(fut, self.timeout)
        finally:
            self._waiting.pop(token, None)

    def resolve(self, token: str, latitude: float, longitude: float) -> bool:
        fut = self._waiting.get(token)
        if fut is None or fut.done():
            logger.debug("Ignoring position for unknown token %s", token)
            return False
        fut.set_result(Coordinates(latitude, longitude))
        return True

    def fail(self, token: str, exc: BaseException) -> bool:
        fut = self._waiting.get(token)
        if fut is None or fut.done():
            return False
        fut.set_exception(exc)
        return True


async def current_location(
    requests: PositionRequests,
    geocoder: ReverseGeocoder | None = None,
    locale: str = "en",
    fallback_name: str = DEFAULT_FALLBACK_NAME,
) -> Location | None:
    """Resolve the device position into a Location, or None on failure."""
    try:
        coords = await requests.request()
    except PositionDenied:
        logger.info("Location access denied")
        return None
    except (asyncio.TimeoutError, OSError):
        logger.warning("Position lookup failed", exc_info=True)
        return None

    placemark: Placemark | None = None
    if geocoder is not None:
        try:
            placemark = await geocoder.reverse(coords.latitude, coords.longitude, locale)
        except Exception:
            logger.warning("Reverse geocoding failed", exc_info=True)

    pm = placemark or Placemark()
    name = (
        pm.locality
        or pm.sub_locality
        or pm.administrative_area
        or pm.name
        or fallback_name
    )
    return Location(
        id=CURRENT_LOCATION_ID,
        name=name,
        latitude=coords.latitude,
        longitude=coords.longitude,
        admin1=pm.administrative_area,
        country_code=pm.country_code,
        country=pm.country,
    )
