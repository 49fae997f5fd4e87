"""Debounced city search: only the latest keystroke reaches the network."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from skyalert.ingest.forecast_client import ForecastClient
from skyalert.models.location import Location

logger = logging.getLogger(__name__)


class SearchDebouncer:
    def __init__(
        self,
        client: ForecastClient,
        delay: float = 0.4,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.delay = delay
        self._sleep = sleep
        self._current = ""

    @property
    def current_text(self) -> str:
        return self._current

    async def submit(self, text: str) -> list[Location] | None:
        """Record ``text`` as the input and search after the delay.

        Returns None when a later submit superseded this one, and an empty
        list for blank input.
        """
        self._current = text
        if not text.strip():
            return []
        await self._sleep(self.delay)
        if text != self._current:
            logger.debug("Search for %r superseded by %r", text, self._current)
            return None
        return await self.client.search_cities(text)
