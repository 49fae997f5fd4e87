"""Local notification facility interface and an in-memory implementation."""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import StrEnum
from typing import Protocol

from skyalert.models.trigger import NotificationRequest

logger = logging.getLogger(__name__)


class AuthorizationStatus(StrEnum):
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"
    PROVISIONAL = "provisional"


class NotificationRejected(Exception):
    """Raised by a center that refuses to register a request."""


class NotificationCenter(Protocol):
    async def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> bool: ...

    async def add(self, request: NotificationRequest) -> None: ...

    async def remove_pending(self, identifiers: Iterable[str]) -> None: ...

    async def remove_delivered(self, identifiers: Iterable[str]) -> None: ...

    async def pending_requests(self) -> list[NotificationRequest]: ...

    async def delivered_requests(self) -> list[NotificationRequest]: ...


class InMemoryNotificationCenter:
    """Process-local notification center.

    Adding a request with an existing identifier replaces it, as OS
    facilities do. ``deliver_due`` plays the clock forward.
    """

    def __init__(
        self,
        status: AuthorizationStatus = AuthorizationStatus.NOT_DETERMINED,
        grant_on_request: bool = True,
        validator: Callable[[NotificationRequest], None] | None = None,
    ):
        self.status = status
        self.grant_on_request = grant_on_request
        self.validator = validator
        self.authorization_requests = 0
        self._pending: dict[str, NotificationRequest] = {}
        self._delivered: dict[str, NotificationRequest] = {}

    async def authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def request_authorization(self) -> bool:
        self.authorization_requests += 1
        if self.status == AuthorizationStatus.NOT_DETERMINED:
            self.status = (
                AuthorizationStatus.AUTHORIZED
                if self.grant_on_request
                else AuthorizationStatus.DENIED
            )
        return self.status in (AuthorizationStatus.AUTHORIZED, AuthorizationStatus.PROVISIONAL)

    async def add(self, request: NotificationRequest) -> None:
        _check_fire_spec(request)
        if self.validator is not None:
            self.validator(request)
        self._pending[request.identifier] = request

    async def remove_pending(self, identifiers: Iterable[str]) -> None:
        for ident in identifiers:
            self._pending.pop(ident, None)

    async def remove_delivered(self, identifiers: Iterable[str]) -> None:
        for ident in identifiers:
            self._delivered.pop(ident, None)

    async def pending_requests(self) -> list[NotificationRequest]:
        return sorted(self._pending.values(), key=lambda r: r.identifier)

    async def delivered_requests(self) -> list[NotificationRequest]:
        return sorted(self._delivered.values(), key=lambda r: r.identifier)

    def deliver_due(self, since: datetime, until: datetime) -> list[NotificationRequest]:
        """Deliver every pending request whose next fire time is in (since, until]."""
        fired: list[NotificationRequest] = []
        for ident, req in list(self._pending.items()):
            at = req.fire.next_fire_after(since)
            if at is None or at > until:
                continue
            self._delivered[ident] = req
            if not req.repeats:
                del self._pending[ident]
            fired.append(req)
            logger.debug("Delivered %s at %s", ident, at.isoformat())
        return fired


def _check_fire_spec(request: NotificationRequest) -> None:
    fire = request.fire
    if not (0 <= fire.hour <= 23 and 0 <= fire.minute <= 59):
        raise NotificationRejected(
            f"{request.identifier}: invalid time {fire.hour}:{fire.minute}"
        )
    if fire.weekday is not None and not 1 <= fire.weekday <= 7:
        raise NotificationRejected(f"{request.identifier}: invalid weekday {fire.weekday}")
    if fire.on_date is not None and request.repeats:
        raise NotificationRejected(f"{request.identifier}: dated trigger cannot repeat")
