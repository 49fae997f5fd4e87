"""Trigger scheduler: converges registered notifications to a rule.

Trigger identifiers are built deterministically from the location id:

    forecast.reminder.<id>            primary rule
    forecast.reminder.<id>.w<1..7>    weekly rule, one per weekday
    forecast.reminder.<id>.today      one-shot for today
    forecast.reminder.<id>.tomorrow   one-shot with tomorrow's forecast

Lookups and cancellation match against exactly this scheme.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import StrEnum

from skyalert.models.common import LocationId, local_now
from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.rule import NotificationRule
from skyalert.models.trigger import (
    ALL_SLOTS,
    RULE_SLOTS,
    FireSpec,
    NotificationContent,
    NotificationRequest,
    ScheduledTrigger,
    Slot,
    SlotKind,
)
from skyalert.notify.center import AuthorizationStatus, NotificationCenter
from skyalert.notify.content import build_content
from skyalert.notify.evaluator import evaluate, today_fire_spec

logger = logging.getLogger(__name__)

ID_PREFIX = "forecast.reminder"


class SlotState(StrEnum):
    ABSENT = "absent"
    PENDING = "pending"  # waiting on authorization
    SCHEDULED = "scheduled"
    FIRED = "fired"


def base_identifier(location_id: LocationId) -> str:
    return f"{ID_PREFIX}.{location_id}"


def trigger_identifier(location_id: LocationId, slot: Slot) -> str:
    base = base_identifier(location_id)
    if slot.kind == SlotKind.PRIMARY:
        return base
    if slot.kind == SlotKind.WEEKDAY:
        return f"{base}.w{slot.weekday}"
    return f"{base}.{slot.kind.value}"


def slot_for_identifier(location_id: LocationId, identifier: str) -> Slot | None:
    """Inverse of trigger_identifier; None if the id belongs elsewhere."""
    for slot in ALL_SLOTS:
        if trigger_identifier(location_id, slot) == identifier:
            return slot
    return None


class TriggerScheduler:
    def __init__(
        self,
        center: NotificationCenter,
        clock: Callable[[], datetime] = local_now,
    ):
        self.center = center
        self.clock = clock
        self._locks: defaultdict[LocationId, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._authorizing: Counter[LocationId] = Counter()

    # --- Queries ---

    async def scheduled_triggers(self, location_id: LocationId) -> list[ScheduledTrigger]:
        triggers = []
        for req in await self.center.pending_requests():
            slot = slot_for_identifier(location_id, req.identifier)
            if slot is None:
                continue
            triggers.append(
                ScheduledTrigger(
                    location_id=location_id,
                    slot=slot,
                    request_id=req.identifier,
                    repeats=req.repeats,
                    fire=req.fire,
                )
            )
        return triggers

    async def is_scheduled(self, location_id: LocationId) -> bool:
        return bool(await self.scheduled_triggers(location_id))

    async def slot_state(self, location_id: LocationId, slot: Slot) -> SlotState:
        ident = trigger_identifier(location_id, slot)
        if any(r.identifier == ident for r in await self.center.pending_requests()):
            return SlotState.SCHEDULED
        if self._authorizing[location_id] > 0:
            return SlotState.PENDING
        if any(r.identifier == ident for r in await self.center.delivered_requests()):
            return SlotState.FIRED
        return SlotState.ABSENT

    # --- Authorization ---

    async def ensure_authorized(self, location_id: LocationId) -> bool:
        self._authorizing[location_id] += 1
        try:
            status = await self.center.authorization_status()
            if status == AuthorizationStatus.NOT_DETERMINED:
                try:
                    return await self.center.request_authorization()
                except Exception:
                    logger.warning("Notification authorization request failed", exc_info=True)
                    return False
            return status != AuthorizationStatus.DENIED
        finally:
            self._authorizing[location_id] -= 1
            if not self._authorizing[location_id]:
                del self._authorizing[location_id]

    # --- Mutations ---

    async def cancel_all(self, location_id: LocationId) -> None:
        """Remove every slot, pending or delivered. Safe to repeat."""
        async with self._locks[location_id]:
            await self._cancel(location_id, ALL_SLOTS)

    async def reconcile(
        self,
        rule: NotificationRule,
        location_id: LocationId,
        location_name: str,
        snapshot: ForecastSnapshot | None,
        locale: str = "en",
        now: datetime | None = None,
    ) -> bool:
        """Replace the rule's triggers for a location.

        Returns False only when notifications are not authorized. A
        conditional rule whose condition does not hold leaves no rule
        trigger behind and still returns True. Today/tomorrow slots are
        left alone.
        """
        if not await self.ensure_authorized(location_id):
            logger.info("Notifications not authorized; skipping %s", location_id)
            return False

        async with self._locks[location_id]:
            await self._cancel(location_id, RULE_SLOTS)

            evaluation = evaluate(rule, snapshot, now or self.clock())
            if not evaluation.fire:
                logger.info(
                    "Rule %s for %s not met; nothing scheduled", rule.kind, location_id
                )
                return True

            for plan in evaluation.plans:
                content = build_content(plan.slot, location_name, snapshot, locale)
                await self._register(location_id, plan.slot, content, plan.fire, plan.repeats)
        return True

    async def schedule_slot(
        self,
        location_id: LocationId,
        slot: Slot,
        hour: int,
        minute: int,
        content: NotificationContent,
        now: datetime | None = None,
    ) -> ScheduledTrigger | None:
        """Schedule the today or tomorrow one-shot for hour:minute today.

        A time that has already passed today is skipped and returns None.
        """
        if not slot.is_one_shot:
            raise ValueError(f"schedule_slot only handles one-shot slots, got {slot.kind}")
        async with self._locks[location_id]:
            await self._cancel(location_id, [slot])
            fire = today_fire_spec(hour, minute, now or self.clock())
            if fire is None:
                logger.info(
                    "Skipping %s slot for %s: %02d:%02d already passed",
                    slot.kind, location_id, hour, minute,
                )
                return None
            return await self._register(location_id, slot, content, fire, repeats=False)

    async def cancel_slot(self, location_id: LocationId, slot: Slot) -> None:
        async with self._locks[location_id]:
            await self._cancel(location_id, [slot])

    # --- Internals ---

    async def _cancel(self, location_id: LocationId, slots: Iterable[Slot]) -> None:
        ids = [trigger_identifier(location_id, s) for s in slots]
        await self.center.remove_pending(ids)
        await self.center.remove_delivered(ids)

    async def _register(
        self,
        location_id: LocationId,
        slot: Slot,
        content: NotificationContent,
        fire: FireSpec,
        repeats: bool,
    ) -> ScheduledTrigger | None:
        ident = trigger_identifier(location_id, slot)
        request = NotificationRequest(
            identifier=ident, content=content, fire=fire, repeats=repeats
        )
        try:
            await self.center.add(request)
        except Exception:
            logger.warning("Failed to register trigger %s", ident, exc_info=True)
            return None
        logger.debug("Registered %s repeats=%s fire=%s", ident, repeats, fire)
        return ScheduledTrigger(
            location_id=location_id,
            slot=slot,
            request_id=ident,
            repeats=repeats,
            fire=fire,
        )
