"""Trigger slots, fire specs and notification request models."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from skyalert.models.common import LocationId


class SlotKind(StrEnum):
    PRIMARY = "primary"
    WEEKDAY = "weekday"
    TODAY = "today"
    TOMORROW = "tomorrow"


@dataclass(frozen=True)
class Slot:
    kind: SlotKind
    weekday: int | None = None  # 1=Sunday ... 7=Saturday, WEEKDAY slots only

    @classmethod
    def weekly(cls, weekday: int) -> "Slot":
        return cls(SlotKind.WEEKDAY, weekday)

    @property
    def is_one_shot(self) -> bool:
        return self.kind in (SlotKind.TODAY, SlotKind.TOMORROW)


PRIMARY = Slot(SlotKind.PRIMARY)
TODAY = Slot(SlotKind.TODAY)
TOMORROW = Slot(SlotKind.TOMORROW)
RULE_SLOTS: tuple[Slot, ...] = (PRIMARY, *(Slot.weekly(w) for w in range(1, 8)))
ALL_SLOTS: tuple[Slot, ...] = (*RULE_SLOTS, TODAY, TOMORROW)


def python_weekday(weekday: int) -> int:
    """Convert 1=Sunday..7=Saturday to datetime.weekday() (0=Monday)."""
    return (weekday - 2) % 7


@dataclass(frozen=True)
class FireSpec:
    """Calendar components a trigger matches.

    A spec with ``on_date`` names one concrete day. Without it the spec
    matches every day, or every matching weekday when ``weekday`` is set.
    """

    hour: int
    minute: int
    weekday: int | None = None
    on_date: date | None = None

    def next_fire_after(self, now: datetime) -> datetime | None:
        at = time(self.hour, self.minute)
        if self.on_date is not None:
            candidate = datetime.combine(self.on_date, at, tzinfo=now.tzinfo)
            return candidate if candidate > now else None
        for offset in range(8):
            day = now.date() + timedelta(days=offset)
            if self.weekday is not None and day.weekday() != python_weekday(self.weekday):
                continue
            candidate = datetime.combine(day, at, tzinfo=now.tzinfo)
            if candidate > now:
                return candidate
        return None


@dataclass(frozen=True)
class TriggerPlan:
    slot: Slot
    fire: FireSpec
    repeats: bool


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str


@dataclass(frozen=True)
class NotificationRequest:
    identifier: str
    content: NotificationContent
    fire: FireSpec
    repeats: bool


@dataclass(frozen=True)
class ScheduledTrigger:
    location_id: LocationId
    slot: Slot
    request_id: str
    repeats: bool
    fire: FireSpec
