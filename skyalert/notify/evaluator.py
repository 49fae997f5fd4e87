"""Rule evaluation: decide whether a rule fires and when.

Everything here is pure. Given the same rule, snapshot and ``now`` the
result is identical, and a missing snapshot only ever means "condition not
met".
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from skyalert.models.common import local_now
from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.rule import NotificationRule, RuleKind
from skyalert.models.trigger import PRIMARY, FireSpec, Slot, TriggerPlan

# WMO codes for drizzle, freezing drizzle, rain, freezing rain, showers and thunderstorms.
RAIN_CODES: frozenset[int] = frozenset(
    {51, 53, 55, 56, 57, 61, 63, 65, 66, 67, 80, 81, 82, 95, 96, 99}
)


@dataclass(frozen=True)
class Evaluation:
    fire: bool
    plans: tuple[TriggerPlan, ...]


def condition_met(rule: NotificationRule, snapshot: ForecastSnapshot | None) -> bool:
    if not rule.kind.is_conditional:
        return True
    if snapshot is None:
        return False

    day = snapshot.tomorrow
    if rule.kind == RuleKind.NEXT_RAINY_DAY:
        return day.weather_code in RAIN_CODES
    if rule.kind == RuleKind.TEMP_AT_OR_ABOVE:
        return day.max_temp_c >= rule.temperature_threshold
    return day.min_temp_c <= rule.temperature_threshold


def next_occurrence(hour: int, minute: int, now: datetime) -> datetime:
    """Next hour:minute strictly after ``now``, in now's time zone."""
    today = datetime.combine(now.date(), time(hour, minute), tzinfo=now.tzinfo)
    if today > now:
        return today
    return datetime.combine(
        now.date() + timedelta(days=1), time(hour, minute), tzinfo=now.tzinfo
    )


def today_fire_spec(hour: int, minute: int, now: datetime) -> FireSpec | None:
    """Fire spec for hour:minute today, or None if that time has passed."""
    target = datetime.combine(now.date(), time(hour, minute), tzinfo=now.tzinfo)
    if target <= now:
        return None
    return FireSpec(hour=hour, minute=minute, on_date=now.date())


def evaluate(
    rule: NotificationRule,
    snapshot: ForecastSnapshot | None,
    now: datetime | None = None,
) -> Evaluation:
    if now is None:
        now = local_now()

    if rule.kind == RuleKind.DAILY:
        plan = TriggerPlan(PRIMARY, FireSpec(rule.hour, rule.minute), repeats=True)
        return Evaluation(fire=True, plans=(plan,))

    if rule.kind == RuleKind.WEEKLY:
        plans = tuple(
            TriggerPlan(
                Slot.weekly(wd),
                FireSpec(rule.hour, rule.minute, weekday=wd),
                repeats=True,
            )
            for wd in sorted(rule.weekdays or ())
        )
        return Evaluation(fire=bool(plans), plans=plans)

    # One-time and conditional rules: a single non-repeating trigger.
    if not condition_met(rule, snapshot):
        return Evaluation(fire=False, plans=())
    at = next_occurrence(rule.hour, rule.minute, now)
    plan = TriggerPlan(
        PRIMARY,
        FireSpec(rule.hour, rule.minute, on_date=at.date()),
        repeats=False,
    )
    return Evaluation(fire=True, plans=(plan,))
