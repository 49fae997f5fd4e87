"""Notification rule model, persisted per location."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

SUNDAY = 1
SATURDAY = 7

DEFAULT_ABOVE_THRESHOLD_C = 30.0
DEFAULT_BELOW_THRESHOLD_C = 5.0


class RuleKind(StrEnum):
    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEXT_RAINY_DAY = "next_rainy_day"
    TEMP_AT_OR_ABOVE = "temp_at_or_above"
    TEMP_AT_OR_BELOW = "temp_at_or_below"

    @property
    def is_conditional(self) -> bool:
        return self in (
            RuleKind.NEXT_RAINY_DAY,
            RuleKind.TEMP_AT_OR_ABOVE,
            RuleKind.TEMP_AT_OR_BELOW,
        )


class OneShotSetting(BaseModel):
    """Per-day one-shot toggle (today or tomorrow)."""

    model_config = {"extra": "forbid", "frozen": True}

    enabled: bool = False
    hour: int = Field(default=9, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)


class NotificationRule(BaseModel):
    model_config = {"extra": "forbid", "frozen": True}

    kind: RuleKind
    weekdays: frozenset[int] | None = None  # 1=Sunday ... 7=Saturday
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    temperature_threshold: float | None = None
    today: OneShotSetting = OneShotSetting()
    tomorrow: OneShotSetting = OneShotSetting()

    @model_validator(mode="before")
    @classmethod
    def _default_threshold(cls, data):
        if isinstance(data, dict) and data.get("temperature_threshold") is None:
            kind = data.get("kind")
            if kind == RuleKind.TEMP_AT_OR_ABOVE:
                data = {**data, "temperature_threshold": DEFAULT_ABOVE_THRESHOLD_C}
            elif kind == RuleKind.TEMP_AT_OR_BELOW:
                data = {**data, "temperature_threshold": DEFAULT_BELOW_THRESHOLD_C}
        return data

    @field_validator("weekdays")
    @classmethod
    def _weekdays_in_range(cls, v: frozenset[int] | None) -> frozenset[int] | None:
        if v is None:
            return v
        bad = sorted(d for d in v if not SUNDAY <= d <= SATURDAY)
        if bad:
            raise ValueError(f"weekday out of range 1..7: {bad}")
        return v

    @model_validator(mode="after")
    def _weekdays_match_kind(self) -> "NotificationRule":
        if self.kind == RuleKind.WEEKLY:
            if not self.weekdays:
                raise ValueError("weekly rule requires a non-empty weekday set")
        elif self.weekdays is not None:
            raise ValueError(f"weekdays only apply to weekly rules, not {self.kind}")
        return self
