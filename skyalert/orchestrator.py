"""Notification orchestrator: forecast -> evaluation -> scheduled triggers."""

import logging
import sqlite3
from dataclasses import dataclass

from skyalert.config.defaults import DEFAULT_RULE
from skyalert.config.schema import AppConfig
from skyalert.errors import Cancelled, ForecastError
from skyalert.ingest.forecast_client import ForecastClient
from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.location import Location
from skyalert.models.rule import NotificationRule, RuleKind
from skyalert.models.trigger import TODAY, TOMORROW
from skyalert.notify.content import build_content
from skyalert.notify.scheduler import TriggerScheduler
from skyalert.storage import rule_repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    ok: bool
    scheduled: bool
    snapshot: ForecastSnapshot | None
    forecast_error: ForecastError | None = None

    @property
    def needs_settings_prompt(self) -> bool:
        """True when the caller should offer to open system notification settings."""
        return not self.ok


class NotificationOrchestrator:
    def __init__(
        self,
        client: ForecastClient,
        scheduler: TriggerScheduler,
        conn: sqlite3.Connection,
        locale: str = "en",
        default_rule: NotificationRule | None = None,
    ):
        self.client = client
        self.scheduler = scheduler
        self.conn = conn
        self.locale = locale
        self.default_rule = default_rule or DEFAULT_RULE

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        client: ForecastClient,
        scheduler: TriggerScheduler,
        conn: sqlite3.Connection,
    ) -> "NotificationOrchestrator":
        n = config.notifications
        return cls(
            client,
            scheduler,
            conn,
            locale=n.locale,
            default_rule=NotificationRule(
                kind=RuleKind.DAILY, hour=n.default_hour, minute=n.default_minute
            ),
        )

    def load_rule(self, location: Location) -> NotificationRule:
        return rule_repo.load_rule(self.conn, location.id) or self.default_rule

    async def apply(self, rule: NotificationRule, location: Location) -> ApplyResult:
        """Save ``rule`` for ``location`` and converge its triggers.

        Forecast failures degrade to scheduling without a snapshot;
        cancellation propagates.
        """
        snapshot, error = await self._load_forecast(location)

        ok = await self.scheduler.reconcile(
            rule, location.id, location.name, snapshot, self.locale
        )
        rule_repo.save_rule(self.conn, location.id, rule)
        if ok:
            await self._apply_one_shots(rule, location, snapshot)

        scheduled = await self.scheduler.is_scheduled(location.id)
        logger.info(
            "Applied %s rule for %s (%s): ok=%s scheduled=%s",
            rule.kind, location.name, location.id, ok, scheduled,
        )
        return ApplyResult(ok=ok, scheduled=scheduled, snapshot=snapshot, forecast_error=error)

    async def refresh(self, location: Location) -> ApplyResult | None:
        """Re-apply the saved rule against a fresh forecast, if one is saved."""
        rule = rule_repo.load_rule(self.conn, location.id)
        if rule is None:
            return None
        self.client.cache.invalidate_forecast(location)
        return await self.apply(rule, location)

    async def disable(self, location: Location) -> bool:
        """Cancel every trigger for the location. Returns is_scheduled afterwards."""
        await self.scheduler.cancel_all(location.id)
        return await self.scheduler.is_scheduled(location.id)

    async def _load_forecast(
        self, location: Location
    ) -> tuple[ForecastSnapshot | None, ForecastError | None]:
        try:
            return await self.client.fetch_forecast(location), None
        except Cancelled:
            raise
        except ForecastError as e:
            logger.warning(
                "Forecast unavailable for %s (%s): %s", location.name, e.kind, e.message
            )
            return None, e

    async def _apply_one_shots(
        self,
        rule: NotificationRule,
        location: Location,
        snapshot: ForecastSnapshot | None,
    ) -> None:
        for slot, setting in ((TODAY, rule.today), (TOMORROW, rule.tomorrow)):
            if setting.enabled:
                content = build_content(slot, location.name, snapshot, self.locale)
                await self.scheduler.schedule_slot(
                    location.id, slot, setting.hour, setting.minute, content
                )
            else:
                await self.scheduler.cancel_slot(location.id, slot)
