"""End-to-end tests: forecast fetch -> rule evaluation -> registered triggers."""

import json
import sqlite3
from datetime import date, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from skyalert.config.schema import AppConfig
from skyalert.errors import Cancelled, ServerError
from skyalert.ingest.forecast_client import ForecastClient
from skyalert.ingest.open_meteo import OpenMeteoProvider
from skyalert.models.location import Location
from skyalert.models.rule import NotificationRule, OneShotSetting, RuleKind
from skyalert.models.trigger import FireSpec
from skyalert.notify.center import AuthorizationStatus, InMemoryNotificationCenter
from skyalert.notify.scheduler import TriggerScheduler
from skyalert.orchestrator import NotificationOrchestrator
from skyalert.storage import rule_repo

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"
GEO_URL = "https://test-geo.example.com/v1/search"
FORECAST_URL = "https://test-api.example.com/v1/forecast"
DAILY_8PM = NotificationRule(kind=RuleKind.DAILY, hour=20, minute=0)


def _forecast_payload(tomorrow_max: float | None = None) -> dict:
    with open(FIXTURE_DIR / "open_meteo_forecast_tokyo.json") as f:
        data = json.load(f)
    if tomorrow_max is not None:
        data["daily"]["temperature_2m_max"][1] = tomorrow_max
    return data


def _forecast_route() -> respx.Route:
    return respx.get(host="test-api.example.com", path="/v1/forecast")


@pytest.fixture
def client() -> ForecastClient:
    return ForecastClient(provider=OpenMeteoProvider(GEO_URL, FORECAST_URL), sleep=AsyncMock())


@pytest.fixture
def orchestrator(
    client: ForecastClient, scheduler: TriggerScheduler, db: sqlite3.Connection
) -> NotificationOrchestrator:
    return NotificationOrchestrator(client, scheduler, db)


class TestApply:
    @pytest.mark.asyncio
    @respx.mock
    async def test_hot_day_schedules_one_shot_with_forecast_body(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload(32.0)))
        rule = NotificationRule(
            kind=RuleKind.TEMP_AT_OR_ABOVE, temperature_threshold=30, hour=21, minute=0
        )

        result = await orchestrator.apply(rule, tokyo)

        assert result.ok is True
        assert result.scheduled is True
        (req,) = await center.pending_requests()
        assert req.identifier == "forecast.reminder.1850147"
        assert req.repeats is False
        assert req.fire == FireSpec(21, 0, on_date=date(2026, 3, 10))
        assert "Tokyo" in req.content.body
        assert "32" in req.content.body

    @pytest.mark.asyncio
    @respx.mock
    async def test_threshold_not_reached_schedules_nothing(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        rule = NotificationRule(kind=RuleKind.TEMP_AT_OR_ABOVE, hour=21, minute=0)

        result = await orchestrator.apply(rule, tokyo)

        assert result.ok is True
        assert result.scheduled is False
        assert await center.pending_requests() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_edit_daily_to_one_time(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))

        await orchestrator.apply(DAILY_8PM, tokyo)
        (daily,) = await center.pending_requests()
        assert daily.repeats is True

        await orchestrator.apply(NotificationRule(kind=RuleKind.ONE_TIME, hour=20, minute=0), tokyo)
        (once,) = await center.pending_requests()
        assert once.identifier == "forecast.reminder.1850147"
        assert once.repeats is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_rainy_tomorrow(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        # Fixture day 1 has weather code 63.
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        rule = NotificationRule(kind=RuleKind.NEXT_RAINY_DAY, hour=21, minute=0)

        result = await orchestrator.apply(rule, tokyo)

        assert result.scheduled is True
        (req,) = await center.pending_requests()
        assert req.content.body == "Tokyo: Rain High 14°C / Low 8°C"

    @pytest.mark.asyncio
    @respx.mock
    async def test_forecast_failure_uses_generic_body(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(503))

        result = await orchestrator.apply(DAILY_8PM, tokyo)

        assert result.ok is True
        assert result.snapshot is None
        assert isinstance(result.forecast_error, ServerError)
        (req,) = await center.pending_requests()
        assert req.content.body == "Weather reminder"

    @pytest.mark.asyncio
    @respx.mock
    async def test_one_shot_slots(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        rule = NotificationRule(
            kind=RuleKind.DAILY,
            hour=20,
            minute=0,
            today=OneShotSetting(enabled=True, hour=18, minute=0),
            tomorrow=OneShotSetting(enabled=True, hour=9, minute=0),
        )

        await orchestrator.apply(rule, tokyo)

        ids = {r.identifier: r for r in await center.pending_requests()}
        # 09:00 already passed at 10:00, so tomorrow's slot is skipped.
        assert set(ids) == {"forecast.reminder.1850147", "forecast.reminder.1850147.today"}
        assert ids["forecast.reminder.1850147.today"].content.body == (
            "Tokyo: Partly cloudy High 19°C / Low 9°C"
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_disabling_one_shot_cancels_it(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        enabled = NotificationRule(
            kind=RuleKind.DAILY, hour=20, minute=0, today=OneShotSetting(enabled=True, hour=18)
        )
        await orchestrator.apply(enabled, tokyo)
        await orchestrator.apply(DAILY_8PM, tokyo)

        assert [r.identifier for r in await center.pending_requests()] == [
            "forecast.reminder.1850147"
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_rule_is_persisted(
        self,
        orchestrator: NotificationOrchestrator,
        db: sqlite3.Connection,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        rule = NotificationRule(kind=RuleKind.WEEKLY, weekdays={2, 6}, hour=7, minute=30)

        await orchestrator.apply(rule, tokyo)

        assert rule_repo.load_rule(db, tokyo.id) == rule
        assert orchestrator.load_rule(tokyo) == rule


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_denied_needs_settings_prompt(
        self, client: ForecastClient, db: sqlite3.Connection, tokyo: Location, now: datetime
    ):
        center = InMemoryNotificationCenter(status=AuthorizationStatus.DENIED)
        scheduler = TriggerScheduler(center, clock=lambda: now)
        client.fetch_forecast = AsyncMock(side_effect=ServerError(500))
        orchestrator = NotificationOrchestrator(client, scheduler, db)

        result = await orchestrator.apply(DAILY_8PM, tokyo)

        assert result.ok is False
        assert result.needs_settings_prompt is True
        assert result.scheduled is False
        assert await center.pending_requests() == []


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_propagates(
        self, scheduler: TriggerScheduler, center: InMemoryNotificationCenter,
        db: sqlite3.Connection, tokyo: Location,
    ):
        client = MagicMock()
        client.fetch_forecast = AsyncMock(side_effect=Cancelled())
        orchestrator = NotificationOrchestrator(client, scheduler, db)

        with pytest.raises(Cancelled):
            await orchestrator.apply(DAILY_8PM, tokyo)
        assert await center.pending_requests() == []
        assert rule_repo.load_rule(db, tokyo.id) is None


class TestLoadRefreshDisable:
    def test_default_rule_when_nothing_saved(
        self, orchestrator: NotificationOrchestrator, tokyo: Location
    ):
        rule = orchestrator.load_rule(tokyo)
        assert rule.kind == RuleKind.DAILY
        assert (rule.hour, rule.minute) == (20, 0)

    def test_from_config_default_rule(
        self, client: ForecastClient, scheduler: TriggerScheduler,
        db: sqlite3.Connection, tokyo: Location,
    ):
        config = AppConfig.model_validate(
            {"notifications": {"locale": "ja", "default_hour": 7, "default_minute": 15}}
        )
        orchestrator = NotificationOrchestrator.from_config(config, client, scheduler, db)
        assert orchestrator.locale == "ja"
        rule = orchestrator.load_rule(tokyo)
        assert (rule.hour, rule.minute) == (7, 15)

    @pytest.mark.asyncio
    async def test_refresh_without_saved_rule(
        self, orchestrator: NotificationOrchestrator, tokyo: Location
    ):
        assert await orchestrator.refresh(tokyo) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_refresh_refetches_and_reevaluates(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        route = _forecast_route()
        route.side_effect = [
            httpx.Response(200, json=_forecast_payload()),
            httpx.Response(200, json=_forecast_payload(33.0)),
        ]
        rule = NotificationRule(kind=RuleKind.TEMP_AT_OR_ABOVE, hour=21, minute=0)

        first = await orchestrator.apply(rule, tokyo)
        assert first.scheduled is False

        second = await orchestrator.refresh(tokyo)
        assert second is not None
        assert second.scheduled is True
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_disable(
        self,
        orchestrator: NotificationOrchestrator,
        center: InMemoryNotificationCenter,
        tokyo: Location,
    ):
        _forecast_route().mock(return_value=httpx.Response(200, json=_forecast_payload()))
        rule = NotificationRule(
            kind=RuleKind.WEEKLY,
            weekdays={1, 3},
            hour=7,
            minute=0,
            today=OneShotSetting(enabled=True, hour=18),
        )
        await orchestrator.apply(rule, tokyo)

        assert await orchestrator.disable(tokyo) is False
        assert await center.pending_requests() == []
        assert await orchestrator.disable(tokyo) is False
