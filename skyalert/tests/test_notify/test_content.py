"""Tests for notification title and body text."""

from collections.abc import Callable

from skyalert.models.forecast import ForecastSnapshot
from skyalert.models.trigger import PRIMARY, TODAY, TOMORROW, Slot
from skyalert.notify.content import build_content, is_japanese, weather_description

Snap = Callable[..., ForecastSnapshot]


class TestWeatherDescription:
    def test_english(self):
        assert weather_description(0) == "Clear"
        assert weather_description(63) == "Rain"
        assert weather_description(95) == "Thunderstorm"

    def test_japanese(self):
        assert weather_description(63, "ja") == "雨"

    def test_unknown_code(self):
        assert weather_description(1234) == "Weather"

    def test_locale_detection(self):
        assert is_japanese("ja-JP")
        assert is_japanese("ja_JP")
        assert not is_japanese("en_US")


class TestBuildContent:
    def test_rule_slot_uses_tomorrow(self, make_snapshot: Snap):
        snap = make_snapshot((0, 19.6, 9.2), (63, 14.8, 8.1))
        content = build_content(PRIMARY, "Tokyo", snap)
        assert content.title == "Weather Reminder"
        assert content.body == "Tokyo: Rain High 14°C / Low 8°C"

    def test_weekly_slot_same_as_primary(self, make_snapshot: Snap):
        snap = make_snapshot((0, 20, 10), (3, 16, 7))
        assert build_content(Slot.weekly(2), "Tokyo", snap) == build_content(PRIMARY, "Tokyo", snap)

    def test_today_slot_uses_day_zero(self, make_snapshot: Snap):
        snap = make_snapshot((0, 19.6, 9.2), (63, 14.8, 8.1))
        content = build_content(TODAY, "Tokyo", snap)
        assert content.title == "Today's Weather"
        assert content.body == "Tokyo: Clear High 19°C / Low 9°C"

    def test_tomorrow_slot_single_day_fallback(self, make_snapshot: Snap):
        snap = make_snapshot((61, 12, 4))
        content = build_content(TOMORROW, "Sapporo", snap)
        assert content.title == "Tomorrow's Weather"
        assert "Rain" in content.body

    def test_japanese_body(self, make_snapshot: Snap):
        snap = make_snapshot((0, 20, 10), (63, 14.8, 8.1))
        content = build_content(PRIMARY, "東京", snap, locale="ja")
        assert content.title == "天気の通知"
        assert content.body == "東京：雨 最高14℃ / 最低8℃"

    def test_generic_body_without_snapshot(self):
        assert build_content(PRIMARY, "Tokyo", None).body == "Weather reminder"
        assert build_content(TODAY, "Tokyo", None).body == "Reminder for today's weather"
        assert build_content(TOMORROW, "Tokyo", None, "ja").body == "天気のリマインダー"
