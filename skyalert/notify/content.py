"""Notification titles and bodies built from a forecast snapshot."""

from skyalert.models.forecast import DailyForecast, ForecastSnapshot
from skyalert.models.trigger import NotificationContent, Slot, SlotKind

_DESCRIPTIONS: list[tuple[frozenset[int], str, str]] = [
    (frozenset({0}), "Clear", "快晴"),
    (frozenset({1}), "Sunny", "晴れ"),
    (frozenset({2}), "Partly cloudy", "薄曇り"),
    (frozenset({3}), "Cloudy", "曇天"),
    (frozenset({45, 48}), "Fog", "霧"),
    (frozenset({51, 53, 55, 56, 57}), "Drizzle", "霧雨"),
    (frozenset({61, 63, 65, 66, 67, 80, 81, 82}), "Rain", "雨"),
    (frozenset({71, 73, 75, 77, 85, 86}), "Snow", "雪"),
    (frozenset({95, 96, 99}), "Thunderstorm", "雷雨"),
]

_TITLES = {
    SlotKind.PRIMARY: ("Weather Reminder", "天気の通知"),
    SlotKind.WEEKDAY: ("Weather Reminder", "天気の通知"),
    SlotKind.TODAY: ("Today's Weather", "本日の天気"),
    SlotKind.TOMORROW: ("Tomorrow's Weather", "明日の天気"),
}

_GENERIC_BODY = ("Weather reminder", "天気のリマインダー")
_GENERIC_TODAY_BODY = ("Reminder for today's weather", "本日の天気のリマインダー")


def is_japanese(locale: str) -> bool:
    return locale.lower().replace("-", "_").startswith("ja")


def weather_description(code: int, locale: str = "en") -> str:
    ja = is_japanese(locale)
    for codes, en_text, ja_text in _DESCRIPTIONS:
        if code in codes:
            return ja_text if ja else en_text
    return "天気" if ja else "Weather"


def format_day(city_name: str, day: DailyForecast, locale: str = "en") -> str:
    desc = weather_description(day.weather_code, locale)
    high, low = int(day.max_temp_c), int(day.min_temp_c)
    if is_japanese(locale):
        return f"{city_name}：{desc} 最高{high}℃ / 最低{low}℃"
    return f"{city_name}: {desc} High {high}°C / Low {low}°C"


def build_content(
    slot: Slot,
    city_name: str,
    snapshot: ForecastSnapshot | None,
    locale: str = "en",
) -> NotificationContent:
    """Today's slot reads day 0; every other slot reads tomorrow's entry."""
    pick = 1 if is_japanese(locale) else 0
    title = _TITLES[slot.kind][pick]
    if snapshot is None:
        generic = _GENERIC_TODAY_BODY if slot.kind == SlotKind.TODAY else _GENERIC_BODY
        return NotificationContent(title=title, body=generic[pick])
    day = snapshot.today if slot.kind == SlotKind.TODAY else snapshot.tomorrow
    return NotificationContent(title=title, body=format_day(city_name, day, locale))
