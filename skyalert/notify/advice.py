"""Clothing advice from current conditions (en/ja)."""

from skyalert.models.forecast import CurrentConditions
from skyalert.notify.content import is_japanese
from skyalert.notify.evaluator import RAIN_CODES

KMH_PER_MS = 3.6

# Wind speeds in m/s.
BREEZY_MS = 8.0
WINDY_MS = 12.0

# (upper bound of feels-like °C, exclusive; en; ja). The last band is open-ended.
_BANDS: list[tuple[float, str, str]] = [
    (
        0.0,
        "Frigid: heavy down jacket, gloves & scarf",
        "極寒：ダウン＋手袋・マフラー必須",
    ),
    (
        5.0,
        "Very cold: heavy coat + winter accessories",
        "とても寒い：厚手コート＋防寒小物",
    ),
    (10.0, "Cold: coat or thick outer layer", "寒い：コートや厚手の上着"),
    (16.0, "Chilly: light jacket", "肌寒い：ライトアウター"),
    (22.0, "Mild: long sleeves recommended", "快適：長袖が無難"),
]
_WARM_LIMIT = 28.0
_WARM = ("Warm: lightwear", "やや暑い：薄手で快適")
_WARM_BREEZY = ("Warm: lightwear + outer (windy)", "暑め：薄手＋羽織り（風強め）")
_HOT = ("Hot: T-shirt, stay hydrated", "猛暑：半袖＋こまめに水分補給")
_UMBRELLA = ("Bring an umbrella", "傘を忘れずに")
_WIND_NOTE = ("Windy: secure hats or layers", "風が強いので帽子や固定できる服装を")


def feels_like(current: CurrentConditions) -> float:
    """Apparent temperature, or the colder of air and apparent in a breeze."""
    if current.wind_speed_kmh / KMH_PER_MS >= BREEZY_MS:
        return min(current.temperature_c, current.apparent_temperature_c)
    return current.apparent_temperature_c


def clothing_advice(current: CurrentConditions, locale: str = "en") -> str:
    pick = 1 if is_japanese(locale) else 0
    wind_ms = current.wind_speed_kmh / KMH_PER_MS
    feels = feels_like(current)

    parts: list[str] = []
    if current.weather_code in RAIN_CODES:
        parts.append(_UMBRELLA[pick])

    for upper, en_text, ja_text in _BANDS:
        if feels < upper:
            parts.append((en_text, ja_text)[pick])
            break
    else:
        if feels < _WARM_LIMIT:
            parts.append((_WARM_BREEZY if wind_ms >= BREEZY_MS else _WARM)[pick])
        else:
            parts.append(_HOT[pick])

    if wind_ms >= WINDY_MS:
        parts.append(_WIND_NOTE[pick])

    if pick:
        return "アドバイス：" + "／".join(parts)
    return "Advice: " + " / ".join(parts)
