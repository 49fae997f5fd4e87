"""Provider endpoints and default notification settings."""

from skyalert.models.rule import NotificationRule, RuleKind

OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_USER_AGENT = "skyalert/0.1.0"

DEFAULT_RULE = NotificationRule(kind=RuleKind.DAILY, hour=20, minute=0)
