"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

from skyalert.config.defaults import (
    DEFAULT_USER_AGENT,
    OPEN_METEO_FORECAST_URL,
    OPEN_METEO_GEOCODING_URL,
)


class EndpointConfig(BaseModel):
    model_config = {"extra": "forbid"}

    geocoding_base: str = OPEN_METEO_GEOCODING_URL
    forecast_base: str = OPEN_METEO_FORECAST_URL
    timeout_seconds: float = Field(default=15.0, gt=0.0)
    search_count: int = Field(default=10, ge=1, le=100)
    language: str = "en"
    user_agent: str = DEFAULT_USER_AGENT


class RetryConfig(BaseModel):
    model_config = {"extra": "forbid"}

    forecast_max_retries: int = Field(default=2, ge=0, le=10)
    search_max_retries: int = Field(default=0, ge=0, le=10)
    base_delay_ms: int = Field(default=300, ge=0)


class SearchConfig(BaseModel):
    model_config = {"extra": "forbid"}

    debounce_ms: int = Field(default=400, ge=0)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    max_entries: int | None = Field(default=None, ge=1)


class NotificationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    locale: str = "en"
    default_hour: int = Field(default=20, ge=0, le=23)
    default_minute: int = Field(default=0, ge=0, le=59)


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    endpoints: EndpointConfig = EndpointConfig()
    retry: RetryConfig = RetryConfig()
    search: SearchConfig = SearchConfig()
    cache: CacheConfig = CacheConfig()
    notifications: NotificationConfig = NotificationConfig()
