"""Application configuration."""

import os

from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openweather_api_key: str
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    request_timeout_seconds: float = 10.0
    cache_ttl_seconds: PositiveInt = 900
    cache_backend: str = "memory"
    cache_table: str = "weather_cache"
    cache_sweep_interval_seconds: int = 0
    coalesce_requests: bool = False
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cache_backend(raw: str | None) -> str:
    """Normalize the configured cache backend name."""
    if raw is None:
        return "memory"
    cleaned = raw.strip().lower()
    if cleaned in {"", "memory", "inmemory", "in-memory"}:
        return "memory"
    if cleaned == "supabase":
        return "supabase"
    raise ValueError(f"Unknown cache backend: {raw}")
