"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from weather_block.adapters.openweather_client import (
    HttpxOpenWeatherClient,
    WeatherClient,
)
from weather_block.adapters.supabase_cache_store import SupabaseCacheStore
from weather_block.config import Settings, parse_cache_backend
from weather_block.services.cache import CacheStore, InMemoryCacheStore, WeatherCache
from weather_block.services.weather import WeatherService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    weather_client: WeatherClient
    weather_service: WeatherService
    close_resources: Callable[[], Awaitable[None]]


def build_cache_store(settings: Settings) -> CacheStore:
    """Create the cache store selected by settings."""
    backend = parse_cache_backend(settings.cache_backend)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required "
                "for the supabase cache backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseCacheStore(client, table=settings.cache_table)
    return InMemoryCacheStore()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    cache_store = build_cache_store(resolved_settings)
    weather_client = HttpxOpenWeatherClient.create(
        api_key=resolved_settings.openweather_api_key,
        base_url=resolved_settings.openweather_base_url,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    weather_service = WeatherService(
        client=weather_client,
        cache=WeatherCache(cache_store),
        ttl_seconds=resolved_settings.cache_ttl_seconds,
        coalesce_requests=resolved_settings.coalesce_requests,
        debug=resolved_settings.debug,
    )

    async def close_resources() -> None:
        await weather_client.close()

    return AppContainer(
        settings=resolved_settings,
        weather_client=weather_client,
        weather_service=weather_service,
        close_resources=close_resources,
    )
