"""Current-weather lookups with a short-lived cache in front of the provider."""

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field

from weather_block.adapters.openweather_client import WeatherClient
from weather_block.domain.cache import (
    CacheEntryInfo,
    CacheInfo,
    CacheStats,
    WeatherResult,
)
from weather_block.domain.errors import CacheUnavailableError, InvalidLocationError
from weather_block.domain.weather import WeatherRecord, normalize_units
from weather_block.services.cache import DEFAULT_TTL_SECONDS, WeatherCache

_logger = logging.getLogger(__name__)


def build_cache_key(location: str, units: str) -> str:
    """Derive a stable cache key from a location and unit system."""
    normalized = f"{location.strip().lower()}|{units}"
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"weather_{digest}"


@dataclass
class WeatherService:
    """Service for current-weather lookups with caching.

    Failed lookups are never cached. Concurrent misses on the same key each
    reach the provider unless `coalesce_requests` is enabled, in which case
    they share a single in-flight call.
    """

    client: WeatherClient
    cache: WeatherCache
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    coalesce_requests: bool = False
    debug: bool = False
    _inflight: dict[str, "asyncio.Future[WeatherRecord]"] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive")

    async def get_weather(self, location: str, units: str | None) -> WeatherResult:
        """Return weather for a location, from cache when fresh."""
        cleaned = location.strip() if location else ""
        if not cleaned:
            raise InvalidLocationError()
        resolved_units = normalize_units(units)
        cache_key = build_cache_key(cleaned, resolved_units)

        entry = None
        try:
            entry = self.cache.get(cache_key)
        except CacheUnavailableError:
            _logger.warning("Weather cache read failed", exc_info=True)
        if entry is not None:
            if self.debug:
                _logger.debug("Weather cache hit: location=%s units=%s", cleaned, units)
            return WeatherResult(
                record=entry.payload,
                cache_info=CacheInfo(
                    cached=True,
                    cached_at=entry.cached_at,
                    time_left=entry.time_left(self.cache.clock()),
                ),
            )

        if self.debug:
            _logger.debug("Weather cache miss: location=%s units=%s", cleaned, units)
        if self.coalesce_requests:
            record = await self._fetch_once(cache_key, cleaned, resolved_units)
        else:
            record = await self._fetch_and_store(cache_key, cleaned, resolved_units)
        return WeatherResult(record=record, cache_info=CacheInfo(cached=False))

    def clear_all(self) -> int:
        """Remove every cached weather record."""
        cleared = self.cache.clear_all()
        _logger.info("Weather cache cleared: entries=%s", cleared)
        return cleared

    def stats(self) -> CacheStats:
        """Return cache entry count and size."""
        return self.cache.stats()

    def info(self, location: str, units: str | None) -> CacheEntryInfo | None:
        """Describe the cache entry for a lookup without fetching."""
        cleaned = location.strip() if location else ""
        if not cleaned:
            raise InvalidLocationError()
        return self.cache.info(build_cache_key(cleaned, normalize_units(units)))

    def cleanup_expired(self) -> int:
        """Reclaim entries that expired without being read again."""
        cleaned = self.cache.cleanup_expired()
        if cleaned and self.debug:
            _logger.debug("Weather cache sweep: removed=%s", cleaned)
        return cleaned

    async def _fetch_and_store(
        self, cache_key: str, location: str, units: str
    ) -> WeatherRecord:
        record = await self.client.fetch(location, units)
        try:
            self.cache.set(cache_key, record, ttl_seconds=self.ttl_seconds)
        except CacheUnavailableError:
            _logger.warning("Weather cache write failed", exc_info=True)
        return record

    async def _fetch_once(
        self, cache_key: str, location: str, units: str
    ) -> WeatherRecord:
        """Share one upstream call between concurrent misses on a key."""
        pending = self._inflight.get(cache_key)
        if pending is not None:
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if not pending.cancelled() or (task and task.cancelling()):
                    raise
            # The leading caller was cancelled, not this one; fetch again.
            return await self._fetch_once(cache_key, location, units)

        future: asyncio.Future[WeatherRecord] = (
            asyncio.get_running_loop().create_future()
        )
        self._inflight[cache_key] = future
        try:
            record = await self._fetch_and_store(cache_key, location, units)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Marks the exception retrieved when no caller is waiting.
            future.exception()
            raise
        else:
            future.set_result(record)
            return record
        finally:
            self._inflight.pop(cache_key, None)
