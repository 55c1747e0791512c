"""Cache domain models."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from weather_block.domain.weather import WeatherRecord


@dataclass(frozen=True)
class CacheEntry:
    """A stored weather record with its absolute expiry."""

    key: str
    payload: WeatherRecord
    cached_at: datetime
    expires_at: datetime
    size_bytes: int

    def is_expired(self, now: datetime) -> bool:
        """Return True once `now` reaches the expiry time."""
        return now >= self.expires_at

    def time_left(self, now: datetime) -> timedelta:
        """Return the remaining lifetime, never negative."""
        return max(self.expires_at - now, timedelta(0))


@dataclass(frozen=True)
class CacheInfo:
    """How a weather result was served."""

    cached: bool
    cached_at: datetime | None = None
    time_left: timedelta | None = None


@dataclass(frozen=True)
class CacheEntryInfo:
    """Metadata about a single cache entry."""

    cached_at: datetime
    expires_at: datetime
    time_left: timedelta
    is_expired: bool
    size_bytes: int


@dataclass(frozen=True)
class CacheStats:
    """Aggregate numbers over live cache entries."""

    count: int
    total_size_bytes: int


@dataclass(frozen=True)
class WeatherResult:
    """A weather record together with its cache status."""

    record: WeatherRecord
    cache_info: CacheInfo
