"""TTL cache for weather records over a pluggable key-value store."""

import json
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from weather_block.domain.cache import CacheEntry, CacheEntryInfo, CacheStats
from weather_block.domain.weather import WeatherRecord, weather_record_to_dict

CACHE_PREFIX = "weather_block_"
DEFAULT_TTL_SECONDS = 15 * 60
MAX_TTL_SECONDS = 24 * 60 * 60

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class CacheStore(Protocol):
    """Key-value storage for cache entries.

    Implementations raise `CacheUnavailableError` when the backend fails.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry for a key, expired or not."""

    def set(self, entry: CacheEntry) -> None:
        """Insert or replace an entry."""

    def delete(self, key: str) -> bool:
        """Delete an entry and report whether it existed."""

    def scan(self, prefix: str) -> list[CacheEntry]:
        """Return every entry whose key starts with the prefix."""


@dataclass
class InMemoryCacheStore(CacheStore):
    """Process-local store guarded by a lock."""

    _entries: dict[str, CacheEntry]

    def __init__(self) -> None:
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def scan(self, prefix: str) -> list[CacheEntry]:
        with self._lock:
            return [
                entry for key, entry in self._entries.items() if key.startswith(prefix)
            ]


@dataclass
class WeatherCache:
    """Namespaced TTL cache for weather records.

    Entries are served only while the clock is strictly before their expiry.
    Expired entries are evicted when read, or in bulk by `cleanup_expired`.
    """

    store: CacheStore
    clock: Callable[[], datetime] = field(default=_utc_now)
    prefix: str = CACHE_PREFIX
    default_ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_ttl_seconds: int = MAX_TTL_SECONDS

    def get(self, key: str) -> CacheEntry | None:
        """Return a live entry, evicting it if it has expired."""
        store_key = self._store_key(key)
        entry = self.store.get(store_key)
        if entry is None:
            return None
        if entry.is_expired(self.clock()):
            self.store.delete(store_key)
            return None
        return entry

    def set(
        self, key: str, record: WeatherRecord, ttl_seconds: int | None = None
    ) -> CacheEntry:
        """Store a record with a TTL capped at the configured maximum."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive")
        ttl = min(ttl, self.max_ttl_seconds)
        now = self.clock()
        entry = CacheEntry(
            key=self._store_key(key),
            payload=record,
            cached_at=now,
            expires_at=now + timedelta(seconds=ttl),
            size_bytes=record_size(record),
        )
        self.store.set(entry)
        return entry

    def delete(self, key: str) -> bool:
        """Remove an entry."""
        return self.store.delete(self._store_key(key))

    def refresh(self, key: str) -> bool:
        """Drop an entry so the next read fetches fresh data."""
        return self.delete(key)

    def exists(self, key: str) -> bool:
        """Return True if a live entry exists."""
        return self.get(key) is not None

    def info(self, key: str) -> CacheEntryInfo | None:
        """Describe an entry without evicting it."""
        entry = self.store.get(self._store_key(key))
        if entry is None:
            return None
        now = self.clock()
        return CacheEntryInfo(
            cached_at=entry.cached_at,
            expires_at=entry.expires_at,
            time_left=entry.time_left(now),
            is_expired=entry.is_expired(now),
            size_bytes=entry.size_bytes,
        )

    def clear_all(self) -> int:
        """Delete every entry in this namespace and return the count."""
        cleared = 0
        for entry in self.store.scan(self.prefix):
            if self.store.delete(entry.key):
                cleared += 1
        return cleared

    def stats(self) -> CacheStats:
        """Count live entries and their serialized size."""
        now = self.clock()
        live = [
            entry for entry in self.store.scan(self.prefix) if not entry.is_expired(now)
        ]
        return CacheStats(
            count=len(live),
            total_size_bytes=sum(entry.size_bytes for entry in live),
        )

    def cleanup_expired(self) -> int:
        """Delete entries past expiry that were never re-read."""
        now = self.clock()
        cleaned = 0
        for entry in self.store.scan(self.prefix):
            if entry.is_expired(now) and self.store.delete(entry.key):
                cleaned += 1
        return cleaned

    def _store_key(self, key: str) -> str:
        if not key:
            raise ValueError("Cache key cannot be empty")
        return self.prefix + _UNSAFE_KEY_CHARS.sub("_", key)


def record_size(record: WeatherRecord) -> int:
    """Return the UTF-8 JSON size of a record in bytes."""
    return len(json.dumps(weather_record_to_dict(record)).encode("utf-8"))
