"""Supabase-backed storage for weather cache entries."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from weather_block.domain.cache import CacheEntry
from weather_block.domain.errors import CacheUnavailableError
from weather_block.domain.weather import (
    weather_record_from_dict,
    weather_record_to_dict,
)
from weather_block.services.cache import CacheStore


@dataclass
class SupabaseCacheStore(CacheStore):
    """Supabase implementation of the cache store.

    Expects a table with columns `key` (primary key), `payload` (jsonb),
    `cached_at`, `expires_at` (timestamptz) and `size_bytes` (integer).
    """

    client: Client
    table: str = "weather_cache"

    def get(self, key: str) -> CacheEntry | None:
        """Return the row for a key, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise CacheUnavailableError() from exc
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def set(self, entry: CacheEntry) -> None:
        """Upsert a cache row."""
        try:
            self.client.table(self.table).upsert(
                {
                    "key": entry.key,
                    "payload": weather_record_to_dict(entry.payload),
                    "cached_at": entry.cached_at.isoformat(),
                    "expires_at": entry.expires_at.isoformat(),
                    "size_bytes": entry.size_bytes,
                }
            ).execute()
        except Exception as exc:
            raise CacheUnavailableError() from exc

    def delete(self, key: str) -> bool:
        """Delete a cache row."""
        try:
            response = self.client.table(self.table).delete().eq("key", key).execute()
        except Exception as exc:
            raise CacheUnavailableError() from exc
        return bool(response.data)

    def scan(self, prefix: str) -> list[CacheEntry]:
        """Return rows whose key starts with the prefix."""
        pattern = prefix.replace("_", r"\_") + "%"
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .like("key", pattern)
                .execute()
            )
        except Exception as exc:
            raise CacheUnavailableError() from exc
        return [_parse_entry(row) for row in response.data or []]


def _parse_entry(row: dict[str, object]) -> CacheEntry:
    return CacheEntry(
        key=str(row["key"]),
        payload=weather_record_from_dict(row["payload"]),
        cached_at=datetime.fromisoformat(str(row["cached_at"])),
        expires_at=datetime.fromisoformat(str(row["expires_at"])),
        size_bytes=int(row.get("size_bytes") or 0),
    )
