"""Tests for the weather TTL cache."""

import threading
from datetime import timedelta

import pytest

from tests.conftest import FakeClock, make_record
from weather_block.services.cache import (
    CACHE_PREFIX,
    InMemoryCacheStore,
    WeatherCache,
    record_size,
)


def test_set_records_absolute_timestamps(cache: WeatherCache, clock: FakeClock) -> None:
    entry = cache.set("weather_abc", make_record())

    assert entry.key == f"{CACHE_PREFIX}weather_abc"
    assert entry.cached_at == clock.now
    assert entry.expires_at - entry.cached_at == timedelta(minutes=15)
    assert entry.size_bytes == record_size(make_record())


def test_get_returns_stored_record(cache: WeatherCache) -> None:
    record = make_record()
    cache.set("weather_abc", record)

    entry = cache.get("weather_abc")

    assert entry is not None
    assert entry.payload == record


def test_expiry_boundary(
    cache: WeatherCache, store: InMemoryCacheStore, clock: FakeClock
) -> None:
    entry = cache.set("weather_abc", make_record())

    clock.now = entry.expires_at - timedelta(microseconds=1)
    assert cache.get("weather_abc") is not None

    clock.now = entry.expires_at
    assert cache.get("weather_abc") is None
    assert store.get(entry.key) is None


def test_ttl_is_capped_at_one_day(cache: WeatherCache) -> None:
    entry = cache.set("weather_abc", make_record(), ttl_seconds=7 * 24 * 3600)

    assert entry.expires_at - entry.cached_at == timedelta(hours=24)


def test_non_positive_ttl_rejected(cache: WeatherCache) -> None:
    with pytest.raises(ValueError):
        cache.set("weather_abc", make_record(), ttl_seconds=0)


def test_empty_key_rejected(cache: WeatherCache) -> None:
    with pytest.raises(ValueError):
        cache.get("")


def test_keys_are_sanitized(cache: WeatherCache) -> None:
    entry = cache.set("weather:london,uk", make_record())

    assert entry.key == f"{CACHE_PREFIX}weather_london_uk"
    assert cache.exists("weather:london,uk")


def test_delete_and_refresh(cache: WeatherCache) -> None:
    cache.set("weather_a", make_record())
    cache.set("weather_b", make_record())

    assert cache.delete("weather_a") is True
    assert cache.delete("weather_a") is False
    assert cache.refresh("weather_b") is True
    assert not cache.exists("weather_b")


def test_info_reports_metadata_without_evicting(
    cache: WeatherCache, store: InMemoryCacheStore, clock: FakeClock
) -> None:
    assert cache.info("weather_abc") is None
    entry = cache.set("weather_abc", make_record())

    clock.advance(timedelta(minutes=5))
    info = cache.info("weather_abc")
    assert info is not None
    assert info.cached_at == entry.cached_at
    assert info.expires_at == entry.expires_at
    assert info.time_left == timedelta(minutes=10)
    assert info.is_expired is False
    assert info.size_bytes == entry.size_bytes

    clock.advance(timedelta(hours=1))
    expired = cache.info("weather_abc")
    assert expired is not None
    assert expired.is_expired is True
    assert expired.time_left == timedelta(0)
    assert store.get(entry.key) is not None


def test_clear_all_only_touches_namespace(
    cache: WeatherCache, store: InMemoryCacheStore, clock: FakeClock
) -> None:
    other = WeatherCache(store, clock=clock, prefix="other_")
    cache.set("weather_a", make_record())
    cache.set("weather_b", make_record(units="imperial"))
    other.set("weather_a", make_record())

    assert cache.clear_all() == 2
    assert cache.stats().count == 0
    assert other.stats().count == 1


def test_stats_counts_live_entries(cache: WeatherCache, clock: FakeClock) -> None:
    first = cache.set("weather_a", make_record(), ttl_seconds=60)
    second = cache.set("weather_b", make_record(), ttl_seconds=3600)

    stats = cache.stats()
    assert stats.count == 2
    assert stats.total_size_bytes == first.size_bytes + second.size_bytes

    clock.advance(timedelta(minutes=2))
    assert cache.stats().count == 1


def test_cleanup_expired_removes_unread_entries(
    cache: WeatherCache, store: InMemoryCacheStore, clock: FakeClock
) -> None:
    cache.set("weather_a", make_record(), ttl_seconds=60)
    cache.set("weather_b", make_record(), ttl_seconds=3600)
    clock.advance(timedelta(minutes=2))

    assert cache.cleanup_expired() == 1
    assert len(store.scan(CACHE_PREFIX)) == 1
    assert cache.exists("weather_b")


def test_in_memory_store_concurrent_writers(clock: FakeClock) -> None:
    cache = WeatherCache(InMemoryCacheStore(), clock=clock)
    record = make_record()

    def writer(index: int) -> None:
        for offset in range(50):
            cache.set(f"weather_{index}_{offset}", record)
            cache.get(f"weather_{index}_{offset}")

    threads = [threading.Thread(target=writer, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert cache.stats().count == 400
