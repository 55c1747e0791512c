"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from weather_block.adapters.openweather_client import WeatherClient, normalize_payload
from weather_block.config import Settings
from weather_block.containers import AppContainer
from weather_block.domain.weather import WeatherRecord
from weather_block.services.cache import InMemoryCacheStore, WeatherCache
from weather_block.services.weather import WeatherService

LONDON_PAYLOAD: dict[str, object] = {
    "name": "London",
    "sys": {"country": "GB"},
    "main": {
        "temp": 20.5,
        "feels_like": 19.2,
        "temp_min": 18,
        "temp_max": 23,
        "humidity": 65,
        "pressure": 1013,
    },
    "weather": [{"main": "Clouds", "description": "partly cloudy", "icon": "02d"}],
    "wind": {"speed": 3.5, "deg": 180},
    "visibility": 10000,
}

START = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@dataclass
class CountingWeatherClient(WeatherClient):
    """Fake upstream client that counts calls."""

    clock: FakeClock = field(default_factory=FakeClock)
    payload: dict[str, object] = field(default_factory=lambda: dict(LONDON_PAYLOAD))
    error: Exception | None = None
    delay_seconds: float = 0.0
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def fetch(self, location: str, units: str) -> WeatherRecord:
        self.calls.append((location, units))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return normalize_payload(self.payload, units=units, updated_at=self.clock())


def make_record(units: str = "metric", updated_at: datetime = START) -> WeatherRecord:
    return normalize_payload(LONDON_PAYLOAD, units=units, updated_at=updated_at)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def cache(store: InMemoryCacheStore, clock: FakeClock) -> WeatherCache:
    return WeatherCache(store, clock=clock)


@pytest.fixture
def weather_client(clock: FakeClock) -> CountingWeatherClient:
    return CountingWeatherClient(clock=clock)


@pytest.fixture
def service(
    weather_client: CountingWeatherClient, cache: WeatherCache
) -> WeatherService:
    return WeatherService(client=weather_client, cache=cache)


@pytest.fixture
def settings() -> Settings:
    return Settings(openweather_api_key="owm-key")


@pytest.fixture
def container(
    settings: Settings,
    weather_client: CountingWeatherClient,
    service: WeatherService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        weather_client=weather_client,
        weather_service=service,
        close_resources=close_resources,
    )
