"""OpenWeatherMap current-weather API client."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import httpx
from pydantic import ValidationError

from weather_block.adapters.openweather_models import OpenWeatherPayload
from weather_block.domain.errors import (
    EmptyResponseError,
    InvalidPayloadError,
    MalformedResponseError,
    MissingApiKeyError,
    NetworkError,
    UpstreamStatusError,
)
from weather_block.domain.weather import (
    Conditions,
    Location,
    Temperature,
    WeatherRecord,
    Wind,
)

DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "WeatherBlock/1.0.0"

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class WeatherClient(Protocol):
    """Interface for upstream current-weather lookups."""

    async def fetch(self, location: str, units: str) -> WeatherRecord:
        """Fetch and normalize current weather for a location."""


@dataclass
class HttpxOpenWeatherClient(WeatherClient):
    """HTTPX-backed OpenWeatherMap client.

    Performs exactly one request per `fetch` call. Retries and caching are
    left to callers.
    """

    api_key: str
    http_client: httpx.AsyncClient
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    clock: Callable[[], datetime] = field(default=_utc_now)

    @classmethod
    def create(
        cls,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "HttpxOpenWeatherClient":
        """Create a client with a managed httpx session."""
        return cls(
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            base_url=base_url,
            timeout_seconds=timeout_seconds,
        )

    async def fetch(self, location: str, units: str) -> WeatherRecord:
        """Request current weather and normalize the response."""
        if not self.api_key:
            raise MissingApiKeyError()

        url = f"{self.base_url.rstrip('/')}/weather"
        try:
            response = await self.http_client.get(
                url,
                params={"q": location, "appid": self.api_key, "units": units},
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.timeout_seconds,
            )
        except httpx.TransportError as exc:
            _logger.warning("Weather API request failed: %s", exc)
            raise NetworkError() from exc

        if response.status_code != httpx.codes.OK:
            error = UpstreamStatusError(response.status_code)
            _logger.warning(
                "Weather API error: HTTP %s - %s", response.status_code, error.message
            )
            raise error

        if not response.content:
            raise EmptyResponseError()

        try:
            payload = json.loads(response.content)
        except ValueError as exc:
            _logger.warning("Weather API returned invalid JSON")
            raise MalformedResponseError() from exc
        if payload is None:
            _logger.warning("Weather API returned invalid JSON")
            raise MalformedResponseError()

        return normalize_payload(payload, units=units, updated_at=self.clock())

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def normalize_payload(
    payload: object, *, units: str, updated_at: datetime
) -> WeatherRecord:
    """Convert a raw provider payload into a `WeatherRecord`."""
    try:
        parsed = OpenWeatherPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPayloadError() from exc

    condition = parsed.weather[0] if parsed.weather else None
    return WeatherRecord(
        location=Location(
            name=parsed.name.strip(), country=parsed.sys.country.strip()
        ),
        temperature=Temperature(
            current=parsed.main.temp,
            feels_like=parsed.main.feels_like,
            min=parsed.main.temp_min,
            max=parsed.main.temp_max,
        ),
        weather=Conditions(
            main=condition.main.strip() if condition else "",
            description=condition.description.strip() if condition else "",
            icon=condition.icon.strip() if condition else "",
        ),
        humidity=int(parsed.main.humidity),
        pressure=int(parsed.main.pressure),
        wind=Wind(speed=parsed.wind.speed, degrees=int(parsed.wind.deg)),
        visibility=int(parsed.visibility),
        units=units,
        updated_at=updated_at,
    )
