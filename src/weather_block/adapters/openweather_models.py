"""Pydantic models for OpenWeatherMap current-weather payloads."""

from typing import Any

from pydantic import BaseModel, model_validator


class _ProviderModel(BaseModel):
    """Treats `null` fields as absent so their defaults apply."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class OpenWeatherMain(_ProviderModel):
    """`main` block with temperatures, humidity and pressure."""

    temp: float = 0.0
    feels_like: float = 0.0
    temp_min: float = 0.0
    temp_max: float = 0.0
    humidity: float = 0
    pressure: float = 0


class OpenWeatherCondition(_ProviderModel):
    """Entry of the `weather` list."""

    main: str = ""
    description: str = ""
    icon: str = ""


class OpenWeatherSys(_ProviderModel):
    """`sys` block."""

    country: str = ""


class OpenWeatherWind(_ProviderModel):
    """`wind` block."""

    speed: float = 0.0
    deg: float = 0


class OpenWeatherPayload(_ProviderModel):
    """Current-weather response; `main`, `weather` and `name` are required."""

    name: str
    main: OpenWeatherMain
    weather: list[OpenWeatherCondition]
    sys: OpenWeatherSys = OpenWeatherSys()
    wind: OpenWeatherWind = OpenWeatherWind()
    visibility: float = 0
