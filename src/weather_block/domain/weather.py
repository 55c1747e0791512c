"""Weather domain models."""

from dataclasses import dataclass
from datetime import datetime

VALID_UNITS = ("metric", "imperial", "kelvin")
DEFAULT_UNITS = "metric"

_ICON_BASE_URL = "https://openweathermap.org/img/wn/"


@dataclass(frozen=True)
class Location:
    """Resolved location name and country code."""

    name: str
    country: str


@dataclass(frozen=True)
class Temperature:
    """Temperatures in the requested unit system."""

    current: float
    feels_like: float
    min: float
    max: float


@dataclass(frozen=True)
class Conditions:
    """Primary weather condition reported by the provider."""

    main: str
    description: str
    icon: str


@dataclass(frozen=True)
class Wind:
    """Wind speed and direction."""

    speed: float
    degrees: int


@dataclass(frozen=True)
class WeatherRecord:
    """Normalized current-weather observation."""

    location: Location
    temperature: Temperature
    weather: Conditions
    humidity: int
    pressure: int
    wind: Wind
    visibility: int
    units: str
    updated_at: datetime


def normalize_units(units: str | None) -> str:
    """Return a recognized unit system, falling back to metric."""
    if units is None:
        return DEFAULT_UNITS
    cleaned = units.strip().lower()
    if cleaned in VALID_UNITS:
        return cleaned
    return DEFAULT_UNITS


def icon_url(icon_code: str, size: str = "2x") -> str:
    """Return the provider icon URL for a condition icon code."""
    if not icon_code:
        return ""
    return f"{_ICON_BASE_URL}{icon_code}@{size}.png"


def weather_record_to_dict(record: WeatherRecord) -> dict[str, object]:
    """Serialize a record into a JSON-safe mapping."""
    return {
        "location": {
            "name": record.location.name,
            "country": record.location.country,
        },
        "temperature": {
            "current": record.temperature.current,
            "feels_like": record.temperature.feels_like,
            "min": record.temperature.min,
            "max": record.temperature.max,
        },
        "weather": {
            "main": record.weather.main,
            "description": record.weather.description,
            "icon": record.weather.icon,
        },
        "humidity": record.humidity,
        "pressure": record.pressure,
        "wind": {"speed": record.wind.speed, "deg": record.wind.degrees},
        "visibility": record.visibility,
        "units": record.units,
        "updated_at": record.updated_at.isoformat(),
    }


def weather_record_from_dict(data: dict) -> WeatherRecord:
    """Rebuild a record from `weather_record_to_dict` output."""
    location = data["location"]
    temperature = data["temperature"]
    weather = data["weather"]
    wind = data["wind"]
    return WeatherRecord(
        location=Location(name=location["name"], country=location["country"]),
        temperature=Temperature(
            current=float(temperature["current"]),
            feels_like=float(temperature["feels_like"]),
            min=float(temperature["min"]),
            max=float(temperature["max"]),
        ),
        weather=Conditions(
            main=weather["main"],
            description=weather["description"],
            icon=weather["icon"],
        ),
        humidity=int(data["humidity"]),
        pressure=int(data["pressure"]),
        wind=Wind(speed=float(wind["speed"]), degrees=int(wind["deg"])),
        visibility=int(data["visibility"]),
        units=data["units"],
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )
