"""Typed errors raised by the weather service."""

_STATUS_MESSAGES = {
    401: "Invalid API key. Please check your OpenWeatherMap API key.",
    404: "Location not found. Please check the location name.",
    429: "API rate limit exceeded. Please try again later.",
    500: "Weather service is temporarily unavailable.",
    502: "Weather service is temporarily unavailable.",
    503: "Weather service is temporarily unavailable.",
}


class WeatherError(Exception):
    """Base class for weather lookup failures."""

    code = "weather_error"
    default_message = "Weather lookup failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidLocationError(WeatherError):
    code = "invalid_location"
    default_message = "Location cannot be empty."


class MissingApiKeyError(WeatherError):
    code = "missing_api_key"
    default_message = "OpenWeatherMap API key is not configured."


class NetworkError(WeatherError):
    code = "api_request_failed"
    default_message = "Failed to connect to weather service."


class UpstreamStatusError(WeatherError):
    """Non-200 response from the weather provider."""

    code = "api_error"

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(status_message(status_code))


class EmptyResponseError(WeatherError):
    code = "empty_response"
    default_message = "Empty response from weather service."


class MalformedResponseError(WeatherError):
    code = "invalid_json"
    default_message = "Invalid response from weather service."


class InvalidPayloadError(WeatherError):
    code = "invalid_response"
    default_message = "Invalid weather data received."


class CacheUnavailableError(WeatherError):
    code = "cache_unavailable"
    default_message = "Weather cache backend is unavailable."


def status_message(status_code: int) -> str:
    """Return a user-facing message for a provider HTTP status code."""
    return _STATUS_MESSAGES.get(
        status_code, f"Weather service error (HTTP {status_code})."
    )
