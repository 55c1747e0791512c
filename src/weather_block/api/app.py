"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from weather_block.app_logging import configure_logging
from weather_block.containers import AppContainer
from weather_block.domain.cache import CacheEntryInfo, WeatherResult
from weather_block.domain.errors import CacheUnavailableError, WeatherError
from weather_block.domain.weather import icon_url, weather_record_to_dict

TEST_LOCATION = "London,UK"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(debug=container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        interval = state_container.settings.cache_sweep_interval_seconds
        sweeper = None
        if interval > 0:
            sweeper = asyncio.create_task(
                _sweep_forever(state_container, interval, logger)
            )
        yield
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(WeatherError)
    async def weather_error_handler(
        request: Request, exc: WeatherError
    ) -> JSONResponse:
        status_code = status.HTTP_400_BAD_REQUEST
        if isinstance(exc, CacheUnavailableError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(
            status_code=status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/weather")
    async def get_weather(
        request: Request, location: str = "", units: str = "metric"
    ) -> dict[str, object]:
        """Return current weather for a location."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.weather_service.get_weather(location, units)
        return _format_weather(result)

    @app.delete("/cache")
    async def clear_cache(request: Request) -> dict[str, object]:
        """Remove every cached weather entry."""
        state_container: AppContainer = request.app.state.container
        cleared = state_container.weather_service.clear_all()
        noun = "entry" if cleared == 1 else "entries"
        return {
            "success": True,
            "message": f"Cleared {cleared} cache {noun}.",
            "cleared_count": cleared,
        }

    @app.get("/cache/stats")
    async def cache_stats(request: Request) -> dict[str, int]:
        """Return cache entry count and size."""
        state_container: AppContainer = request.app.state.container
        stats = state_container.weather_service.stats()
        return {
            "cache_entries": stats.count,
            "cache_size_bytes": stats.total_size_bytes,
        }

    @app.get("/cache/info")
    async def cache_info(
        request: Request, location: str = "", units: str = "metric"
    ) -> dict[str, object]:
        """Describe the cache entry for a lookup."""
        state_container: AppContainer = request.app.state.container
        info = state_container.weather_service.info(location, units)
        if info is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Cache entry not found."
            )
        return _format_entry_info(info)

    @app.get("/test-api-key")
    async def test_api_key(request: Request) -> JSONResponse:
        """Check the provider credential with a known location."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.weather_service.get_weather(
                TEST_LOCATION, "metric"
            )
        except WeatherError as exc:
            logger.warning("API key check failed: %s", exc.code)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "success": False,
                    "message": exc.message,
                    "error_code": exc.code,
                },
            )
        return JSONResponse(
            content={
                "success": True,
                "message": "API key is working correctly.",
                "test_data": {
                    "location": result.record.location.name,
                    "temperature": result.record.temperature.current,
                },
            }
        )

    return app


async def _sweep_forever(
    container: AppContainer, interval: int, logger: logging.Logger
) -> None:
    """Periodically drop expired cache entries."""
    while True:
        await asyncio.sleep(interval)
        try:
            container.weather_service.cleanup_expired()
        except CacheUnavailableError:
            logger.exception("Weather cache sweep failed")


def _format_weather(result: WeatherResult) -> dict[str, object]:
    """Build the weather response body."""
    data = weather_record_to_dict(result.record)
    weather = dict(data["weather"])
    if weather["icon"]:
        weather["icon_url"] = icon_url(weather["icon"])
    data["weather"] = weather
    info = result.cache_info
    if info.cached and info.cached_at is not None and info.time_left is not None:
        data["cache_info"] = {
            "cached": True,
            "cached_at": info.cached_at.isoformat(),
            "time_left": int(info.time_left.total_seconds()),
        }
    else:
        data["cache_info"] = {"cached": False}
    return data


def _format_entry_info(info: CacheEntryInfo) -> dict[str, object]:
    return {
        "cached_at": info.cached_at.isoformat(),
        "expires_at": info.expires_at.isoformat(),
        "time_left": int(info.time_left.total_seconds()),
        "is_expired": info.is_expired,
        "size_bytes": info.size_bytes,
    }
