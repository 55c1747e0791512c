"""ASGI entrypoint for the weather block API."""

from weather_block.api.app import create_app
from weather_block.containers import build_container

app = create_app(build_container())
