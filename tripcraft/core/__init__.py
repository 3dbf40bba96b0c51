"""Core utilities for TripCraft."""

from .hashing import string_hash
from .weather_api import format_temperature, mock_weather, weather_icon

__all__ = [
    "format_temperature",
    "mock_weather",
    "string_hash",
    "weather_icon",
]
