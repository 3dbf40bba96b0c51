"""Explicit wiring of the services the itinerary pipeline depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from tripcraft.config import Settings
from tripcraft.core.llm import LLMClient
from tripcraft.core.photo_api import PhotoSearch, build_photo_search
from tripcraft.core.prompts import PromptRenderer
from tripcraft.core.weather_api import WeatherService, build_weather_service


@dataclass
class TripContext:
    """Configuration and clients for one pipeline invocation."""

    settings: Settings
    llm: LLMClient
    prompts: PromptRenderer
    photos: PhotoSearch
    weather: WeatherService

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "TripContext":
        return cls(
            settings=settings,
            llm=LLMClient.from_settings(settings, http_client=http_client),
            prompts=PromptRenderer(
                default_model=settings.model,
                light_model=settings.light_model,
            ),
            photos=build_photo_search(settings, http_client=http_client),
            weather=build_weather_service(settings, http_client=http_client),
        )


__all__ = ["TripContext"]
