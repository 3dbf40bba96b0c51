"""Agent that suggests a packing list from finished day plans and weather."""

from __future__ import annotations

from typing import List, Optional, Sequence

from tripcraft.agents import call_llm_and_validate
from tripcraft.core.context import TripContext
from tripcraft.core.weather_api import format_temperature
from tripcraft.schemas import DayPlan, PackingItem, PackingSuggestions, TripItinerary, WeatherSnapshot


def _describe_weather(days: Sequence[DayPlan], overall: Optional[WeatherSnapshot]) -> tuple[str, str]:
    snapshots = [day.weather for day in days if day.weather is not None]
    if overall is not None:
        snapshots.append(overall)
    if not snapshots:
        return "unknown", "unknown temperature"

    descriptions: List[str] = []
    for snapshot in snapshots:
        label = snapshot.description.lower()
        if label not in descriptions:
            descriptions.append(label)
    low = min(snapshot.temperature for snapshot in snapshots)
    high = max(snapshot.temperature for snapshot in snapshots)
    if round(low) == round(high):
        temperature = format_temperature(low)
    else:
        temperature = f"{format_temperature(low)} to {format_temperature(high)}"
    return ", ".join(descriptions[:4]), temperature


class PackingAgent:
    """Produces a prioritised packing list for an itinerary."""

    system_prompt = (
        "You are a practical travel packing advisor. Tailor suggestions to the planned "
        "activities and the weather. Only respond with JSON containing an 'items' array."
    )
    prompt_version = "packing.v1"
    template = "packing-suggestions"

    def __init__(self, context: TripContext) -> None:
        self.context = context

    async def run(self, itinerary: TripItinerary) -> List[PackingItem]:
        """Return packing items for ``itinerary``."""

        condition, temperature = _describe_weather(itinerary.activities, itinerary.weather)
        activities_list = "\n".join(
            f"- Day {day.day}: {day.main_activity}" for day in itinerary.activities
        )
        rendered = self.context.prompts.render(
            self.template,
            {
                "destination": itinerary.destination,
                "days": itinerary.days,
                "activity_type": itinerary.activity_type,
                "activities_list": activities_list,
                "weather_condition": condition,
                "temperature": temperature,
                "has_children": itinerary.has_children,
            },
        )
        suggestions = await call_llm_and_validate(
            client=self.context.llm,
            schema=PackingSuggestions,
            rendered=rendered,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
        )
        return suggestions.items


__all__ = ["PackingAgent"]
