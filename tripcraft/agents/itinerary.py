"""Agent that drafts the day-by-day plan for a trip request."""

from __future__ import annotations

from typing import Optional, Sequence

from tripcraft.agents import call_llm_and_validate
from tripcraft.core.context import TripContext
from tripcraft.schemas import ItineraryDraft, TripRequest


class ItineraryAgent:
    """Asks the LLM for one main activity per day of the trip."""

    system_prompt = (
        "You are a professional travel planner. Plan realistic, destination-specific days "
        "and only emit JSON with an 'activities' array."
    )
    prompt_version = "itinerary.v1"
    template = "trip-itinerary"

    def __init__(self, context: TripContext, *, stop: Optional[Sequence[str]] = None) -> None:
        self.context = context
        self.stop = stop

    async def run(self, request: TripRequest) -> ItineraryDraft:
        """Return the raw :class:`ItineraryDraft` for ``request``."""

        rendered = self.context.prompts.render(
            self.template,
            {
                "destination": request.destination,
                "days": request.days,
                "activity_type": request.activity_type,
                "has_children": request.has_children,
            },
        )
        return await call_llm_and_validate(
            client=self.context.llm,
            schema=ItineraryDraft,
            rendered=rendered,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            stop=self.stop,
        )


__all__ = ["ItineraryAgent"]
