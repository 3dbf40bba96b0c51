"""Agent that picks and fetches photos for activities and destinations."""

from __future__ import annotations

import logging
from typing import List, Optional

from tripcraft.agents import LLM_CALL_ERRORS, call_llm_and_validate
from tripcraft.core.context import TripContext
from tripcraft.core.photo_api import PhotoSearchError
from tripcraft.schemas import HeroPhotoAnalysis, PhotoAnalysis, PhotoRecord

_LOGGER = logging.getLogger(__name__)

MAX_PHOTOS_PER_ACTIVITY = 3


def photo_caption(destination: str, activity: str, search_term: str) -> str:
    """Caption a photo by how its search term relates to the destination and activity."""

    term = search_term.lower()
    if destination.lower() in term:
        return f"Experience {activity}"
    if activity.lower() in term:
        return f"{search_term} in {destination}"
    return f"{search_term} - {destination}"


class PhotoAgent:
    """Uses the LLM to judge photo relevance, then queries the photo search backend."""

    system_prompt = (
        "You are a travel photo editor. Decide whether a subject has recognisable photos "
        "and suggest precise image search terms. Only respond with JSON."
    )
    prompt_version = "photos.v1"

    def __init__(self, context: TripContext) -> None:
        self.context = context

    async def photos_for_activity(
        self, destination: str, activity: str, activity_type: str
    ) -> List[PhotoRecord]:
        """Return up to three photos for ``activity``; an empty list on any failure."""

        try:
            rendered = self.context.prompts.render(
                "photo-search-terms",
                {
                    "destination": destination,
                    "activity": activity,
                    "activity_type": activity_type,
                },
            )
            analysis = await call_llm_and_validate(
                client=self.context.llm,
                schema=PhotoAnalysis,
                rendered=rendered,
                system_prompt=self.system_prompt,
                prompt_version=self.prompt_version,
            )
            if not analysis.has_relevant_photos or not analysis.search_terms:
                _LOGGER.info(
                    "No relevant photos for %s in %s: %s",
                    activity,
                    destination,
                    analysis.reason or "no search terms",
                )
                return []

            photos: List[PhotoRecord] = []
            for index, term in enumerate(analysis.search_terms[:MAX_PHOTOS_PER_ACTIVITY]):
                found = await self.context.photos.search(
                    term, seed=f"{destination}-{term}-{index}", width=800, height=600
                )
                if found is None:
                    continue
                photos.append(
                    found.model_copy(
                        update={
                            "alt": f"{term} in {destination}",
                            "caption": photo_caption(destination, activity, term),
                        }
                    )
                )
            return photos
        except (*LLM_CALL_ERRORS, PhotoSearchError) as exc:
            _LOGGER.warning("Failed to fetch photos for %s in %s: %s", activity, destination, exc)
            return []

    async def hero_photo(self, destination: str) -> Optional[PhotoRecord]:
        """Return a landmark photo for ``destination`` or ``None``."""

        try:
            rendered = self.context.prompts.render("hero-photo-search", {"destination": destination})
            analysis = await call_llm_and_validate(
                client=self.context.llm,
                schema=HeroPhotoAnalysis,
                rendered=rendered,
                system_prompt=self.system_prompt,
                prompt_version=self.prompt_version,
            )
            if not analysis.has_landmark or not analysis.search_term:
                _LOGGER.info("No landmark photo for %s: %s", destination, analysis.reason or "no term")
                return None

            found = await self.context.photos.search(
                analysis.search_term,
                seed=f"{destination}-{analysis.search_term}-hero",
                width=1200,
                height=800,
            )
            if found is None:
                return None
            return found.model_copy(
                update={
                    "alt": f"{destination} landmark view",
                    "caption": f"Welcome to {destination}",
                }
            )
        except (*LLM_CALL_ERRORS, PhotoSearchError) as exc:
            _LOGGER.warning("Failed to fetch hero photo for %s: %s", destination, exc)
            return None


__all__ = ["MAX_PHOTOS_PER_ACTIVITY", "PhotoAgent", "photo_caption"]
