"""Orchestrates the end-to-end flow for generating a trip itinerary."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from tripcraft.agents import LLM_CALL_ERRORS, ItineraryAgent, PackingAgent, PhotoAgent
from tripcraft.core.context import TripContext
from tripcraft.schemas import DayPlan, ItineraryDraft, PackingItem, TripItinerary, TripRequest

_LOGGER = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate itinerary. Please try again."


class GenerationError(RuntimeError):
    """Raised when the itinerary itself could not be produced. Safe to retry."""

    def __init__(self, message: str = GENERATION_FAILED_MESSAGE, *, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason


def _log_stage(stage: str, duration: float, prompt_version: str) -> None:
    _LOGGER.info(
        "%s stage completed in %.2fs [prompt_version=%s]",
        stage.capitalize(),
        duration,
        prompt_version,
    )


def _new_trip_id(now: datetime) -> str:
    return f"trip-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"


def _normalise_days(request: TripRequest, draft: ItineraryDraft) -> List[DayPlan]:
    """Number days 1..n by position, attach calendar dates and enforce the day count."""

    drafted = draft.activities
    if len(drafted) < request.days:
        raise GenerationError(
            reason=f"LLM returned {len(drafted)} days for a {request.days}-day trip",
        )
    if len(drafted) > request.days:
        _LOGGER.warning(
            "LLM returned %d days for a %d-day trip; dropping the extra days",
            len(drafted),
            request.days,
        )

    days: List[DayPlan] = []
    for index, day in enumerate(drafted[: request.days], start=1):
        days.append(
            day.model_copy(
                update={
                    "day": index,
                    "date": request.date_for_day(index) or day.date,
                    "photos": [],
                    "weather": None,
                }
            )
        )
    return days


async def _enrich_day(
    day: DayPlan,
    request: TripRequest,
    context: TripContext,
    photo_agent: PhotoAgent,
) -> DayPlan:
    photos, weather = await asyncio.gather(
        photo_agent.photos_for_activity(request.destination, day.main_activity, request.activity_type),
        context.weather.get_weather(request.destination, day.date),
    )
    return day.model_copy(update={"photos": photos, "weather": weather})


async def _run_packing(itinerary: TripItinerary, context: TripContext) -> Optional[List[PackingItem]]:
    start = time.perf_counter()
    agent = PackingAgent(context)
    try:
        items = await agent.run(itinerary)
    except LLM_CALL_ERRORS as exc:
        _LOGGER.warning("Packing list skipped for %s: %s", itinerary.destination, exc)
        return None
    _log_stage("packing", time.perf_counter() - start, agent.prompt_version)
    return items


async def generate_itinerary(
    request: TripRequest,
    context: TripContext,
    *,
    now: Optional[datetime] = None,
) -> TripItinerary:
    """Produce a fully enriched :class:`TripItinerary` for ``request``.

    Only the itinerary call itself is fatal (raised as :class:`GenerationError`).
    Photos, weather, the hero photo and the packing list degrade to empty or
    default values when their lookups fail.
    """

    pipeline_start = time.perf_counter()
    _LOGGER.info(
        "Starting trip pipeline for %s (%d days, %s)",
        request.destination,
        request.days,
        request.activity_type,
    )

    start = time.perf_counter()
    itinerary_agent = ItineraryAgent(context)
    try:
        draft = await itinerary_agent.run(request)
    except LLM_CALL_ERRORS as exc:
        _LOGGER.error("Itinerary generation failed for %s: %s", request.destination, exc)
        raise GenerationError(reason=str(exc)) from exc
    days = _normalise_days(request, draft)
    _log_stage("itinerary", time.perf_counter() - start, itinerary_agent.prompt_version)

    start = time.perf_counter()
    photo_agent = PhotoAgent(context)
    enriched = await asyncio.gather(
        *(_enrich_day(day, request, context, photo_agent) for day in days)
    )
    hero_photo, overall_weather = await asyncio.gather(
        photo_agent.hero_photo(request.destination),
        context.weather.get_weather(request.destination, request.start_date),
    )
    _log_stage("enrichment", time.perf_counter() - start, photo_agent.prompt_version)

    created_at = now or datetime.now(timezone.utc)
    itinerary = TripItinerary(
        id=_new_trip_id(created_at),
        destination=request.destination,
        days=request.days,
        has_children=request.has_children,
        activity_type=request.activity_type,
        activities=list(enriched),
        created_at=created_at,
        start_date=request.start_date,
        end_date=request.end_date,
        hero_photo=hero_photo,
        weather=overall_weather,
    )

    if context.settings.packing_list_enabled:
        itinerary.packing_list = await _run_packing(itinerary, context)

    _LOGGER.info("Trip pipeline completed in %.2fs", time.perf_counter() - pipeline_start)
    return itinerary


async def regenerate_itinerary(previous: TripItinerary, context: TripContext) -> TripItinerary:
    """Generate a fresh itinerary (with a new id) from a stored one's request fields."""

    _LOGGER.info("Regenerating itinerary %s", previous.id)
    return await generate_itinerary(previous.to_request(), context)


def run_trip_pipeline(request: TripRequest, context: TripContext) -> TripItinerary:
    """Synchronous entry point used by the UI."""

    return asyncio.run(generate_itinerary(request, context))


def run_regeneration(previous: TripItinerary, context: TripContext) -> TripItinerary:
    return asyncio.run(regenerate_itinerary(previous, context))


__all__ = [
    "GENERATION_FAILED_MESSAGE",
    "GenerationError",
    "generate_itinerary",
    "regenerate_itinerary",
    "run_regeneration",
    "run_trip_pipeline",
]
