from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from tripcraft.config import Settings
from tripcraft.core.context import TripContext
from tripcraft.core.weather_api import mock_weather
from tripcraft.schemas import TripRequest
from tripcraft.workflows import trip_pipeline


Reply = Union[Dict[str, Any], List[Any], str, int]

PARIS_ITINERARY = {
    "activities": [
        {
            "day": 1,
            "mainActivity": "Visit the Louvre Museum",
            "description": "Spend the morning with the Mona Lisa and the Winged Victory.",
            "addOns": ["Coffee in the Tuileries Garden", "Walk along the Seine"],
            "estimatedCost": "moderate",
            "timeOfDay": "morning",
        },
        {
            "day": 2,
            "mainActivity": "Climb the Eiffel Tower",
            "description": "Take the lift to the summit and watch the city light up.",
            "addOns": ["Picnic on the Champ de Mars"],
            "estimatedCost": "expensive",
            "timeOfDay": "evening",
        },
        {
            "day": 3,
            "mainActivity": "Explore Montmartre",
            "description": "Wander the artists' quarter up to the Sacré-Cœur.",
            "addOns": ["Crêpes at a corner café"],
            "estimatedCost": "budget",
            "timeOfDay": "afternoon",
        },
    ]
}

PACKING_REPLY = {
    "items": [
        {"item": "Comfortable walking shoes", "category": "clothing", "priority": "essential", "reason": "Cobblestones"},
        {"item": "Passport", "category": "documents", "priority": "essential", "reason": "Border checks"},
        {"item": "Compact umbrella", "category": "accessories", "priority": "recommended", "reason": "Showers"},
    ]
}


def _default_reply(version: str, prompt: str) -> Reply:
    if version == "itinerary.v1":
        return PARIS_ITINERARY
    if version == "photos.v1":
        if prompt.startswith("Analyze this destination"):
            return {"hasLandmark": True, "searchTerm": "Eiffel Tower Paris", "reason": "Iconic skyline"}
        return {
            "hasRelevantPhotos": True,
            "searchTerms": ["Paris landmark", "Paris street"],
            "reason": "Well photographed",
        }
    if version == "packing.v1":
        return PACKING_REPLY
    raise AssertionError(f"Unexpected prompt version {version}")


def _llm_transport(
    reply: Callable[[str, str], Reply], calls: Optional[List[Dict[str, Any]]] = None
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if calls is not None:
            calls.append(payload)
        prompt = next(message["content"] for message in payload["messages"] if message["role"] == "user")
        answer = reply(payload["user"], prompt)
        if isinstance(answer, int):
            return httpx.Response(answer, json={"error": {"message": "upstream failure"}})
        content = answer if isinstance(answer, str) else json.dumps(answer)
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    return httpx.MockTransport(handler)


def _context(
    reply: Callable[[str, str], Reply] = _default_reply,
    *,
    calls: Optional[List[Dict[str, Any]]] = None,
    **overrides: Any,
) -> TripContext:
    settings = Settings(openai_api_key="test-key", **overrides)
    client = httpx.AsyncClient(transport=_llm_transport(reply, calls))
    return TripContext.from_settings(settings, http_client=client)


def _paris_request(**overrides: Any) -> TripRequest:
    values: Dict[str, Any] = {
        "destination": "Paris, France",
        "days": 3,
        "has_children": False,
        "activity_type": "cultural",
        "start_date": date(2025, 6, 1),
    }
    values.update(overrides)
    return TripRequest(**values)


def test_generate_itinerary_for_paris() -> None:
    now = datetime(2025, 1, 2, 9, 30, tzinfo=timezone.utc)
    request = _paris_request()

    itinerary = asyncio.run(trip_pipeline.generate_itinerary(request, _context(), now=now))

    assert itinerary.destination == "Paris, France"
    assert itinerary.days == 3
    assert [day.day for day in itinerary.activities] == [1, 2, 3]
    assert [day.date for day in itinerary.activities] == [
        date(2025, 6, 1),
        date(2025, 6, 2),
        date(2025, 6, 3),
    ]
    assert itinerary.end_date == date(2025, 6, 3)
    assert itinerary.created_at == now
    assert itinerary.id.startswith(f"trip-{int(now.timestamp() * 1000)}-")

    first = itinerary.activities[0]
    assert first.main_activity == "Visit the Louvre Museum"
    assert first.add_ons == ["Coffee in the Tuileries Garden", "Walk along the Seine"]
    assert first.estimated_cost == "moderate"
    assert first.time_of_day == "morning"
    assert first.weather == mock_weather("Paris, France", date(2025, 6, 1))

    for day in itinerary.activities:
        assert len(day.photos) == 2
        assert all(photo.url.startswith("https://picsum.photos/seed/") for photo in day.photos)
        assert day.photos[0].alt == "Paris landmark in Paris, France"

    assert itinerary.hero_photo is not None
    assert itinerary.hero_photo.caption == "Welcome to Paris, France"
    assert itinerary.hero_photo.url.endswith("/1200/800")
    assert itinerary.weather == mock_weather("Paris, France", date(2025, 6, 1))
    assert itinerary.packing_list is not None
    assert [item.item for item in itinerary.packing_list][:2] == [
        "Comfortable walking shoes",
        "Passport",
    ]


def test_photo_seeds_are_stable_between_runs() -> None:
    request = _paris_request()

    first = asyncio.run(trip_pipeline.generate_itinerary(request, _context()))
    second = asyncio.run(trip_pipeline.generate_itinerary(request, _context()))

    assert first.id != second.id
    assert [p.url for p in first.activities[0].photos] == [p.url for p in second.activities[0].photos]


def test_extra_days_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "itinerary.v1":
            extra = dict(PARIS_ITINERARY["activities"][0], mainActivity="Day trip to Versailles")
            return {"activities": [*PARIS_ITINERARY["activities"], extra]}
        return _default_reply(version, prompt)

    with caplog.at_level(logging.WARNING):
        itinerary = asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context(reply)))

    assert len(itinerary.activities) == 3
    assert "Day trip to Versailles" not in [day.main_activity for day in itinerary.activities]
    assert any("dropping the extra days" in record.getMessage() for record in caplog.records)


def test_too_few_days_is_a_generation_error() -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "itinerary.v1":
            return {"activities": PARIS_ITINERARY["activities"][:2]}
        return _default_reply(version, prompt)

    with pytest.raises(trip_pipeline.GenerationError) as excinfo:
        asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context(reply)))

    assert str(excinfo.value) == "Failed to generate itinerary. Please try again."
    assert "2 days" in (excinfo.value.reason or "")


def test_itinerary_llm_failure_is_a_generation_error(caplog: pytest.LogCaptureFixture) -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "itinerary.v1":
            return 500
        return _default_reply(version, prompt)

    with caplog.at_level(logging.ERROR), pytest.raises(trip_pipeline.GenerationError):
        asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context(reply)))

    assert any("Itinerary generation failed" in record.getMessage() for record in caplog.records)


def test_unusable_itinerary_payload_is_a_generation_error() -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "itinerary.v1":
            return {"activities": [{"day": 1}]}
        return _default_reply(version, prompt)

    with pytest.raises(trip_pipeline.GenerationError):
        asyncio.run(trip_pipeline.generate_itinerary(_paris_request(days=1), _context(reply)))


def test_photo_failure_for_one_day_keeps_the_rest(caplog: pytest.LogCaptureFixture) -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "photos.v1" and "Climb the Eiffel Tower" in prompt:
            return 503
        return _default_reply(version, prompt)

    with caplog.at_level(logging.WARNING):
        itinerary = asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context(reply)))

    photos_by_day = {day.day: day.photos for day in itinerary.activities}
    assert photos_by_day[2] == []
    assert photos_by_day[1] and photos_by_day[3]
    assert any("Failed to fetch photos" in record.getMessage() for record in caplog.records)


def test_malformed_photo_search_results_leave_photos_empty() -> None:
    llm = _llm_transport(_default_reply)

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.unsplash.com":
            return httpx.Response(200, json={"results": [{"urls": "https://img"}]})
        return await llm.handle_async_request(request)

    settings = Settings(openai_api_key="test-key", unsplash_access_key="access-key")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    context = TripContext.from_settings(settings, http_client=client)

    itinerary = asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), context))

    assert len(itinerary.activities) == 3
    assert all(day.photos == [] for day in itinerary.activities)
    assert itinerary.hero_photo is None
    assert all(day.weather is not None for day in itinerary.activities)


def test_missing_landmark_leaves_hero_photo_empty() -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "photos.v1" and prompt.startswith("Analyze this destination"):
            return {"hasLandmark": False, "searchTerm": None, "reason": "Not a real place"}
        return _default_reply(version, prompt)

    itinerary = asyncio.run(
        trip_pipeline.generate_itinerary(_paris_request(destination="Atlantis"), _context(reply))
    )

    assert itinerary.hero_photo is None
    assert len(itinerary.activities) == 3


def test_packing_failure_is_not_fatal(caplog: pytest.LogCaptureFixture) -> None:
    def reply(version: str, prompt: str) -> Reply:
        if version == "packing.v1":
            return "this is not json"
        return _default_reply(version, prompt)

    with caplog.at_level(logging.WARNING):
        itinerary = asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context(reply)))

    assert itinerary.packing_list is None
    assert any("Packing list skipped" in record.getMessage() for record in caplog.records)


def test_packing_list_can_be_switched_off() -> None:
    calls: List[Dict[str, Any]] = []
    context = _context(calls=calls, packing_list_enabled=False)

    itinerary = asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), context))

    assert itinerary.packing_list is None
    assert all(call["user"] != "packing.v1" for call in calls)


def test_days_without_start_date_have_no_dates() -> None:
    itinerary = asyncio.run(
        trip_pipeline.generate_itinerary(_paris_request(start_date=None), _context())
    )

    assert itinerary.start_date is None
    assert itinerary.end_date is None
    assert all(day.date is None for day in itinerary.activities)
    assert all(day.weather is not None for day in itinerary.activities)


def test_regenerate_keeps_request_fields_with_new_id() -> None:
    context = _context()
    previous = asyncio.run(
        trip_pipeline.generate_itinerary(_paris_request(has_children=True), context)
    )

    regenerated = asyncio.run(trip_pipeline.regenerate_itinerary(previous, context))

    assert regenerated.id != previous.id
    assert regenerated.destination == previous.destination
    assert regenerated.days == previous.days
    assert regenerated.has_children is True
    assert regenerated.activity_type == previous.activity_type
    assert regenerated.start_date == previous.start_date


def test_itinerary_prompt_mentions_children_when_requested() -> None:
    calls: List[Dict[str, Any]] = []
    asyncio.run(
        trip_pipeline.generate_itinerary(_paris_request(has_children=True), _context(calls=calls))
    )

    itinerary_call = next(call for call in calls if call["user"] == "itinerary.v1")
    user_prompt = next(m["content"] for m in itinerary_call["messages"] if m["role"] == "user")
    assert "suitable for children" in user_prompt
    assert itinerary_call["model"] == "gpt-4o"
    photo_call = next(call for call in calls if call["user"] == "photos.v1")
    assert photo_call["model"] == "gpt-4o-mini"


def test_pipeline_logs_include_prompt_versions(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        asyncio.run(trip_pipeline.generate_itinerary(_paris_request(), _context()))

    for version in ("itinerary.v1", "photos.v1", "packing.v1"):
        assert any(
            f"[prompt_version={version}]" in record.getMessage() for record in caplog.records
        ), f"Expected prompt version {version} to be logged"


def test_run_trip_pipeline_is_synchronous() -> None:
    itinerary = trip_pipeline.run_trip_pipeline(_paris_request(days=1), _context())

    assert len(itinerary.activities) == 1
    assert itinerary.activities[0].main_activity == "Visit the Louvre Museum"
