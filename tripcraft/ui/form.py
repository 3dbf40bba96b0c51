"""UI helpers for the trip request form and pipeline submission."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from tripcraft.config import Settings
from tripcraft.core.context import TripContext
from tripcraft.core.history_store import TripHistory, open_history
from tripcraft.schemas import (
    ACTIVITY_TYPES,
    MAX_TRIP_DAYS,
    MIN_TRIP_DAYS,
    TripFormError,
    TripItinerary,
    validate_trip_form,
)
from tripcraft.workflows.trip_pipeline import GenerationError, run_regeneration, run_trip_pipeline

_LOGGER = logging.getLogger(__name__)

_SETTINGS_KEY = "_tripcraft_settings"
_HISTORY_KEY = "_tripcraft_history"
_ITINERARY_KEY = "itinerary"
_PIPELINE_ERROR_KEY = "pipeline_error"
_FORM_ERRORS_KEY = "_trip_form_errors"
DAY_INDEX_KEY = "_itinerary_day_index"

ACTIVITY_LABELS: Dict[str, str] = {
    "cultural": "Cultural",
    "adventure": "Adventure",
    "relaxation": "Relaxation",
    "food": "Food & Drink",
    "nature": "Nature",
    "urban": "Urban",
}


def format_generation_error(exc: Exception) -> str:
    """Turn a pipeline failure into a message the traveller can act on."""

    base_message = "Failed to generate itinerary."
    details = str(getattr(exc, "reason", None) or exc).strip()
    if details:
        lowered = details.lower()
        if "openai_api_key" in lowered or "401" in lowered or "unauthorized" in lowered:
            return (
                f"{base_message} Provide an OpenAI API key via the "
                "OPENAI_API_KEY environment variable."
            )
        if "429" in lowered or "too many requests" in lowered:
            return f"{base_message} The LLM rate limit was hit. Wait a moment and try again."
        if "timed out" in lowered or "timeout" in lowered:
            return f"{base_message} The request timed out. Please try again."
    if isinstance(exc, GenerationError) or not details:
        return f"{base_message} Please try again."
    return f"{base_message} {details}"


def ensure_trip_state(settings: Settings) -> None:
    """Seed session state with settings, history and view keys."""

    st.session_state.setdefault(_SETTINGS_KEY, settings)
    if _HISTORY_KEY not in st.session_state:
        st.session_state[_HISTORY_KEY] = open_history(settings.history_path)
    st.session_state.setdefault(_ITINERARY_KEY, None)
    st.session_state.setdefault(_PIPELINE_ERROR_KEY, None)
    st.session_state.setdefault(_FORM_ERRORS_KEY, {})
    st.session_state.setdefault(DAY_INDEX_KEY, 0)


def _settings() -> Settings:
    return st.session_state[_SETTINGS_KEY]


def trip_history() -> TripHistory:
    return st.session_state[_HISTORY_KEY]


def current_itinerary() -> Optional[TripItinerary]:
    return st.session_state.get(_ITINERARY_KEY)


def show_itinerary(itinerary: Optional[TripItinerary]) -> None:
    st.session_state[_ITINERARY_KEY] = itinerary
    st.session_state[_PIPELINE_ERROR_KEY] = None
    st.session_state[DAY_INDEX_KEY] = 0


def _report_failure(exc: Exception) -> None:
    friendly_message = format_generation_error(exc)
    _LOGGER.exception("Trip pipeline failed")
    st.session_state[_PIPELINE_ERROR_KEY] = friendly_message
    st.error(friendly_message)


def handle_submit(raw: Dict[str, Any]) -> bool:
    """Validate ``raw`` form values, run the pipeline and record the result."""

    try:
        request = validate_trip_form(raw)
    except TripFormError as exc:
        st.session_state[_FORM_ERRORS_KEY] = exc.errors
        return False
    st.session_state[_FORM_ERRORS_KEY] = {}

    context = TripContext.from_settings(_settings())
    try:
        with st.spinner(f"Crafting your {request.days}-day trip to {request.destination}…"):
            itinerary = run_trip_pipeline(request, context)
    except GenerationError as exc:
        _report_failure(exc)
        return False

    trip_history().record(itinerary)
    show_itinerary(itinerary)
    return True


def handle_regenerate(previous: TripItinerary) -> bool:
    """Regenerate ``previous`` and swap it for the new itinerary in history."""

    context = TripContext.from_settings(_settings())
    try:
        with st.spinner("Regenerating your itinerary…"):
            itinerary = run_regeneration(previous, context)
    except GenerationError as exc:
        _report_failure(exc)
        return False

    trip_history().replace(previous.id, itinerary)
    show_itinerary(itinerary)
    return True


def render_trip_form(container) -> None:
    """Render the trip request form inside ``container``."""

    errors: Dict[str, str] = st.session_state.get(_FORM_ERRORS_KEY) or {}
    error_message = st.session_state.get(_PIPELINE_ERROR_KEY)

    with container:
        st.subheader("Plan a new trip")
        if error_message:
            st.error(error_message)

        with st.form("trip_form"):
            destination = st.text_input(
                "Where do you want to go?",
                placeholder="e.g. Paris, France",
            )
            if errors.get("destination"):
                st.caption(f":red[{errors['destination']}]")

            days = st.number_input(
                "How many days?",
                min_value=MIN_TRIP_DAYS,
                max_value=MAX_TRIP_DAYS,
                value=3,
                step=1,
            )
            if errors.get("days"):
                st.caption(f":red[{errors['days']}]")

            activity_type = st.selectbox(
                "Activity focus",
                options=list(ACTIVITY_TYPES),
                index=ACTIVITY_TYPES.index("cultural"),
                format_func=lambda value: ACTIVITY_LABELS.get(value, value.title()),
            )
            has_children = st.toggle("Travelling with children")

            start_date: Optional[date] = st.date_input(
                "Start date (optional)",
                value=None,
                min_value=date.today(),
            )
            if errors.get("start_date"):
                st.caption(f":red[{errors['start_date']}]")

            submitted = st.form_submit_button("Create itinerary", type="primary")

        if errors.get("form"):
            st.warning(errors["form"])

    if submitted:
        raw = {
            "destination": destination,
            "days": int(days),
            "activity_type": activity_type,
            "has_children": has_children,
            "start_date": start_date,
        }
        if handle_submit(raw):
            st.rerun()
        elif st.session_state.get(_FORM_ERRORS_KEY):
            st.rerun()


__all__ = [
    "ACTIVITY_LABELS",
    "DAY_INDEX_KEY",
    "current_itinerary",
    "ensure_trip_state",
    "format_generation_error",
    "handle_regenerate",
    "handle_submit",
    "render_trip_form",
    "show_itinerary",
    "trip_history",
]
