"""TripCraft Streamlit UI helpers."""

from __future__ import annotations

from .form import ensure_trip_state, format_generation_error, render_trip_form
from .itinerary import (
    clamp_day_index,
    group_packing_items,
    render_history_sidebar,
    render_itinerary,
    trip_title,
)

__all__ = [
    "clamp_day_index",
    "ensure_trip_state",
    "format_generation_error",
    "group_packing_items",
    "render_history_sidebar",
    "render_itinerary",
    "render_trip_form",
    "trip_title",
]
