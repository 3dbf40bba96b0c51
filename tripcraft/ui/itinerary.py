"""UI helpers for browsing a generated itinerary one day at a time."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import streamlit as st

from tripcraft.core.weather_api import format_temperature
from tripcraft.schemas import (
    PACKING_PRIORITIES,
    DayPlan,
    PackingItem,
    TripItinerary,
    WeatherSnapshot,
)
from tripcraft.ui.form import (
    ACTIVITY_LABELS,
    DAY_INDEX_KEY,
    current_itinerary,
    handle_regenerate,
    show_itinerary,
    trip_history,
)

_LOGGER = logging.getLogger(__name__)

RECENT_TRIPS_SHOWN = 5
_PACKING_FILTER_KEY = "_packing_priority_filter"

_CATEGORY_LABELS: Dict[str, str] = {
    "clothing": "Clothing",
    "gear": "Gear & Equipment",
    "accessories": "Accessories",
    "documents": "Documents",
    "personal": "Personal Items",
    "electronics": "Electronics",
}

_PRIORITY_BADGES: Dict[str, str] = {
    "essential": ":red[Essential]",
    "recommended": ":orange[Recommended]",
    "optional": ":gray[Optional]",
}

_TIME_ICONS: Dict[str, str] = {
    "morning": "🌅",
    "afternoon": "☀️",
    "evening": "🌆",
    "full-day": "🌍",
}

_COST_BADGES: Dict[str, str] = {
    "budget": ":green[budget]",
    "moderate": ":orange[moderate]",
    "expensive": ":red[expensive]",
}

_PRIORITY_RANK = {priority: rank for rank, priority in enumerate(PACKING_PRIORITIES)}


def trip_title(itinerary: TripItinerary) -> str:
    return f"Your {itinerary.days}-Day {itinerary.destination} Adventure"


def clamp_day_index(index: int, total: int) -> int:
    """Keep a pagination index within ``[0, total - 1]``; 0 when there are no days."""

    if total <= 0:
        return 0
    return max(0, min(index, total - 1))


def group_packing_items(
    items: Iterable[PackingItem],
    *,
    priority: Optional[str] = None,
    category: Optional[str] = None,
) -> List[Tuple[str, List[PackingItem]]]:
    """Group packing items by category for display.

    Categories holding an essential item come first, otherwise categories keep
    the order they first appear in. Within a category items are ordered
    essential, recommended, optional. ``priority`` and ``category`` narrow the
    result when given.
    """

    grouped: Dict[str, List[PackingItem]] = {}
    for item in items:
        if priority and item.priority != priority:
            continue
        if category and item.category != category:
            continue
        grouped.setdefault(item.category, []).append(item)

    ordered = sorted(
        grouped.items(),
        key=lambda entry: 0 if any(item.priority == "essential" for item in entry[1]) else 1,
    )
    return [
        (name, sorted(bucket, key=lambda item: _PRIORITY_RANK.get(item.priority, len(_PRIORITY_RANK))))
        for name, bucket in ordered
    ]


def _day_heading(day: DayPlan) -> str:
    if day.date:
        return f"Day {day.day} · {day.date.strftime('%A, %b %d')}"
    return f"Day {day.day}"


def _render_weather(weather: WeatherSnapshot, *, compact: bool = False) -> None:
    if compact:
        st.caption(f"{weather.icon} {format_temperature(weather.temperature)} · {weather.condition}")
        return

    columns = st.columns(3)
    columns[0].metric(f"{weather.icon} {weather.condition}", format_temperature(weather.temperature))
    columns[1].metric("Humidity", f"{weather.humidity}%")
    columns[2].metric("Wind", f"{weather.wind_speed:g} km/h")
    st.caption(weather.description.capitalize())


def _render_day(day: DayPlan) -> None:
    with st.container(border=True):
        header_col, badge_col = st.columns([3, 2])
        header_col.markdown(f"### {_day_heading(day)}")
        badges: List[str] = []
        if day.time_of_day:
            badges.append(f"{_TIME_ICONS.get(day.time_of_day, '')} {day.time_of_day}")
        if day.estimated_cost:
            badges.append(f"💲 {_COST_BADGES.get(day.estimated_cost, day.estimated_cost)}")
        if badges:
            badge_col.markdown(" · ".join(badges))

        st.markdown(f"#### {day.main_activity}")
        if day.description:
            st.write(day.description)

        if day.photos:
            photo_cols = st.columns(len(day.photos))
            for column, photo in zip(photo_cols, day.photos):
                caption = photo.caption or photo.alt
                if photo.photographer:
                    caption = f"{caption} (📷 {photo.photographer})"
                column.image(photo.url, caption=caption, width="stretch")

        if day.add_ons:
            st.markdown("**Add-on suggestions**")
            st.markdown("\n".join(f"- {add_on}" for add_on in day.add_ons))

        if day.weather:
            _render_weather(day.weather, compact=True)


def _render_day_pager(days: Sequence[DayPlan]) -> None:
    total = len(days)
    index = clamp_day_index(int(st.session_state.get(DAY_INDEX_KEY, 0)), total)

    prev_col, picker_col, next_col = st.columns([1, 3, 1])
    if prev_col.button("← Previous", disabled=index == 0, use_container_width=True, key="day_prev"):
        index = clamp_day_index(index - 1, total)
    if next_col.button("Next →", disabled=index >= total - 1, use_container_width=True, key="day_next"):
        index = clamp_day_index(index + 1, total)
    picked = picker_col.selectbox(
        "Jump to day",
        options=list(range(total)),
        index=index,
        format_func=lambda value: _day_heading(days[value]),
        label_visibility="collapsed",
        key=f"day_picker_{index}",
    )
    index = clamp_day_index(int(picked), total)
    st.session_state[DAY_INDEX_KEY] = index

    _render_day(days[index])


def _render_packing(items: Sequence[PackingItem]) -> None:
    essential_count = sum(1 for item in items if item.priority == "essential")
    summary = f"🎒 Packing suggestions ({len(items)} items"
    if essential_count:
        summary += f", {essential_count} essential"
    summary += ")"

    with st.expander(summary, expanded=False):
        filter_options = ("all", *PACKING_PRIORITIES)
        selected = st.radio(
            "Show",
            options=filter_options,
            horizontal=True,
            format_func=lambda value: value.title(),
            key=_PACKING_FILTER_KEY,
        )
        groups = group_packing_items(items, priority=None if selected == "all" else selected)
        if not groups:
            st.caption("No items match this filter.")
            return
        for name, bucket in groups:
            st.markdown(f"**{_CATEGORY_LABELS.get(name, name.title())}**")
            for item in bucket:
                line = f"- {item.item} {_PRIORITY_BADGES.get(item.priority, item.priority)}"
                if item.reason:
                    line += f"  \n  _{item.reason}_"
                st.markdown(line)


def render_itinerary(container, itinerary: TripItinerary) -> None:
    """Render ``itinerary`` with header, hero photo, weather and day pagination."""

    with container:
        actions = st.columns([1, 1, 3])
        if actions[0].button("← Plan new trip", key="plan_new_trip"):
            show_itinerary(None)
            st.rerun()
        if actions[1].button("✨ Regenerate", key="regenerate_trip"):
            if handle_regenerate(itinerary):
                st.rerun()

        st.title(trip_title(itinerary))
        badges = [
            f"📍 {itinerary.destination}",
            f"📅 {itinerary.days} {'day' if itinerary.days == 1 else 'days'}",
            ACTIVITY_LABELS.get(itinerary.activity_type, itinerary.activity_type.title()),
        ]
        if itinerary.has_children:
            badges.insert(2, "👨‍👩‍👧 Family-friendly")
        st.markdown(" · ".join(badges))
        if itinerary.start_date and itinerary.end_date:
            start = itinerary.start_date.strftime("%b %d, %Y")
            end = itinerary.end_date.strftime("%b %d, %Y")
            st.caption(f"Dates: {start} – {end}")

        if itinerary.hero_photo:
            st.image(
                itinerary.hero_photo.url,
                caption=itinerary.hero_photo.caption or itinerary.hero_photo.alt,
                width="stretch",
            )

        if itinerary.weather:
            st.markdown("#### Weather")
            _render_weather(itinerary.weather)

        if itinerary.activities:
            _render_day_pager(itinerary.activities)
        else:
            st.info("This itinerary has no days yet.")

        if itinerary.packing_list:
            _render_packing(itinerary.packing_list)

        st.caption(
            f"✨ Generated on {itinerary.created_at.strftime('%b %d, %Y')} "
            "and saved for your future reference. Happy travels!"
        )


def render_history_sidebar() -> None:
    """List the most recent stored trips in the sidebar with a button to reopen each."""

    trips = trip_history().list_trips()[:RECENT_TRIPS_SHOWN]
    active = current_itinerary()
    with st.sidebar:
        st.header("Previous trips")
        if not trips:
            st.caption("Your generated trips will appear here.")
            return
        for trip in trips:
            label = f"{trip.destination} · {trip.days} {'day' if trip.days == 1 else 'days'}"
            if active is not None and active.id == trip.id:
                label = f"▶ {label}"
            if st.button(label, key=f"history_{trip.id}", use_container_width=True):
                _LOGGER.info("Reopening stored itinerary %s", trip.id)
                show_itinerary(trip)
                st.rerun()
            st.caption(trip.created_at.strftime("%b %d, %Y %H:%M"))


__all__ = [
    "RECENT_TRIPS_SHOWN",
    "clamp_day_index",
    "group_packing_items",
    "render_history_sidebar",
    "render_itinerary",
    "trip_title",
]
