"""Streamlit entry point for the TripCraft application."""
from __future__ import annotations

import logging

import streamlit as st
from dotenv import load_dotenv

from tripcraft.config import Settings
from tripcraft.ui import ensure_trip_state, render_history_sidebar, render_itinerary, render_trip_form
from tripcraft.ui.form import current_itinerary


def configure() -> Settings:
    """Load environment variables, configure logging and global Streamlit settings."""

    load_dotenv()
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(page_title="TripCraft", page_icon="🧭", layout="wide")
    return settings


def render(settings: Settings) -> None:
    """Render either the trip form or the active itinerary."""

    ensure_trip_state(settings)
    render_history_sidebar()

    itinerary = current_itinerary()
    if itinerary is None:
        st.title("🧭 TripCraft")
        st.caption("Tell us where you're headed and we'll craft a day-by-day plan.")
        render_trip_form(st.container())
    else:
        render_itinerary(st.container(), itinerary)


if __name__ == "__main__":
    render(configure())
