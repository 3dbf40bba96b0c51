"""Workflow entry points for orchestrating TripCraft agents."""

from .trip_pipeline import (
    GenerationError,
    generate_itinerary,
    regenerate_itinerary,
    run_regeneration,
    run_trip_pipeline,
)

__all__ = [
    "GenerationError",
    "generate_itinerary",
    "regenerate_itinerary",
    "run_regeneration",
    "run_trip_pipeline",
]
