"""Tests for the pure helpers behind the itinerary view."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tripcraft.schemas import ACTIVITY_TYPES, PackingItem, TripItinerary
from tripcraft.ui.form import ACTIVITY_LABELS
from tripcraft.ui.itinerary import clamp_day_index, group_packing_items, trip_title


def _items() -> list[PackingItem]:
    return [
        PackingItem(item="Sweater", category="clothing", priority="optional"),
        PackingItem(item="Charger", category="electronics", priority="recommended"),
        PackingItem(item="Rain jacket", category="clothing", priority="essential"),
        PackingItem(item="Passport", category="documents", priority="essential"),
        PackingItem(item="Scarf", category="clothing", priority="recommended"),
    ]


def test_group_packing_items_puts_essential_categories_first() -> None:
    groups = group_packing_items(_items())

    assert [name for name, _ in groups] == ["clothing", "documents", "electronics"]
    clothing = dict(groups)["clothing"]
    assert [item.item for item in clothing] == ["Rain jacket", "Scarf", "Sweater"]


def test_group_packing_items_filters_by_priority() -> None:
    groups = group_packing_items(_items(), priority="essential")

    assert [(name, [item.item for item in bucket]) for name, bucket in groups] == [
        ("clothing", ["Rain jacket"]),
        ("documents", ["Passport"]),
    ]


def test_group_packing_items_filters_by_category() -> None:
    groups = group_packing_items(_items(), category="electronics")

    assert [name for name, _ in groups] == ["electronics"]


def test_group_packing_items_handles_empty_input() -> None:
    assert group_packing_items([]) == []


@pytest.mark.parametrize(
    "index, total, expected",
    [(0, 3, 0), (2, 3, 2), (5, 3, 2), (-1, 3, 0), (4, 0, 0), (0, 1, 0)],
)
def test_clamp_day_index(index: int, total: int, expected: int) -> None:
    assert clamp_day_index(index, total) == expected


def test_trip_title() -> None:
    itinerary = TripItinerary(
        id="trip-1",
        destination="Kyoto",
        days=4,
        activity_type="cultural",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )

    assert trip_title(itinerary) == "Your 4-Day Kyoto Adventure"


def test_activity_labels_cover_every_activity_type() -> None:
    assert set(ACTIVITY_LABELS) == set(ACTIVITY_TYPES)
    assert ACTIVITY_LABELS["food"] == "Food & Drink"
    assert ACTIVITY_LABELS["urban"] == "Urban"


def test_day_photos_stretch_to_column_width(monkeypatch: pytest.MonkeyPatch) -> None:
    from unittest.mock import MagicMock

    from tripcraft.schemas import DayPlan, PhotoRecord
    from tripcraft.ui import itinerary as itinerary_view

    fake_st = MagicMock()
    photo_columns: list[MagicMock] = []

    def columns(spec: object) -> list[MagicMock]:
        created = [MagicMock() for _ in range(spec if isinstance(spec, int) else len(spec))]
        if isinstance(spec, int):
            photo_columns.extend(created)
        return created

    fake_st.columns.side_effect = columns
    monkeypatch.setattr(itinerary_view, "st", fake_st)

    day = DayPlan(
        main_activity="Louvre",
        description="Museum morning.",
        photos=[PhotoRecord(url="https://picsum.photos/seed/1/800/600", alt="Louvre in Paris")],
    )
    itinerary_view._render_day(day)

    assert len(photo_columns) == 1
    _, kwargs = photo_columns[0].image.call_args
    assert kwargs["width"] == "stretch"
    assert "use_container_width" not in kwargs
