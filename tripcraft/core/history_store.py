"""Persistence helpers for the recent-trips history."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Protocol

from pydantic import ValidationError

from tripcraft.schemas import TripItinerary

_LOGGER = logging.getLogger(__name__)

HISTORY_KEY = "trip-itineraries"
HISTORY_LIMIT = 10


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemoryKeyValueStore:
    """Fallback store used for tests and sessions without a history file."""

    def __init__(self) -> None:
        self._values: MutableMapping[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFileKeyValueStore:
    """Keeps every key in one JSON document on disk.

    Writes go to a temporary file in the same directory which then replaces the
    document, so readers never observe a half-written file.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable history file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class TripHistory:
    """Newest-first list of generated itineraries, capped at :data:`HISTORY_LIMIT`."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = HISTORY_KEY,
        limit: int = HISTORY_LIMIT,
    ) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._store = store
        self._key = key
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def list_trips(self) -> List[TripItinerary]:
        raw = self._store.get(self._key, [])
        if not isinstance(raw, list):
            _LOGGER.warning("History entry %s is not a list; treating it as empty", self._key)
            return []
        trips: List[TripItinerary] = []
        for entry in raw:
            try:
                trips.append(TripItinerary.model_validate(entry))
            except ValidationError as exc:
                _LOGGER.warning("Skipping unreadable history record: %s", exc)
        return trips

    def get_trip(self, trip_id: str) -> Optional[TripItinerary]:
        for trip in self.list_trips():
            if trip.id == trip_id:
                return trip
        return None

    def _write(self, trips: List[TripItinerary]) -> None:
        self._store.set(
            self._key,
            [trip.model_dump(mode="json") for trip in trips[: self._limit]],
        )

    def record(self, itinerary: TripItinerary) -> List[TripItinerary]:
        """Put ``itinerary`` first, dropping an older copy with the same id."""

        return self.replace(itinerary.id, itinerary)

    def replace(self, previous_id: str, itinerary: TripItinerary) -> List[TripItinerary]:
        """Drop the entry for ``previous_id`` and put ``itinerary`` first."""

        remaining = [
            trip
            for trip in self.list_trips()
            if trip.id not in {previous_id, itinerary.id}
        ]
        trips = [itinerary, *remaining][: self._limit]
        self._write(trips)
        return trips

    def clear(self) -> None:
        self._store.set(self._key, [])


def open_history(path: Optional[Path] = None) -> TripHistory:
    """Return a file-backed history when ``path`` is given, in-memory otherwise."""

    store: KeyValueStore = JsonFileKeyValueStore(path) if path else InMemoryKeyValueStore()
    return TripHistory(store)


__all__ = [
    "HISTORY_KEY",
    "HISTORY_LIMIT",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "TripHistory",
    "open_history",
]
