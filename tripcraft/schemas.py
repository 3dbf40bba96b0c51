"""Data schemas for the TripCraft application."""

from __future__ import annotations

from datetime import date, datetime, timedelta
import re
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


ActivityType = Literal["cultural", "adventure", "relaxation", "food", "nature", "urban"]
CostTier = Literal["budget", "moderate", "expensive"]
TimeOfDay = Literal["morning", "afternoon", "evening", "full-day"]
PackingCategory = Literal["clothing", "gear", "accessories", "documents", "personal", "electronics"]
PackingPriority = Literal["essential", "recommended", "optional"]

ACTIVITY_TYPES: tuple[str, ...] = get_args(ActivityType)
COST_TIERS: tuple[str, ...] = get_args(CostTier)
TIMES_OF_DAY: tuple[str, ...] = get_args(TimeOfDay)
PACKING_CATEGORIES: tuple[str, ...] = get_args(PackingCategory)
PACKING_PRIORITIES: tuple[str, ...] = get_args(PackingPriority)

CalendarDate = date

MIN_TRIP_DAYS = 1
MAX_TRIP_DAYS = 14


def _split_list(value: object) -> object:
    """Turn comma/newline separated LLM strings into lists."""

    if isinstance(value, str):
        return [part.strip() for part in re.split(r"[\n,;]+", value) if part.strip()]
    if isinstance(value, tuple):
        return list(value)
    return value


def _coerce_choice(value: object, choices: Iterable[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower().replace("_", "-").replace(" ", "-")
    return candidate if candidate in choices else None


def _coerce_date(value: object) -> object:
    if value is None or isinstance(value, date):
        return value.date() if isinstance(value, datetime) else value
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        try:
            return date.fromisoformat(candidate.split("T")[0])
        except ValueError:
            return value
    return value


class TripRequest(BaseModel):
    """Validated form input; frozen once submitted."""

    destination: str
    days: int = Field(ge=MIN_TRIP_DAYS, le=MAX_TRIP_DAYS)
    has_children: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_children", "hasChildren"),
    )
    activity_type: ActivityType = Field(
        default="cultural",
        validation_alias=AliasChoices("activity_type", "activityType"),
    )
    start_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("destination")
    @classmethod
    def _strip_destination(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("destination must not be blank")
        return cleaned

    @field_validator("start_date", mode="before")
    @classmethod
    def _parse_start_date(cls, value: object) -> object:
        return _coerce_date(value)

    @property
    def end_date(self) -> Optional[date]:
        if self.start_date is None:
            return None
        return self.start_date + timedelta(days=self.days - 1)

    def date_for_day(self, day: int) -> Optional[date]:
        """Return the calendar date of the 1-based ``day`` when a start date is known."""

        if self.start_date is None:
            return None
        return self.start_date + timedelta(days=day - 1)


class TripFormError(ValueError):
    """Raised when trip form input cannot be turned into a :class:`TripRequest`."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors: Dict[str, str] = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Invalid trip request")


def validate_trip_form(raw: Mapping[str, Any]) -> TripRequest:
    """Validate loose form values and return a frozen :class:`TripRequest`."""

    errors: Dict[str, str] = {}

    destination = raw.get("destination")
    if not isinstance(destination, str) or not destination.strip():
        errors["destination"] = "Please enter a destination"

    days_raw = raw.get("days")
    days: Optional[int] = None
    if isinstance(days_raw, bool):
        days = None
    elif isinstance(days_raw, int):
        days = days_raw
    elif isinstance(days_raw, str) and days_raw.strip().isdigit():
        days = int(days_raw.strip())
    if days is None or not MIN_TRIP_DAYS <= days <= MAX_TRIP_DAYS:
        errors["days"] = f"Trip must be between {MIN_TRIP_DAYS}-{MAX_TRIP_DAYS} days"

    activity_type = raw.get("activity_type", raw.get("activityType", "cultural"))
    if activity_type not in ACTIVITY_TYPES:
        errors["activity_type"] = f"Choose one of: {', '.join(ACTIVITY_TYPES)}"

    start_date = _coerce_date(raw.get("start_date", raw.get("startDate")))
    if start_date is not None and not isinstance(start_date, date):
        errors["start_date"] = "Start date must be a valid date"

    if errors:
        raise TripFormError(errors)

    try:
        return TripRequest(
            destination=destination,
            days=days,
            has_children=bool(raw.get("has_children", raw.get("hasChildren", False))),
            activity_type=activity_type,
            start_date=start_date,
        )
    except ValidationError as exc:
        raise TripFormError({"form": str(exc)}) from exc


class PhotoRecord(BaseModel):
    """An image shown alongside an activity or the itinerary header."""

    url: str
    alt: str
    caption: Optional[str] = None
    photographer: Optional[str] = None


class WeatherSnapshot(BaseModel):
    """Weather for one place and day, live or synthesized."""

    temperature: float
    condition: str
    description: str
    humidity: int = Field(ge=0, le=100)
    wind_speed: float = Field(
        ge=0,
        validation_alias=AliasChoices("wind_speed", "windSpeed"),
    )
    icon: str

    model_config = ConfigDict(populate_by_name=True)


class DayPlan(BaseModel):
    """One day's activity record within an itinerary."""

    day: int = Field(default=1, ge=1)
    date: Optional[CalendarDate] = None
    main_activity: str = Field(
        min_length=1,
        validation_alias=AliasChoices("main_activity", "mainActivity", "activity", "title"),
    )
    description: str = Field(
        min_length=1,
        validation_alias=AliasChoices("description", "summary"),
    )
    add_ons: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("add_ons", "addOns", "extras"),
    )
    estimated_cost: Optional[CostTier] = Field(
        default=None,
        validation_alias=AliasChoices("estimated_cost", "estimatedCost", "cost"),
    )
    time_of_day: Optional[TimeOfDay] = Field(
        default=None,
        validation_alias=AliasChoices("time_of_day", "timeOfDay"),
    )
    photos: List[PhotoRecord] = Field(default_factory=list)
    weather: Optional[WeatherSnapshot] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("day", mode="before")
    @classmethod
    def _parse_day(cls, value: object) -> object:
        if isinstance(value, str):
            match = re.search(r"\d+", value)
            return int(match.group()) if match else 1
        return 1 if value is None else value

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> object:
        return _coerce_date(value)

    @field_validator("add_ons", mode="before")
    @classmethod
    def _coerce_add_ons(cls, value: object) -> object:
        if value is None:
            return []
        return _split_list(value)

    @field_validator("estimated_cost", mode="before")
    @classmethod
    def _coerce_cost(cls, value: object) -> Optional[str]:
        return _coerce_choice(value, COST_TIERS)

    @field_validator("time_of_day", mode="before")
    @classmethod
    def _coerce_time_of_day(cls, value: object) -> Optional[str]:
        return _coerce_choice(value, TIMES_OF_DAY)


class PackingItem(BaseModel):
    """A single packing suggestion."""

    item: str = Field(min_length=1, validation_alias=AliasChoices("item", "name"))
    category: PackingCategory = "personal"
    priority: PackingPriority = "recommended"
    reason: str = Field(
        default="",
        validation_alias=AliasChoices("reason", "rationale", "why"),
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: object) -> str:
        return _coerce_choice(value, PACKING_CATEGORIES) or "personal"

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: object) -> str:
        return _coerce_choice(value, PACKING_PRIORITIES) or "recommended"


class TripItinerary(BaseModel):
    """Root aggregate produced by the itinerary pipeline."""

    id: str
    destination: str
    days: int = Field(ge=MIN_TRIP_DAYS, le=MAX_TRIP_DAYS)
    has_children: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_children", "hasChildren"),
    )
    activity_type: ActivityType = Field(
        validation_alias=AliasChoices("activity_type", "activityType"),
    )
    activities: List[DayPlan] = Field(default_factory=list)
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))
    start_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate"),
    )
    end_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("end_date", "endDate"),
    )
    hero_photo: Optional[PhotoRecord] = Field(
        default=None,
        validation_alias=AliasChoices("hero_photo", "heroPhoto"),
    )
    weather: Optional[WeatherSnapshot] = None
    packing_list: Optional[List[PackingItem]] = Field(
        default=None,
        validation_alias=AliasChoices("packing_list", "packingList"),
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_request(self) -> TripRequest:
        """Rebuild the request that produced this itinerary (used for regeneration)."""

        return TripRequest(
            destination=self.destination,
            days=self.days,
            has_children=self.has_children,
            activity_type=self.activity_type,
            start_date=self.start_date,
        )


class ItineraryDraft(BaseModel):
    """Raw day list returned by the itinerary prompt."""

    activities: List[DayPlan] = Field(
        default_factory=list,
        validation_alias=AliasChoices("activities", "days", "itinerary"),
    )

    @model_validator(mode="before")
    @classmethod
    def _unwrap_common_wrappers(cls, data: object) -> object:
        """Accept a bare list or an ``{"itinerary": {...}}`` wrapper."""

        if isinstance(data, list):
            return {"activities": data}
        if isinstance(data, dict):
            nested = data.get("itinerary")
            if isinstance(nested, dict):
                return nested
        return data


class PhotoAnalysis(BaseModel):
    """LLM verdict on whether an activity has relevant photos."""

    has_relevant_photos: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_relevant_photos", "hasRelevantPhotos"),
    )
    search_terms: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("search_terms", "searchTerms"),
    )
    reason: Optional[str] = None

    @field_validator("search_terms", mode="before")
    @classmethod
    def _coerce_terms(cls, value: object) -> object:
        if value is None:
            return []
        value = _split_list(value)
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return value


class HeroPhotoAnalysis(BaseModel):
    """LLM verdict on whether a destination has an iconic landmark."""

    has_landmark: bool = Field(
        default=False,
        validation_alias=AliasChoices("has_landmark", "hasLandmark"),
    )
    search_term: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("search_term", "searchTerm"),
    )
    reason: Optional[str] = None


class PackingSuggestions(BaseModel):
    """Packing list envelope returned by the packing prompt."""

    items: List[PackingItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "packingList", "packing_list"),
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data: object) -> object:
        if isinstance(data, list):
            return {"items": data}
        return data


__all__ = [
    "ACTIVITY_TYPES",
    "ActivityType",
    "COST_TIERS",
    "DayPlan",
    "HeroPhotoAnalysis",
    "ItineraryDraft",
    "MAX_TRIP_DAYS",
    "MIN_TRIP_DAYS",
    "PACKING_CATEGORIES",
    "PACKING_PRIORITIES",
    "PackingItem",
    "PackingSuggestions",
    "PhotoAnalysis",
    "PhotoRecord",
    "TIMES_OF_DAY",
    "TripFormError",
    "TripItinerary",
    "TripRequest",
    "WeatherSnapshot",
    "validate_trip_form",
]
