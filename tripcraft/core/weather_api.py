"""Weather lookups backed by OpenWeatherMap with a deterministic offline fallback."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from tripcraft.config import Settings
from tripcraft.core.hashing import string_hash
from tripcraft.schemas import WeatherSnapshot

_LOGGER = logging.getLogger(__name__)

_OPENWEATHER_BASE_URL = "https://api.openweathermap.org"
_FORECAST_HORIZON_DAYS = 5
_MS_TO_KMH = 3.6

_CONDITIONS: Dict[str, Tuple[str, str]] = {
    "Clear": ("Clear sky", "☀️"),
    "Clouds": ("Partly cloudy", "⛅"),
    "Rain": ("Light rain", "🌧️"),
    "Drizzle": ("Drizzle", "🌦️"),
    "Thunderstorm": ("Thunderstorms", "⛈️"),
    "Snow": ("Light snow", "❄️"),
    "Mist": ("Misty conditions", "🌫️"),
    "Fog": ("Foggy", "🌫️"),
}
_DEFAULT_ICON = "🌤️"
_DAMP_CONDITIONS = {"Rain", "Drizzle", "Thunderstorm", "Snow", "Mist", "Fog"}

# (lowest temperature °C, temperature span, weighted conditions)
_SEASON_PROFILES: Dict[str, Tuple[int, int, Sequence[str]]] = {
    "winter": (-2, 12, ("Clouds", "Snow", "Clear", "Rain", "Mist", "Snow", "Clouds")),
    "spring": (9, 12, ("Clear", "Clouds", "Rain", "Clear", "Drizzle", "Clouds")),
    "summer": (21, 12, ("Clear", "Clear", "Clouds", "Clear", "Thunderstorm", "Clouds")),
    "autumn": (8, 12, ("Clouds", "Rain", "Clear", "Mist", "Clouds", "Drizzle")),
    "any": (15, 15, ("Clear", "Clouds", "Rain", "Snow", "Mist")),
}


class WeatherAPIError(RuntimeError):
    """Raised when OpenWeatherMap returns an unexpected response."""


def weather_icon(condition: str) -> str:
    """Return the glyph used for an OpenWeatherMap condition code."""

    entry = _CONDITIONS.get(condition)
    return entry[1] if entry else _DEFAULT_ICON


def format_temperature(celsius: float) -> str:
    return f"{round(celsius)}°C"


def _season(month: int) -> str:
    if month in (12, 1, 2):
        return "winter"
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    return "autumn"


def mock_weather(destination: str, on: Optional[date] = None) -> WeatherSnapshot:
    """Synthesize weather from a hash of ``destination`` and ``on``.

    The result depends only on the two inputs. The month of ``on`` selects a
    northern-hemisphere seasonal profile; without a date a neutral profile is used.
    """

    key = f"{destination.strip()}|{on.isoformat() if on else ''}"
    hashed = string_hash(key)
    magnitude = abs(hashed)

    low, span, conditions = _SEASON_PROFILES[_season(on.month) if on else "any"]
    condition = conditions[magnitude % len(conditions)]
    description, icon = _CONDITIONS[condition]

    humidity = 40 + abs(hashed * 2) % 41
    if condition in _DAMP_CONDITIONS:
        humidity = min(100, humidity + 15)

    return WeatherSnapshot(
        temperature=float(low + (magnitude // 7) % (span + 1)),
        condition=condition,
        description=description,
        humidity=humidity,
        wind_speed=float(5 + abs(hashed * 3) % 21),
        icon=icon,
    )


def _snapshot_from_payload(payload: Dict[str, Any]) -> WeatherSnapshot:
    try:
        main = payload["main"]
        if not isinstance(main, dict):
            raise WeatherAPIError("Weather payload had no \"main\" object")
        conditions = payload.get("weather") or [{}]
        if not isinstance(conditions, list) or not isinstance(conditions[0], dict):
            raise WeatherAPIError("Weather payload had no condition objects")
        condition = str(conditions[0].get("main") or "Clear")
        description = conditions[0].get("description") or _CONDITIONS.get(condition, ("",))[0]
        wind = payload.get("wind")
        wind_ms = float(wind.get("speed", 0.0)) if isinstance(wind, dict) else 0.0
        return WeatherSnapshot(
            temperature=round(float(main["temp"]), 1),
            condition=condition,
            description=str(description).capitalize(),
            humidity=int(main.get("humidity", 0)),
            wind_speed=round(wind_ms * _MS_TO_KMH, 1),
            icon=weather_icon(condition),
        )
    except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
        raise WeatherAPIError(f"Unexpected weather payload: {exc}") from exc


def _entry_datetime(entry: Dict[str, Any]) -> Optional[datetime]:
    stamp = entry.get("dt")
    if isinstance(stamp, (int, float)):
        return datetime.fromtimestamp(stamp, tz=timezone.utc)
    text = entry.get("dt_txt")
    if isinstance(text, str):
        try:
            return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


def _pick_forecast_entry(
    entries: List[Any], target: date, utc_offset: int = 0
) -> Dict[str, Any]:
    """Return the entry nearest local noon on ``target``.

    ``utc_offset`` is the destination's offset from UTC in seconds, as reported
    in the forecast's ``city.timezone`` field.
    """

    candidates: List[Tuple[float, Dict[str, Any]]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        moment = _entry_datetime(entry)
        if moment is None:
            continue
        moment += timedelta(seconds=utc_offset)
        if moment.date() != target:
            continue
        distance_from_noon = abs(moment.hour + moment.minute / 60 - 12)
        candidates.append((distance_from_noon, entry))
    if not candidates:
        raise WeatherAPIError(f"Forecast did not cover {target.isoformat()}")
    candidates.sort(key=lambda item: item[0])
    return candidates[0][1]


class WeatherService:
    """Resolves a destination to coordinates and picks live, forecast or mock weather."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = _OPENWEATHER_BASE_URL,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")
        self._today = today

    async def _request(self, path: str, params: Dict[str, object]) -> Any:
        params = {**params, "appid": self._api_key}
        url = f"{self._base_url}/{path.lstrip('/')}"
        if self._http_client is not None:
            response = await self._http_client.get(url, params=params, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def geocode(self, destination: str) -> Optional[Tuple[float, float]]:
        """Return ``(lat, lon)`` for ``destination`` or ``None`` when it is unknown."""

        data = await self._request("geo/1.0/direct", {"q": destination, "limit": 1})
        if not isinstance(data, list) or not data:
            return None
        first = data[0]
        if not isinstance(first, dict):
            raise WeatherAPIError(f"Unexpected geocoding entry for {destination!r}")
        lat, lon = first.get("lat"), first.get("lon")
        if lat is None or lon is None:
            return None
        return float(lat), float(lon)

    async def current(self, lat: float, lon: float) -> WeatherSnapshot:
        data = await self._request(
            "data/2.5/weather", {"lat": lat, "lon": lon, "units": "metric"}
        )
        if not isinstance(data, dict):
            raise WeatherAPIError("Current weather response was not a JSON object")
        return _snapshot_from_payload(data)

    async def forecast(self, lat: float, lon: float, target: date) -> WeatherSnapshot:
        data = await self._request(
            "data/2.5/forecast", {"lat": lat, "lon": lon, "units": "metric"}
        )
        entries = data.get("list") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise WeatherAPIError("Forecast response did not contain a list")
        city = data.get("city")
        offset = city.get("timezone") if isinstance(city, dict) else None
        utc_offset = int(offset) if isinstance(offset, (int, float)) else 0
        return _snapshot_from_payload(_pick_forecast_entry(entries, target, utc_offset))

    async def get_weather(self, destination: str, on: Optional[date] = None) -> WeatherSnapshot:
        """Return weather for ``destination`` on ``on`` (today when omitted).

        Same day uses current conditions, one to five days ahead uses the
        forecast, and anything else (further out, in the past, unconfigured or
        failing upstream) falls back to :func:`mock_weather`.
        """

        today = self._today()
        target = on or today
        days_ahead = (target - today).days

        if not self._api_key:
            return mock_weather(destination, on)
        if days_ahead < 0 or days_ahead > _FORECAST_HORIZON_DAYS:
            _LOGGER.debug(
                "Weather for %s on %s is %d days out; using mock weather",
                destination,
                target.isoformat(),
                days_ahead,
            )
            return mock_weather(destination, on)

        try:
            coordinates = await self.geocode(destination)
            if coordinates is None:
                _LOGGER.warning("Could not geocode %s; using mock weather", destination)
                return mock_weather(destination, on)
            lat, lon = coordinates
            if days_ahead == 0:
                return await self.current(lat, lon)
            return await self.forecast(lat, lon, target)
        except (httpx.HTTPError, WeatherAPIError, TypeError, ValueError) as exc:
            _LOGGER.warning("Weather lookup failed for %s: %s; using mock weather", destination, exc)
            return mock_weather(destination, on)


def build_weather_service(
    settings: Settings, *, http_client: Optional[httpx.AsyncClient] = None
) -> WeatherService:
    return WeatherService(
        settings.openweather_api_key,
        timeout=settings.http_timeout,
        http_client=http_client,
    )


__all__ = [
    "WeatherAPIError",
    "WeatherService",
    "build_weather_service",
    "format_temperature",
    "mock_weather",
    "weather_icon",
]
