"""Photo search backends used to illustrate itinerary days."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from tripcraft.config import Settings
from tripcraft.core.hashing import string_hash
from tripcraft.schemas import PhotoRecord

_LOGGER = logging.getLogger(__name__)

_UNSPLASH_BASE_URL = "https://api.unsplash.com"
_PICSUM_BASE_URL = "https://picsum.photos"


class PhotoSearchError(RuntimeError):
    """Raised when the photo search API returns an unexpected response."""


class PhotoSearch(Protocol):
    async def search(
        self, query: str, *, seed: str, width: int = 800, height: int = 600
    ) -> Optional[PhotoRecord]:
        """Return the best photo for ``query`` or ``None`` when nothing matches."""


class UnsplashPhotoSearch:
    """Searches the Unsplash API for landscape photos."""

    def __init__(
        self,
        access_key: str,
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = _UNSPLASH_BASE_URL,
    ) -> None:
        if not access_key:
            raise ValueError("Unsplash access key must not be empty")
        self._access_key = access_key
        self._timeout = timeout
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")

    async def _request(self, path: str, params: Dict[str, object]) -> Dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Client-ID {self._access_key}", "Accept-Version": "v1"}
        if self._http_client is not None:
            response = await self._http_client.get(
                url, params=params, headers=headers, timeout=self._timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise PhotoSearchError("Unsplash search response was not a JSON object")
        return data

    async def search(
        self, query: str, *, seed: str, width: int = 800, height: int = 600
    ) -> Optional[PhotoRecord]:
        data = await self._request(
            "search/photos",
            {"query": query, "per_page": 1, "orientation": "landscape"},
        )
        results = data.get("results") or []
        if not isinstance(results, list):
            raise PhotoSearchError(f"Unsplash results for {query!r} were not a list")
        if not results:
            _LOGGER.info("No Unsplash results for %r", query)
            return None

        first = results[0]
        urls = first.get("urls") if isinstance(first, dict) else None
        if not isinstance(urls, dict):
            raise PhotoSearchError(f"Unsplash result for {query!r} did not include image URLs")
        url = urls.get("regular") or urls.get("full") or urls.get("raw")
        if not isinstance(url, str) or not url:
            raise PhotoSearchError(f"Unsplash result for {query!r} did not include an image URL")

        user = first.get("user")
        if not isinstance(user, dict):
            user = {}
        return PhotoRecord(
            url=f"{url}&w={width}&h={height}&fit=crop" if "?" in url else url,
            alt=first.get("alt_description") or query,
            photographer=user.get("name"),
        )


class SeededPhotoSearch:
    """Offline-friendly photos: stable Picsum URLs seeded from the query context."""

    def __init__(self, base_url: str = _PICSUM_BASE_URL) -> None:
        self._base_url = base_url.rstrip("/")

    async def search(
        self, query: str, *, seed: str, width: int = 800, height: int = 600
    ) -> Optional[PhotoRecord]:
        seed_value = abs(string_hash(seed))
        return PhotoRecord(
            url=f"{self._base_url}/seed/{seed_value}/{width}/{height}",
            alt=query,
        )


def build_photo_search(
    settings: Settings, *, http_client: Optional[httpx.AsyncClient] = None
) -> PhotoSearch:
    """Return Unsplash search when a key is configured, seeded photos otherwise."""

    if settings.unsplash_access_key:
        return UnsplashPhotoSearch(
            settings.unsplash_access_key,
            timeout=settings.http_timeout,
            http_client=http_client,
        )
    _LOGGER.info("UNSPLASH_ACCESS_KEY is not set; using seeded placeholder photos")
    return SeededPhotoSearch()


__all__ = [
    "PhotoSearch",
    "PhotoSearchError",
    "SeededPhotoSearch",
    "UnsplashPhotoSearch",
    "build_photo_search",
]
