"""Client for the Google Maps Platform web services."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from routeweaver.config import Settings
from routeweaver.errors import ErrorKind, Result
from routeweaver.models.places import Coordinates

logger = logging.getLogger(__name__)

MAPS_API_BASE_URL = "https://maps.googleapis.com/maps/api"


class GooglePlacesClient:
    """HTTP client wrapper for Google Geocoding, Places and Photo APIs."""

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        base_url: str = MAPS_API_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GooglePlacesClient":
        return cls(api_key=settings.google_places_api_key, timeout=settings.http_timeout_seconds)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Result[Dict[str, Any]]:
        if not self.api_key:
            return Result.failure(ErrorKind.NOT_CONFIGURED, "Google Places API not configured")

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/{path}",
                    params={**params, "key": self.api_key},
                )
                response.raise_for_status()
                return Result.success(response.json())
        except httpx.TimeoutException as exc:
            logger.warning(f"Google {path} timed out: {exc}")
            return Result.failure(ErrorKind.TIMEOUT, str(exc))
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Google {path} HTTP error: {exc.response.status_code}")
            return Result.failure(ErrorKind.UPSTREAM_STATUS, f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning(f"Google {path} request failed: {exc}")
            return Result.failure(ErrorKind.NETWORK, str(exc))
        except ValueError as exc:
            logger.warning(f"Google {path} returned invalid JSON: {exc}")
            return Result.failure(ErrorKind.MALFORMED, str(exc))

    async def geocode(self, address: str) -> Result[Coordinates]:
        """Forward geocode a free-text address."""
        result = await self._get_json("geocode/json", {"address": address})
        if not result.ok:
            return Result.failure(result.error, result.detail)

        data = result.value
        if not isinstance(data, dict):
            return Result.failure(ErrorKind.MALFORMED, f"Expected a JSON object, got {type(data).__name__}")
        if data.get("status") != "OK" or not data.get("results"):
            logger.warning(f"Google Geocoding API status: {data.get('status')}")
            return Result.failure(ErrorKind.EMPTY, str(data.get("status")))

        try:
            location = data["results"][0]["geometry"]["location"]
            return Result.success(Coordinates(latitude=location["lat"], longitude=location["lng"]))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            return Result.failure(ErrorKind.MALFORMED, f"Unexpected geocode payload: {exc}")

    async def places_near(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        place_type: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> Result[List[Dict[str, Any]]]:
        """Nearby Search around a point; returns raw Google result records."""
        params: Dict[str, Any] = {
            "location": f"{latitude},{longitude}",
            "radius": int(radius_meters),
        }
        if place_type:
            params["type"] = place_type
        if keyword:
            params["keyword"] = keyword

        result = await self._get_json("place/nearbysearch/json", params)
        if not result.ok:
            return Result.failure(result.error, result.detail)

        data = result.value
        if not isinstance(data, dict):
            return Result.failure(ErrorKind.MALFORMED, f"Expected a JSON object, got {type(data).__name__}")
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"Google Nearby Search status: {status}")
            return Result.failure(ErrorKind.UPSTREAM_STATUS, str(status))
        results = data.get("results") or []
        if not isinstance(results, list):
            return Result.failure(ErrorKind.MALFORMED, "Nearby Search results are not a list")
        return Result.success([item for item in results if isinstance(item, dict)])

    async def photo_reference(self, name: str, latitude: float, longitude: float) -> Optional[str]:
        """
        First photo reference for a place.

        Tries a text search on the name, then a 500 m nearby search around
        the coordinates. Returns None when neither has a photo.
        """
        text_search = await self._get_json("place/textsearch/json", {"query": name})
        data = text_search.unwrap_or({})
        photo = _first_photo(data.get("results") if isinstance(data, dict) else None)
        if photo:
            return photo

        nearby = await self.places_near(latitude, longitude, 500)
        return _first_photo(nearby.unwrap_or([]))

    async def fetch_photo(self, photo_reference: str, max_width: int = 800) -> Result[httpx.Response]:
        """Download a photo by reference (follows Google's redirect)."""
        if not self.api_key:
            return Result.failure(ErrorKind.NOT_CONFIGURED, "Google Places API not configured")

        params = {
            "photoreference": photo_reference,
            "maxwidth": max_width,
            "key": self.api_key,
        }
        try:
            async with self._client(follow_redirects=True) as client:
                response = await client.get(f"{self.base_url}/place/photo", params=params)
                response.raise_for_status()
                return Result.success(response)
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Google Photo API HTTP error: {exc.response.status_code}")
            return Result.failure(ErrorKind.UPSTREAM_STATUS, f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning(f"Google Photo API error: {exc}")
            return Result.failure(ErrorKind.NETWORK, str(exc))


def _first_photo(results: Any) -> Optional[str]:
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    photos = results[0].get("photos")
    if not isinstance(photos, list) or not photos or not isinstance(photos[0], dict):
        return None
    reference = photos[0].get("photo_reference")
    return reference if isinstance(reference, str) else None
