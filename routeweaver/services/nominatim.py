"""OpenStreetMap Nominatim client."""
import logging
from typing import Any, Dict, Optional

import httpx

from routeweaver.config import Settings
from routeweaver.errors import ErrorKind, Result
from routeweaver.models.places import Coordinates

logger = logging.getLogger(__name__)


class NominatimClient:
    """Forward and reverse geocoding against a Nominatim instance."""

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "NominatimClient":
        return cls(
            base_url=settings.nominatim_url,
            user_agent=settings.nominatim_user_agent,
            timeout=settings.http_timeout_seconds,
        )

    async def _get(self, path: str, params: Dict[str, Any]) -> Result[Any]:
        # Nominatim's usage policy requires an identifying User-Agent
        headers = {"User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/{path}",
                    params={**params, "format": "json"},
                    headers=headers,
                )
                response.raise_for_status()
                return Result.success(response.json())
        except httpx.TimeoutException as exc:
            logger.warning(f"Nominatim {path} timed out: {exc}")
            return Result.failure(ErrorKind.TIMEOUT, str(exc))
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Nominatim {path} HTTP error: {exc.response.status_code}")
            return Result.failure(ErrorKind.UPSTREAM_STATUS, f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning(f"Nominatim {path} request failed: {exc}")
            return Result.failure(ErrorKind.NETWORK, str(exc))
        except ValueError as exc:
            return Result.failure(ErrorKind.MALFORMED, str(exc))

    async def geocode(self, query: str) -> Result[Coordinates]:
        result = await self._get("search", {"q": query, "limit": 1})
        if not result.ok:
            return Result.failure(result.error, result.detail)
        if not isinstance(result.value, list) or not result.value:
            return Result.failure(ErrorKind.EMPTY, f"No Nominatim match for {query!r}")

        hit = result.value[0]
        try:
            return Result.success(Coordinates(latitude=float(hit["lat"]), longitude=float(hit["lon"])))
        except (KeyError, TypeError, ValueError) as exc:
            return Result.failure(ErrorKind.MALFORMED, f"Unexpected Nominatim payload: {exc}")

    async def reverse(self, latitude: float, longitude: float) -> Result[str]:
        result = await self._get("reverse", {"lat": latitude, "lon": longitude})
        if not result.ok:
            return Result.failure(result.error, result.detail)

        data = result.value if isinstance(result.value, dict) else {}
        display_name = data.get("display_name")
        if not display_name:
            return Result.failure(ErrorKind.EMPTY, "No display name for coordinates")
        return Result.success(display_name)
