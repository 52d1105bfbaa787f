"""Driving-directions providers (OSRM and Google Directions)."""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from routeweaver.config import Settings
from routeweaver.errors import ErrorKind, Result
from routeweaver.models.places import Coordinates
from routeweaver.utils.normalizers import PolylineGeometry, RawGeometry, wrap_geometry

logger = logging.getLogger(__name__)

GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"


@dataclass(frozen=True)
class RoutingResponse:
    """Provider answer before geometry normalization."""
    geometry: RawGeometry
    distance_meters: float
    duration_seconds: float


class RoutingProvider(Protocol):
    async def route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: Sequence[Coordinates],
    ) -> Result[RoutingResponse]:
        ...


async def _fetch_json(
    url: str,
    params: Optional[Dict[str, Any]],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport],
    provider: str,
) -> Result[Dict[str, Any]]:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return Result.success(response.json())
    except httpx.TimeoutException as exc:
        logger.warning(f"{provider} routing timed out: {exc}")
        return Result.failure(ErrorKind.TIMEOUT, str(exc))
    except httpx.HTTPStatusError as exc:
        logger.warning(f"{provider} routing HTTP error: {exc.response.status_code}")
        return Result.failure(ErrorKind.UPSTREAM_STATUS, f"HTTP {exc.response.status_code}")
    except httpx.HTTPError as exc:
        logger.warning(f"{provider} routing request failed: {exc}")
        return Result.failure(ErrorKind.NETWORK, str(exc))
    except ValueError as exc:
        logger.warning(f"{provider} routing returned invalid JSON: {exc}")
        return Result.failure(ErrorKind.MALFORMED, str(exc))


def _finite(value: Any) -> Optional[float]:
    """``value`` as a finite float, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _leg_value(leg: Dict[str, Any], key: str) -> Any:
    field = leg.get(key)
    if field is None:
        return 0
    return field.get("value", 0) if isinstance(field, dict) else None


def _first_route(data: Any, status_key: str, ok_status: str) -> Result[Dict[str, Any]]:
    """The first route of a provider payload, checking status and shape."""
    if not isinstance(data, dict):
        return Result.failure(ErrorKind.MALFORMED, f"Expected a JSON object, got {type(data).__name__}")
    routes = data.get("routes")
    if data.get(status_key) != ok_status or not routes:
        return Result.failure(ErrorKind.UPSTREAM_STATUS, str(data.get(status_key)))
    if not isinstance(routes, list) or not isinstance(routes[0], dict):
        return Result.failure(ErrorKind.MALFORMED, "Unexpected routes payload")
    return Result.success(routes[0])


class OsrmRoutingProvider:
    """OSRM ``/route/v1/driving`` with full GeoJSON overview geometry."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: Sequence[Coordinates],
    ) -> Result[RoutingResponse]:
        stops = [origin, *waypoints, destination]
        path = ";".join(f"{c.longitude},{c.latitude}" for c in stops)
        url = f"{self.base_url}/route/v1/driving/{path}"

        result = await _fetch_json(
            url,
            {"overview": "full", "geometries": "geojson"},
            self.timeout,
            self._transport,
            "OSRM",
        )
        if not result.ok:
            return Result.failure(result.error, result.detail)

        first = _first_route(result.value, "code", "Ok")
        if not first.ok:
            logger.warning(f"OSRM returned no usable route: {first.detail}")
            return Result.failure(first.error, first.detail)

        best = first.value
        geometry = wrap_geometry(best.get("geometry"))
        if geometry is None:
            return Result.failure(ErrorKind.MALFORMED, "OSRM route has no geometry")

        distance = _finite(best.get("distance", 0.0))
        duration = _finite(best.get("duration", 0.0))
        if distance is None or duration is None:
            return Result.failure(ErrorKind.MALFORMED, "OSRM route has non-numeric distance or duration")

        return Result.success(RoutingResponse(
            geometry=geometry,
            distance_meters=distance,
            duration_seconds=duration,
        ))


class GoogleDirectionsProvider:
    """Google Directions API; geometry comes back as an encoded polyline."""

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def route(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: Sequence[Coordinates],
    ) -> Result[RoutingResponse]:
        if not self.api_key:
            return Result.failure(ErrorKind.NOT_CONFIGURED, "Google Directions API not configured")

        params: Dict[str, Any] = {
            "origin": f"{origin.latitude},{origin.longitude}",
            "destination": f"{destination.latitude},{destination.longitude}",
            "mode": "driving",
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(f"{w.latitude},{w.longitude}" for w in waypoints)

        result = await _fetch_json(GOOGLE_DIRECTIONS_URL, params, self.timeout, self._transport, "Google")
        if not result.ok:
            return Result.failure(result.error, result.detail)

        first = _first_route(result.value, "status", "OK")
        if not first.ok:
            logger.warning(f"Google Directions returned no usable route: {first.detail}")
            return Result.failure(first.error, first.detail)

        best = first.value
        overview = best.get("overview_polyline")
        points = overview.get("points") if isinstance(overview, dict) else None
        if not isinstance(points, str):
            return Result.failure(ErrorKind.MALFORMED, "Directions route has no polyline")
        geometry = PolylineGeometry(encoded=points)

        legs = best.get("legs") or []
        if not isinstance(legs, list):
            return Result.failure(ErrorKind.MALFORMED, "Directions legs are not a list")
        distance = 0.0
        duration = 0.0
        for leg in legs:
            if not isinstance(leg, dict):
                return Result.failure(ErrorKind.MALFORMED, "Directions leg is not an object")
            leg_distance = _finite(_leg_value(leg, "distance"))
            leg_duration = _finite(_leg_value(leg, "duration"))
            if leg_distance is None or leg_duration is None:
                return Result.failure(ErrorKind.MALFORMED, "Directions leg has non-numeric distance or duration")
            distance += leg_distance
            duration += leg_duration

        return Result.success(RoutingResponse(
            geometry=geometry,
            distance_meters=distance,
            duration_seconds=duration,
        ))


def build_routing_provider(settings: Settings) -> RoutingProvider:
    """Provider selected by ``settings.routing_provider``."""
    if settings.routing_provider == "google":
        return GoogleDirectionsProvider(settings.google_places_api_key, settings.http_timeout_seconds)
    return OsrmRoutingProvider(settings.osrm_base_url, settings.http_timeout_seconds)
