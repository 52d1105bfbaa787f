"""
Route assembly.

Waypoints are visited nearest-first from the origin. When the routing
provider cannot produce a usable route, a synthetic one is drawn instead so
callers always get something to display.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from routeweaver.errors import ErrorKind
from routeweaver.models.places import Coordinates
from routeweaver.models.routes import Route
from routeweaver.services.routing import RoutingProvider
from routeweaver.utils.geo import (
    LonLat,
    bounding_box,
    format_distance,
    format_duration,
    haversine_meters,
    is_null_island,
    path_length_meters,
)
from routeweaver.utils.normalizers import normalize_geometry

logger = logging.getLogger(__name__)

FALLBACK_SPEED_KMH = 60.0
POINTS_PER_LEG = 20

# Perpendicular bulge of curved fallback routes, in degrees
MAX_CURVE_DEG = 0.3
CURVE_SCALE = 0.5

FALLBACK_REASONS = {
    ErrorKind.NETWORK: "Routing service unreachable",
    ErrorKind.TIMEOUT: "Routing service timed out",
    ErrorKind.UPSTREAM_STATUS: "Routing service returned no route",
    ErrorKind.MALFORMED: "Routing service returned an unusable route",
    ErrorKind.EMPTY: "Routing service returned an empty route",
    ErrorKind.NOT_CONFIGURED: "Routing service not configured",
    ErrorKind.UNEXPECTED: "Routing failed unexpectedly",
}


def _lon_lat(point: Coordinates) -> LonLat:
    return (point.longitude, point.latitude)


def order_waypoints(origin: Coordinates, waypoints: Sequence[Coordinates]) -> List[Coordinates]:
    """
    Waypoints by ascending haversine distance from origin; ties keep input order.

    Waypoints at (0, 0) are dropped.
    """
    usable = [w for w in waypoints if not is_null_island(w.latitude, w.longitude)]
    if len(usable) < len(waypoints):
        logger.warning(f"Dropped {len(waypoints) - len(usable)} waypoint(s) at (0, 0)")
    return sorted(
        usable,
        key=lambda w: haversine_meters(origin.latitude, origin.longitude, w.latitude, w.longitude),
    )


def _curved_leg(start: LonLat, end: LonLat, magnitude: float) -> List[LonLat]:
    d_lon = end[0] - start[0]
    d_lat = end[1] - start[1]
    # Perpendicular to (d_lon, d_lat)
    perp_lon, perp_lat = -d_lat, d_lon
    perp_length = math.hypot(perp_lon, perp_lat)

    points: List[LonLat] = []
    for i in range(POINTS_PER_LEG):
        fraction = i / (POINTS_PER_LEG - 1)
        lon = start[0] + d_lon * fraction
        lat = start[1] + d_lat * fraction
        if perp_length > 0:
            deviation = math.sin(fraction * math.pi) * magnitude
            lon += perp_lon / perp_length * deviation
            lat += perp_lat / perp_length * deviation
        points.append((lon, lat))
    return points


def curved_path(control_points: Sequence[LonLat]) -> List[LonLat]:
    """
    Smooth path through every control point.

    Each leg bulges sideways by a sine profile that is zero at both ends, so
    the path passes exactly through the control points. The bulge scales with
    the straight-line distance between the first and last point (capped at
    ``MAX_CURVE_DEG``) and is shared between legs by their length.
    """
    if len(control_points) < 2:
        return list(control_points)

    first, last = control_points[0], control_points[-1]
    overall = math.hypot(last[0] - first[0], last[1] - first[1])
    curve = min(MAX_CURVE_DEG, overall * CURVE_SCALE)

    leg_lengths = [
        math.hypot(b[0] - a[0], b[1] - a[1])
        for a, b in zip(control_points, control_points[1:])
    ]
    total = sum(leg_lengths)

    path: List[LonLat] = []
    for index, (start, end) in enumerate(zip(control_points, control_points[1:])):
        share = leg_lengths[index] / total if total > 0 else 0.0
        leg = _curved_leg(start, end, curve * share)
        # Consecutive legs share their joining point
        path.extend(leg if index == 0 else leg[1:])
    return path


def _make_route(geometry: List[LonLat], distance: float, duration: float, **extra) -> Route:
    return Route(
        geometry=geometry,
        distance_meters=distance,
        duration_seconds=duration,
        distance_text=format_distance(distance),
        duration_text=format_duration(duration),
        bounds=bounding_box(geometry),
        **extra,
    )


def _fallback_duration(distance_meters: float) -> float:
    return distance_meters / (FALLBACK_SPEED_KMH / 3.6)


def choose_fallback_route(
    error: Optional[ErrorKind],
    origin: Coordinates,
    destination: Coordinates,
    waypoints: Sequence[Coordinates],
) -> Route:
    """
    Synthetic route used when the provider fails.

    A straight two-point line without waypoints; otherwise a curved path
    through the (already ordered) waypoints. Duration assumes 60 km/h.
    """
    reason = FALLBACK_REASONS.get(error, FALLBACK_REASONS[ErrorKind.UNEXPECTED])
    control: List[LonLat] = [_lon_lat(origin), *(_lon_lat(w) for w in waypoints), _lon_lat(destination)]

    if not waypoints:
        geometry = control
    else:
        geometry = curved_path(control)

    distance = path_length_meters(control)
    logger.warning(f"Using fallback route ({reason}), {len(geometry)} points, {distance / 1000:.1f} km")
    return _make_route(geometry, distance, _fallback_duration(distance), is_fallback=True, fallback_reason=reason)


async def build_route(
    provider: RoutingProvider,
    origin: Coordinates,
    destination: Coordinates,
    waypoints: Sequence[Coordinates] = (),
) -> Tuple[Route, List[Coordinates]]:
    """
    Route from origin to destination through the waypoints.

    Returns:
        The route (never fewer than two geometry points) and the waypoints in
        the order they are visited.
    """
    ordered = order_waypoints(origin, waypoints)

    result = await provider.route(origin, destination, ordered)
    if not result.ok:
        return choose_fallback_route(result.error, origin, destination, ordered), ordered

    geometry = normalize_geometry(result.value.geometry)
    if len(geometry) < 2:
        logger.warning(f"Provider geometry has {len(geometry)} points")
        return choose_fallback_route(ErrorKind.MALFORMED, origin, destination, ordered), ordered

    route = _make_route(geometry, result.value.distance_meters, result.value.duration_seconds)
    return route, ordered
