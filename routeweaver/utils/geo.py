"""
Geographic helpers shared by the suggestion engine and the route builder.

Points are ``(longitude, latitude)`` tuples wherever a route geometry is
involved, matching the GeoJSON order used by the routing providers.
"""
import math
import random
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

EARTH_RADIUS_METERS = 6371e3

LonLat = Tuple[float, float]

# Coordinates this close to (0, 0) are a placeholder, not a location
NULL_ISLAND_EPSILON_DEG = 0.01

_DISTANCE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*km", re.IGNORECASE)


def is_null_island(lat: float, lon: float) -> bool:
    return abs(lat) < NULL_ISLAND_EPSILON_DEG and abs(lon) < NULL_ISLAND_EPSILON_DEG


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def decode_polyline(encoded: str, precision: int = 5) -> List[LonLat]:
    """
    Decode a Google encoded polyline.

    Returns:
        List of ``(longitude, latitude)`` pairs.
    """
    coordinates: List[LonLat] = []
    factor = 10 ** precision
    index = 0
    lat = 0
    lng = 0
    length = len(encoded)

    while index < length:
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                if index >= length:
                    # Truncated input: keep what was decoded so far
                    return coordinates
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if result & 1 else result >> 1)

        lat += deltas[0]
        lng += deltas[1]
        coordinates.append((lng / factor, lat / factor))

    return coordinates


def bounding_box(points: Sequence[LonLat]) -> Optional[Dict[str, Dict[str, float]]]:
    """Northeast/southwest corners of a geometry, or None when empty."""
    if not points:
        return None

    lons = [p[0] for p in points]
    lats = [p[1] for p in points]
    return {
        "northeast": {"lat": max(lats), "lng": max(lons)},
        "southwest": {"lat": min(lats), "lng": min(lons)},
    }


def format_distance(meters: float) -> str:
    """``"850m"`` below a kilometer, ``"12.3km"`` above."""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"


def format_duration(seconds: float) -> str:
    """Whole hours and minutes, e.g. ``"2 hr 15 min"``."""
    minutes = round(seconds / 60)
    hours, minutes = divmod(minutes, 60)
    if hours and minutes:
        return f"{hours} hr {minutes} min"
    if hours:
        return f"{hours} hr"
    return f"{minutes} min"


def point_to_segment_distance(point: LonLat, segment_start: LonLat, segment_end: LonLat) -> float:
    """
    Distance in meters from a point to the closest point of a segment.

    The projection is done in plain lon/lat space and clamped to the segment
    ends; the final distance is measured with the haversine formula.
    """
    px, py = point
    x1, y1 = segment_start
    x2, y2 = segment_end

    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy

    t = -1.0
    if length_sq != 0:
        t = ((px - x1) * dx + (py - y1) * dy) / length_sq

    if t < 0:
        closest = (x1, y1)
    elif t > 1:
        closest = (x2, y2)
    else:
        closest = (x1 + t * dx, y1 + t * dy)

    return haversine_meters(py, px, closest[1], closest[0])


def min_distance_to_route(point: LonLat, geometry: Sequence[LonLat]) -> Optional[float]:
    """Smallest segment distance from a point to a route, None for unusable routes."""
    if len(geometry) < 2:
        return None
    return min(
        point_to_segment_distance(point, geometry[i], geometry[i + 1])
        for i in range(len(geometry) - 1)
    )


def path_length_meters(points: Sequence[LonLat]) -> float:
    """Sum of haversine distances between consecutive points."""
    return sum(
        haversine_meters(points[i][1], points[i][0], points[i + 1][1], points[i + 1][0])
        for i in range(len(points) - 1)
    )


def extract_distance_km(text: Optional[str]) -> Optional[float]:
    """First "<number> km" phrase in a free-text description."""
    if not text:
        return None
    match = _DISTANCE_PATTERN.search(text)
    return float(match.group(1)) if match else None


@dataclass(frozen=True)
class DistanceBand:
    """A named kilometer range."""
    name: str
    min_km: float
    max_km: float

    def contains(self, distance_km: float) -> bool:
        return self.min_km <= distance_km <= self.max_km


def bucket_by_distance(
    items: Sequence[T],
    bands: Sequence[DistanceBand],
    distance_of: Callable[[T], Optional[float]],
    unknown_band: int,
) -> List[List[T]]:
    """
    Assign each item to the first band whose range contains its distance.

    Items outside every range go to the first band whose upper bound is not
    below their distance (the last band when beyond all of them). Items with
    no known distance go to ``bands[unknown_band]``.
    """
    buckets: List[List[T]] = [[] for _ in bands]
    if not bands:
        return buckets

    for item in items:
        distance = distance_of(item)
        if distance is None:
            buckets[unknown_band].append(item)
            continue

        index = next((i for i, band in enumerate(bands) if band.contains(distance)), None)
        if index is None:
            index = next(
                (i for i, band in enumerate(bands) if distance <= band.max_km),
                len(bands) - 1,
            )
        buckets[index].append(item)

    return buckets


def rebalance_buckets(buckets: List[List[T]], minimum: int) -> None:
    """
    Top up under-filled buckets with the surplus of buckets above ``minimum``.

    Buckets are filled in order; donors are scanned in bucket order, skipping
    the receiver. Items are moved, never copied, so no item ends up in two
    buckets.
    """
    for target_index, target in enumerate(buckets):
        needed = minimum - len(target)
        if needed <= 0:
            continue

        for donor_index, donor in enumerate(buckets):
            if needed <= 0:
                break
            surplus = len(donor) - minimum
            if donor_index == target_index or surplus <= 0:
                continue
            take = min(surplus, needed)
            target.extend(donor[minimum:minimum + take])
            del donor[minimum:minimum + take]
            needed -= take


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle returning a new list."""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


@dataclass(frozen=True)
class RegionBounds:
    """Rectangular latitude/longitude box for the deployment region."""
    name: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lon <= longitude <= self.max_lon
        )

    def clamp(self, latitude: float, longitude: float, tolerance: float) -> Optional[Tuple[float, float]]:
        """
        Pull a point back inside the box when it is at most ``tolerance``
        degrees outside on each axis; None when it is farther out.
        """
        if not (
            self.min_lat - tolerance <= latitude <= self.max_lat + tolerance
            and self.min_lon - tolerance <= longitude <= self.max_lon + tolerance
        ):
            return None
        return (
            min(max(latitude, self.min_lat), self.max_lat),
            min(max(longitude, self.min_lon), self.max_lon),
        )
