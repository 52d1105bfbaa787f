"""
Data normalizers to ensure consistent data structures across the application.

Routing providers return geometry in different shapes (Google encoded
polylines, OSRM GeoJSON, plain coordinate arrays). Providers wrap whatever
they received in one of the ``*Geometry`` variants below and business logic
only ever sees the canonical ``[(lon, lat), ...]`` list produced by
``normalize_geometry``.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from routeweaver.utils.geo import LonLat, decode_polyline


@dataclass(frozen=True)
class PolylineGeometry:
    """Google encoded polyline (5 digit precision)."""
    encoded: str


@dataclass(frozen=True)
class GeoJsonGeometry:
    """GeoJSON LineString object: ``{"type": "LineString", "coordinates": [...]}``."""
    geojson: Dict[str, Any]


@dataclass(frozen=True)
class CoordinateArrayGeometry:
    """Raw ``[[lon, lat], ...]`` array."""
    points: Sequence[Sequence[float]]


RawGeometry = Union[PolylineGeometry, GeoJsonGeometry, CoordinateArrayGeometry]


def _clean_points(points: Sequence[Sequence[float]]) -> List[LonLat]:
    cleaned: List[LonLat] = []
    for point in points:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            continue
        try:
            lon = float(point[0])
            lat = float(point[1])
        except (TypeError, ValueError):
            continue
        if math.isfinite(lon) and math.isfinite(lat):
            cleaned.append((lon, lat))
    return cleaned


def normalize_geometry(raw: RawGeometry) -> List[LonLat]:
    """
    Convert any provider geometry into ``[(lon, lat), ...]``.

    Points that are not two finite numbers are dropped.
    """
    if isinstance(raw, PolylineGeometry):
        return decode_polyline(raw.encoded)
    if isinstance(raw, GeoJsonGeometry):
        coordinates = raw.geojson.get("coordinates")
        return _clean_points(coordinates if isinstance(coordinates, list) else [])
    if isinstance(raw, CoordinateArrayGeometry):
        return _clean_points(raw.points)
    raise TypeError(f"Unsupported geometry variant: {type(raw).__name__}")


def wrap_geometry(value: Any) -> Optional[RawGeometry]:
    """
    Tag an untyped geometry value from a provider payload.

    Returns None when the value has none of the known shapes.
    """
    if isinstance(value, str):
        return PolylineGeometry(encoded=value)
    if isinstance(value, dict) and isinstance(value.get("coordinates"), list):
        return GeoJsonGeometry(geojson=value)
    if isinstance(value, list):
        return CoordinateArrayGeometry(points=value)
    return None


def normalize_google_place(raw_place: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Flatten a Google Places search result.

    Returns a dict with place_id, name, lat, lng, rating, types and the first
    photo reference, or None when name or location is missing.
    """
    if not isinstance(raw_place, dict) or not isinstance(raw_place.get("name"), str) or not raw_place["name"]:
        return None

    try:
        location = raw_place["geometry"]["location"]
        lat = float(location["lat"])
        lng = float(location["lng"])
    except (KeyError, TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None

    place_id = raw_place.get("place_id")
    rating = raw_place.get("rating")
    types = raw_place.get("types")
    photos = raw_place.get("photos")
    first_photo = photos[0] if isinstance(photos, list) and photos else None
    photo_reference = first_photo.get("photo_reference") if isinstance(first_photo, dict) else None
    return {
        "place_id": place_id if isinstance(place_id, str) else None,
        "name": raw_place["name"],
        "lat": lat,
        "lng": lng,
        "rating": float(rating) if isinstance(rating, (int, float)) and not isinstance(rating, bool) else None,
        "types": [t for t in types if isinstance(t, str)] if isinstance(types, list) else [],
        "photo_reference": photo_reference if isinstance(photo_reference, str) else None,
    }
