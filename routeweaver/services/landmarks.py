"""
Landmark browsing around a point.

Each call searches two batches of place types. The type list is rotated by
the caller's ``offset`` so that asking again with the next offset ("show me
more") queries different types and returns a different slice of results.
"""
import functools
import logging
from typing import Any, Dict, List, Sequence

from routeweaver.models.places import PopularDestination
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.utils.geo import haversine_meters
from routeweaver.utils.normalizers import normalize_google_place

logger = logging.getLogger(__name__)

PLACE_TYPES = (
    "tourist_attraction",
    "natural_feature",
    "museum",
    "historic_site",
    "landmark",
    "park",
    "point_of_interest",
    "church",
    "temple",
    "mosque",
    "hindu_temple",
    "art_gallery",
    "aquarium",
    "zoo",
    "amusement_park",
)
TYPES_PER_BATCH = 5
BATCH_COUNT = 2
SEARCH_RADIUS_METERS = 10_000
MAX_RESULTS = 15
# Ratings closer than this are treated as equal and ordered by distance
RATING_MARGIN = 0.5


def rotated_types(offset: int, types: Sequence[str] = PLACE_TYPES) -> List[str]:
    shift = offset % len(types)
    return [*types[shift:], *types[:shift]]


def type_batches(offset: int) -> List[str]:
    """Pipe-joined type filters for each Nearby Search request."""
    types = rotated_types(offset)
    return [
        "|".join(types[i * TYPES_PER_BATCH:(i + 1) * TYPES_PER_BATCH])
        for i in range(BATCH_COUNT)
    ]


def keyword_filter(keywords: str) -> str:
    """``"waterfall,,dam"`` -> ``"waterfall|dam"``."""
    return "|".join(k.strip() for k in keywords.split(",") if k.strip())


def _compare(a: PopularDestination, b: PopularDestination) -> int:
    if a.rating is not None and b.rating is not None and abs(a.rating - b.rating) >= RATING_MARGIN:
        return -1 if a.rating > b.rating else 1
    if a.distance_km == b.distance_km:
        return 0
    return -1 if a.distance_km < b.distance_km else 1


def rank_landmarks(places: Sequence[PopularDestination], offset: int) -> List[PopularDestination]:
    """
    Order landmarks and pick the page for ``offset``.

    Clearly better rated places come first, otherwise nearer ones. With more
    than ten places the list is rotated by the offset before it is cut to
    ``MAX_RESULTS``.
    """
    ranked = sorted(places, key=functools.cmp_to_key(_compare))
    if len(ranked) > 10:
        rotation = int(offset % max(5, min(10, len(ranked) / 2)))
        ranked = ranked[rotation:] + ranked[:rotation]
    return ranked[:MAX_RESULTS]


class LandmarkBrowser:
    """Nearby landmarks from Google Nearby Search."""

    def __init__(self, google: GooglePlacesClient) -> None:
        self.google = google

    async def _search(self, latitude: float, longitude: float, keyword: str, offset: int) -> List[Dict[str, Any]]:
        collected: List[Dict[str, Any]] = []
        for index, place_type in enumerate(type_batches(offset), start=1):
            result = await self.google.places_near(
                latitude,
                longitude,
                SEARCH_RADIUS_METERS,
                place_type=place_type,
                keyword=keyword or None,
            )
            if not result.ok:
                logger.warning(f"Landmark batch {index} failed ({result.error.value}): {result.detail}")
                continue
            collected.extend(result.value)
        return collected

    async def nearby(self, latitude: float, longitude: float, keywords: str = "", offset: int = 0) -> List[PopularDestination]:
        """Up to ``MAX_RESULTS`` distinct landmarks within 10 km, annotated with distance."""
        raw_places = await self._search(latitude, longitude, keyword_filter(keywords), offset)

        seen = set()
        places: List[PopularDestination] = []
        for raw in raw_places:
            place = normalize_google_place(raw)
            if place is None:
                continue
            key = place["place_id"] or place["name"]
            if key in seen:
                continue
            seen.add(key)
            distance_km = haversine_meters(latitude, longitude, place["lat"], place["lng"]) / 1000
            places.append(PopularDestination(
                place_id=place["place_id"],
                name=place["name"],
                latitude=place["lat"],
                longitude=place["lng"],
                rating=place["rating"],
                types=place["types"],
                photo_reference=place["photo_reference"],
                distance_km=round(distance_km, 2),
            ))

        ranked = rank_landmarks(places, offset)
        logger.info(f"Found {len(places)} landmarks near ({latitude}, {longitude}), returning {len(ranked)}")
        return ranked
