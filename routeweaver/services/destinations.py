"""Popular tourist destinations inside a distance band around an origin."""
import logging
import random
from typing import Any, Dict, List, Optional

from routeweaver.models.places import Coordinates, PopularDestination
from routeweaver.services.cache import Cache
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.utils.geo import haversine_meters, shuffle
from routeweaver.utils.normalizers import normalize_google_place

logger = logging.getLogger(__name__)

TOURIST_TYPES = (
    "tourist_attraction",
    "natural_feature",
    "park",
    "museum",
)
NUMBER_OF_RINGS = 5
MIN_RATING = 4.0
# Nearby Search refuses radii above 50 km
MAX_SEARCH_RADIUS_METERS = 50_000


def search_radii(min_km: float, max_km: float, rings: int = NUMBER_OF_RINGS) -> List[float]:
    """Evenly spaced search radii in meters from ``min_km`` to ``max_km``."""
    if rings < 2 or max_km <= min_km:
        return [min(min_km * 1000, MAX_SEARCH_RADIUS_METERS)]
    step = (max_km - min_km) / (rings - 1)
    return [min((min_km + i * step) * 1000, MAX_SEARCH_RADIUS_METERS) for i in range(rings)]


class PopularDestinationService:
    """Finds, filters, shuffles and caches popular destinations."""

    def __init__(
        self,
        google: GooglePlacesClient,
        geocoder: Geocoder,
        cache: Cache,
        ttl_seconds: int = 24 * 60 * 60,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.google = google
        self.geocoder = geocoder
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.rng = rng

    @staticmethod
    def cache_key(origin: str, min_km: float, max_km: float) -> str:
        return f"{origin}-{min_km:g}-{max_km:g}"

    async def _collect(self, origin: Coordinates, min_km: float, max_km: float) -> List[Dict[str, Any]]:
        seen = set()
        collected: List[Dict[str, Any]] = []
        for radius in dict.fromkeys(search_radii(min_km, max_km)):
            for place_type in TOURIST_TYPES:
                result = await self.google.places_near(
                    origin.latitude, origin.longitude, radius, place_type=place_type, keyword="tourist",
                )
                if not result.ok:
                    continue
                for raw in result.value:
                    place = normalize_google_place(raw)
                    if place is None or place["place_id"] in seen:
                        continue
                    if place["rating"] is not None and place["rating"] < MIN_RATING:
                        continue
                    seen.add(place["place_id"])
                    collected.append(place)
        return collected

    async def find(self, origin: str, min_km: float, max_km: float, limit: int) -> Optional[List[PopularDestination]]:
        """
        Destinations between ``min_km`` and ``max_km`` from ``origin``.

        Returns None when the origin cannot be geocoded.
        """
        key = self.cache_key(origin, min_km, max_km)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Popular destinations cache hit for {key}")
            return [PopularDestination(**item) for item in list(cached)[:limit]]

        coordinates = await self.geocoder.coordinates(origin)
        if not coordinates.ok:
            return None
        center = coordinates.value

        destinations: List[PopularDestination] = []
        for place in await self._collect(center, min_km, max_km):
            distance_km = haversine_meters(center.latitude, center.longitude, place["lat"], place["lng"]) / 1000
            if not (min_km <= distance_km <= max_km):
                continue
            destinations.append(PopularDestination(
                place_id=place["place_id"],
                name=place["name"],
                latitude=place["lat"],
                longitude=place["lng"],
                rating=place["rating"],
                types=place["types"],
                photo_reference=place["photo_reference"],
                distance_km=round(distance_km, 1),
            ))

        shuffled = shuffle(destinations, self.rng)
        self.cache.set(key, [d.model_dump() for d in shuffled], ttl=self.ttl_seconds)
        logger.info(f"Cached {len(shuffled)} popular destinations for {key}")
        return shuffled[:limit]
