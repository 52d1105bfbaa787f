"""
Place suggestion engine.

Asks the text model for attractions under one of three geographic
constraints (along a route, around an origin, within trip-length distance
bands), parses the free-text answers, keeps what lies inside the deployment
region and tops the result up from a fixed list of well-known places.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from routeweaver.models.places import Coordinates, Place, SuggestionMode
from routeweaver.services.text_generation import TextGenerator
from routeweaver.utils.geo import (
    DistanceBand,
    LonLat,
    RegionBounds,
    bucket_by_distance,
    extract_distance_km,
    haversine_meters,
    is_null_island,
    min_distance_to_route,
    rebalance_buckets,
)
from routeweaver.utils.place_parser import parse_places

logger = logging.getLogger(__name__)

TARGET_PLACES = 8
TRIP_TARGET_PLACES = 10
MIN_BAND_SIZE = 3

# Two places closer than this on both axes are treated as the same place
SAME_PLACE_EPSILON_DEG = 0.01

NEARBY_RADIUS_KM = 80
DISTANT_MIN_KM = 100
DISTANT_MAX_KM = 1000

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class FallbackPlace:
    name: str
    description: str
    latitude: float
    longitude: float


DAY_TRIP_FALLBACKS = (
    FallbackPlace("Vagamon", "Hill station with meadows and pine forests", 9.6867, 76.9344),
    FallbackPlace("Illikkal Kallu", "Popular trekking spot", 9.7564, 76.8422),
    FallbackPlace("Thattekad Bird Sanctuary", "Bird watching paradise", 10.1017, 76.7431),
    FallbackPlace("Athirappilly Waterfalls", "Breathtaking waterfall", 10.2850, 76.5696),
)

OVERNIGHT_FALLBACKS = (
    FallbackPlace("Munnar", "Hill station and tea gardens", 10.0889, 77.0595),
    FallbackPlace("Thekkady", "Home to Periyar Wildlife Sanctuary", 9.5833, 77.1667),
    FallbackPlace("Wayanad", "Hill district with wildlife and plantations", 11.6854, 76.1320),
    FallbackPlace("Kovalam Beach", "Popular beach destination", 8.4004, 76.9787),
)

COMMON_FALLBACKS = (
    FallbackPlace("Alleppey Backwaters", "Famous backwaters and houseboat destination", 9.4981, 76.3388),
    FallbackPlace("Fort Kochi", "Historic area with colonial architecture", 9.9658, 76.2421),
    FallbackPlace("Bekal Fort", "Historic seaside fort", 12.3917, 75.0327),
    FallbackPlace("Kumarakom", "Peaceful backwater destination", 9.6144, 76.4254),
)


@dataclass(frozen=True)
class TripProfile:
    """Distance bands and how many places to ask for in each."""
    bands: Sequence[DistanceBand]
    counts: Sequence[int]
    # Band receiving places whose description carries no distance
    unknown_band: int
    fallbacks: Sequence[FallbackPlace]
    label: str


DAY_TRIP_PROFILE = TripProfile(
    bands=(
        DistanceBand("short", 30, 60),
        DistanceBand("medium", 60, 100),
        DistanceBand("long", 100, 150),
    ),
    counts=(6, 3, 1),
    unknown_band=1,
    fallbacks=DAY_TRIP_FALLBACKS + COMMON_FALLBACKS,
    label="day trips (returnable within same day)",
)

MULTI_DAY_PROFILE = TripProfile(
    bands=(
        DistanceBand("short", 60, 100),
        DistanceBand("medium", 100, 250),
        DistanceBand("long", 250, 400),
    ),
    counts=(2, 5, 3),
    unknown_band=2,
    fallbacks=OVERNIGHT_FALLBACKS + COMMON_FALLBACKS,
    label="multi-day trips with overnight stays",
)


def trip_profile(trip_days: int) -> TripProfile:
    return DAY_TRIP_PROFILE if trip_days <= 1 else MULTI_DAY_PROFILE


@dataclass
class SuggestionResult:
    primary: List[Place] = field(default_factory=list)
    secondary: List[Place] = field(default_factory=list)


@dataclass
class TripSuggestions:
    short_distance: List[Place] = field(default_factory=list)
    medium_distance: List[Place] = field(default_factory=list)
    long_distance: List[Place] = field(default_factory=list)

    def all_places(self) -> List[Place]:
        return self.short_distance + self.medium_distance + self.long_distance


def names_overlap(first: str, second: str) -> bool:
    """Case-insensitive containment in either direction."""
    a = first.lower().strip()
    b = second.lower().strip()
    return a in b or b in a


def same_place(first: Place, second: Place) -> bool:
    if names_overlap(first.name, second.name):
        return True
    return (
        abs(first.coordinates.latitude - second.coordinates.latitude) < SAME_PLACE_EPSILON_DEG
        and abs(first.coordinates.longitude - second.coordinates.longitude) < SAME_PLACE_EPSILON_DEG
    )


def _normalize_name(name: str) -> str:
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub("", name.lower())).strip()


def similar_names(first: str, second: str) -> bool:
    """
    Loose name similarity used to drop near-duplicate destinations.

    Normalized names match when one contains the other, or when more than
    half of the shorter name's words appear (fully or partially) in the other.
    """
    a = _normalize_name(first)
    b = _normalize_name(second)
    if a in b or b in a:
        return True

    words_a = a.split(" ")
    words_b = b.split(" ")
    common = [w for w in words_a if any(w2 == w or w in w2 or w2 in w for w2 in words_b)]
    return len(common) / min(len(words_a), len(words_b)) > 0.5


def remove_near_duplicates(places: Sequence[Place]) -> List[Place]:
    """Keep the first of every group of places with similar names."""
    unique: List[Place] = []
    for place in places:
        if any(similar_names(place.name, kept.name) for kept in unique):
            logger.debug(f"Filtered out duplicate destination: {place.name}")
            continue
        unique.append(place)
    if len(unique) < len(places):
        logger.info(f"Removed {len(places) - len(unique)} duplicate destinations")
    return unique


class SuggestionEngine:
    """Turns text-model answers into validated place suggestions."""

    def __init__(
        self,
        text_generator: TextGenerator,
        region: RegionBounds,
        clamp_tolerance_deg: float = 0.5,
        corridor_km: float = 25.0,
    ) -> None:
        self.text_generator = text_generator
        self.region = region
        self.clamp_tolerance_deg = clamp_tolerance_deg
        self.corridor_km = corridor_km

    # Prompts

    def along_route_prompt(self, origin: str, destination: str, keyword: Optional[str], exclude: Sequence[str] = ()) -> str:
        more = "more " if exclude else ""
        lines = [
            f"List {TARGET_PLACES} {more}popular tourist attractions with their coordinates that are STRICTLY located "
            f"along or directly adjacent to the main driving route from {origin} to {destination}.",
            "",
            "Focus on attractions with these STRICT requirements:",
            f"- Places MUST be within 5-10km maximum from the main highway/road route between {origin} and {destination}",
            "- Places must be DIRECTLY accessible from the main route with minimal detours",
            f"- Only include genuine, well-known tourist attractions in {self.region.name}",
            "- Distribute places somewhat evenly along the entire route",
        ]
        if keyword:
            lines.append(f"- Focus on attractions related to: {keyword}")
        if exclude:
            lines.append(f"- Places must be DIFFERENT from: {', '.join(exclude)}")
        lines += [
            "- For each place, specify the approximate distance from the main route in km",
            "- Use PRECISE, ACCURATE coordinates for each location",
            "",
            "Format each place as:",
            "- [Place Name] ([Brief Description including approximate distance from main route in km]) [latitude, longitude]",
        ]
        return "\n".join(lines)

    def nearby_prompt(self, origin: str, keyword: Optional[str]) -> str:
        focus = f" Focus on attractions related to: {keyword}." if keyword else ""
        return (
            f"List {TARGET_PLACES} popular tourist attractions within {NEARBY_RADIUS_KM}km of {origin} with their "
            "coordinates. These should be diverse places including natural attractions, historic sites, cultural "
            f"spots, and entertainment venues.{focus} Format each place as:\n"
            "- [Place Name] ([Brief Description]) [latitude, longitude]\n"
            f"Include the approximate distance in km from {origin} in the description."
        )

    def distant_prompt(self, origin: str, keyword: Optional[str], exclude: Sequence[str]) -> str:
        focus = f" Focus on attractions related to: {keyword}." if keyword else ""
        excluded = f" and from these nearby places: {', '.join(exclude)}" if exclude else ""
        return (
            f"List {TARGET_PLACES} popular tourist attractions between {DISTANT_MIN_KM}km and {DISTANT_MAX_KM}km "
            f"from {origin} with their coordinates. These should be major tourist destinations worth traveling "
            f"longer distances to visit.{focus} Each should be distinct from the others{excluded}. "
            "Format each place as:\n"
            "- [Place Name] ([Brief Description]) [latitude, longitude]\n"
            f"Include the approximate distance in km from {origin} in the description."
        )

    def trip_prompt(self, origin: str, trip_days: int, profile: TripProfile, backup: bool = False) -> str:
        ranges = "\n".join(
            f"- {count} attractions between {band.min_km:g}-{band.max_km:g}km from {origin} ({band.name} distance)"
            for band, count in zip(profile.bands, profile.counts)
        )
        region = self.region
        opening = (
            f"I need at least {TRIP_TARGET_PLACES} diverse tourist attractions near {origin} with precise coordinates"
            if backup
            else f"I need a detailed selection of tourist attractions near {origin} with their precise coordinates"
        )
        return (
            f"{opening} for a {trip_days}-day trip:\n\n"
            f"{ranges}\n\n"
            "CRITICAL REQUIREMENTS:\n"
            "- Each place MUST be completely different from all others (different types of attractions)\n"
            f"- EVERY place MUST have ACCURATE latitude and longitude coordinates within {region.name}\n"
            f"- NEVER use coordinates outside of {region.name} ({region.min_lat}-{region.max_lat} latitude, "
            f"{region.min_lon}-{region.max_lon} longitude)\n"
            f"- Include the EXACT distance from {origin} in kilometers in each description\n"
            f"- Tailor suggestions specifically for {profile.label}\n\n"
            "Format each place exactly as:\n"
            f"- [Place Name] ([Brief description including EXACT distance from {origin} in km]) [latitude, longitude]"
        )

    # Building blocks

    async def request_places(self, prompt: str) -> List[Place]:
        """One generation round; any failure counts as zero candidates."""
        result = await self.text_generator.generate(prompt)
        if not result.ok:
            logger.warning(f"Text generation failed ({result.error.value}): {result.detail}")
            return []
        return parse_places(result.value)

    def validate_places(self, places: Sequence[Place]) -> List[Place]:
        """
        Keep places inside the region.

        Places slightly outside are clamped onto the boundary; places with
        non-finite or (0, 0) coordinates, or far outside, are dropped.
        """
        valid: List[Place] = []
        for place in places:
            lat = place.coordinates.latitude
            lon = place.coordinates.longitude
            if not (math.isfinite(lat) and math.isfinite(lon)):
                continue
            if is_null_island(lat, lon):
                logger.warning(f"Dropping {place.name}: placeholder coordinates")
                continue
            if self.region.contains(lat, lon):
                valid.append(place)
                continue

            clamped = self.region.clamp(lat, lon, self.clamp_tolerance_deg)
            if clamped is None:
                logger.warning(f"Dropping {place.name}: [{lat}, {lon}] outside {self.region.name}")
                continue
            logger.info(f"Clamping {place.name}: [{lat}, {lon}] -> [{clamped[0]}, {clamped[1]}]")
            place.coordinates = Coordinates(latitude=clamped[0], longitude=clamped[1])
            valid.append(place)
        return valid

    def fallback_places(
        self,
        fallbacks: Sequence[FallbackPlace],
        kept: Sequence[Place],
        target: int,
        origin: Optional[str] = None,
        origin_coordinates: Optional[Coordinates] = None,
    ) -> List[Place]:
        """Fallback places not already kept, enough to reach ``target`` in total."""
        added: List[Place] = []
        for fallback in fallbacks:
            if len(kept) + len(added) >= target:
                break
            if any(names_overlap(fallback.name, place.name) for place in [*kept, *added]):
                continue

            description = fallback.description
            if origin_coordinates is not None:
                km = haversine_meters(
                    origin_coordinates.latitude, origin_coordinates.longitude,
                    fallback.latitude, fallback.longitude,
                ) / 1000
                description = f"{description} ({round(km)} km from {origin or 'origin'})"
            added.append(Place(
                name=fallback.name,
                description=description,
                coordinates=Coordinates(latitude=fallback.latitude, longitude=fallback.longitude),
            ))
        if added:
            logger.info(f"Added {len(added)} fallback places")
        return added

    def apply_corridor(self, places: Sequence[Place], geometry: Sequence[LonLat]) -> List[Place]:
        """Drop places farther than the corridor from the route and annotate the rest."""
        kept: List[Place] = []
        for place in places:
            meters = min_distance_to_route(
                (place.coordinates.longitude, place.coordinates.latitude), geometry,
            )
            if meters is None:
                return list(places)
            km = meters / 1000
            if km > self.corridor_km:
                logger.info(f"Dropping {place.name}: {km:.1f} km from route")
                continue
            place.distance_from_route_km = round(km, 1)
            kept.append(place)
        return kept

    @staticmethod
    def annotate_origin_distance(places: Sequence[Place], origin_coordinates: Optional[Coordinates]) -> None:
        if origin_coordinates is None:
            return
        for place in places:
            place.distance_from_origin_km = round(haversine_meters(
                origin_coordinates.latitude, origin_coordinates.longitude,
                place.coordinates.latitude, place.coordinates.longitude,
            ) / 1000, 1)

    @staticmethod
    def _unique_by_name(places: Sequence[Place]) -> List[Place]:
        seen = set()
        unique = []
        for place in places:
            key = place.name.lower()
            if key not in seen:
                seen.add(key)
                unique.append(place)
        return unique

    @staticmethod
    def _exclude_known(candidates: Sequence[Place], known: Sequence[Place]) -> List[Place]:
        kept: List[Place] = []
        for place in candidates:
            if any(same_place(place, other) for other in [*known, *kept]):
                continue
            kept.append(place)
        return kept

    # Modes

    async def suggest_places(
        self,
        origin: str,
        destination: Optional[str],
        keyword: Optional[str],
        mode: SuggestionMode,
        origin_coordinates: Optional[Coordinates] = None,
        route_geometry: Optional[Sequence[LonLat]] = None,
        trip_days: int = 2,
    ) -> SuggestionResult:
        """
        Two sets of suggestions for the given mode.

        The second set never repeats a place of the first. For
        ``by-trip-duration`` every band is returned in ``primary``.
        """
        if mode == SuggestionMode.BY_TRIP_DURATION:
            trip = await self.suggest_trip(origin, trip_days, origin_coordinates)
            return SuggestionResult(primary=trip.all_places(), secondary=[])

        if mode == SuggestionMode.ALONG_ROUTE:
            if not destination:
                raise ValueError("along-route suggestions need a destination")
            first_prompt = self.along_route_prompt(origin, destination, keyword)
        else:
            first_prompt = self.nearby_prompt(origin, keyword)

        first = self._unique_by_name(await self.request_places(first_prompt))
        exclude = [place.name for place in first]

        if mode == SuggestionMode.ALONG_ROUTE:
            second_prompt = self.along_route_prompt(origin, destination, keyword, exclude=exclude)
        else:
            second_prompt = self.distant_prompt(origin, keyword, exclude)
        second = self._exclude_known(await self.request_places(second_prompt), first)

        primary = self.validate_places(first)[:TARGET_PLACES]
        secondary = self.validate_places(second)[:TARGET_PLACES]
        logger.info(f"Suggestions after validation: {len(primary)} primary, {len(secondary)} secondary")

        if len(primary) + len(secondary) < TARGET_PLACES:
            secondary += self.fallback_places(
                COMMON_FALLBACKS + OVERNIGHT_FALLBACKS + DAY_TRIP_FALLBACKS,
                primary + secondary,
                TARGET_PLACES,
                origin,
                origin_coordinates,
            )

        if mode == SuggestionMode.ALONG_ROUTE and route_geometry and len(route_geometry) >= 2:
            primary = self.apply_corridor(primary, route_geometry)
            secondary = self.apply_corridor(secondary, route_geometry)

        self.annotate_origin_distance(primary + secondary, origin_coordinates)
        return SuggestionResult(primary=primary, secondary=secondary)

    async def suggest_trip(
        self,
        origin: str,
        trip_days: int,
        origin_coordinates: Optional[Coordinates] = None,
    ) -> TripSuggestions:
        """Places bucketed into short/medium/long bands for a trip length."""
        profile = trip_profile(trip_days)
        logger.info(
            f"Getting destinations for {trip_days}-day trip from {origin}: "
            + ", ".join(f"{c} {b.name} ({b.min_km:g}-{b.max_km:g}km)" for b, c in zip(profile.bands, profile.counts))
        )

        places = self._unique_by_name(await self.request_places(self.trip_prompt(origin, trip_days, profile)))
        if len(places) < TARGET_PLACES:
            logger.info(f"First try only returned {len(places)} places, retrying with backup prompt")
            backup = await self.request_places(self.trip_prompt(origin, trip_days, profile, backup=True))
            known = {place.name.lower() for place in places}
            for place in backup:
                if place.name.lower() not in known:
                    known.add(place.name.lower())
                    places.append(place)

        valid = self.validate_places(places)
        if len(valid) < TARGET_PLACES:
            valid += self.fallback_places(
                profile.fallbacks, valid, TRIP_TARGET_PLACES, origin, origin_coordinates,
            )

        unique = remove_near_duplicates(valid)
        self.annotate_origin_distance(unique, origin_coordinates)

        buckets = bucket_by_distance(
            unique,
            profile.bands,
            lambda place: extract_distance_km(place.description),
            profile.unknown_band,
        )
        rebalance_buckets(buckets, MIN_BAND_SIZE)
        counts: Dict[str, int] = {band.name: len(bucket) for band, bucket in zip(profile.bands, buckets)}
        logger.info(f"Categorized trip places: {counts}")

        return TripSuggestions(
            short_distance=buckets[0],
            medium_distance=buckets[1],
            long_distance=buckets[2],
        )
