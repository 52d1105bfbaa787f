"""
Multi-strategy geocoding.

Free-text place names are resolved by Google Geocoding first, then Nominatim,
then by asking the text model for coordinates. The text model is the only
strategy that can know about small local landmarks, so its answers carry an
explicit confidence.
"""
import json
import logging
import math
import re
from typing import Any, Dict, Optional

from routeweaver.errors import ErrorKind, Result
from routeweaver.models.geocoding import Confidence, GeocodeResult, GeocodeSource
from routeweaver.models.places import Coordinates
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.nominatim import NominatimClient
from routeweaver.services.text_generation import TextGenerator
from routeweaver.utils.geo import RegionBounds

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_LATITUDE = re.compile(r"latitude[\"\s:]+(-?\d+\.\d+)", re.IGNORECASE)
_LONGITUDE = re.compile(r"longitude[\"\s:]+(-?\d+\.\d+)", re.IGNORECASE)


def build_geocode_prompt(place_name: str, region: RegionBounds) -> str:
    return f"""I need precise geographical coordinates (latitude and longitude) for "{place_name}".

This is likely a place in {region.name} that might be a natural landmark, tourist attraction, or local feature that isn't properly indexed in standard geocoding services.

Respond with ONLY a JSON object in this EXACT format:
{{
  "name": "full official name of the place",
  "coordinates": {{
    "latitude": numeric latitude value,
    "longitude": numeric longitude value
  }},
  "confidence": "high/medium/low"
}}

If this is in {region.name}, coordinates should be within these ranges:
- Latitude: between {region.min_lat} and {region.max_lat}
- Longitude: between {region.min_lon} and {region.max_lon}

For natural landmarks like hills, waterfalls, or lakes, provide coordinates for the main access point or viewing area."""


def _finite_coordinates(latitude: Any, longitude: Any) -> Optional[Coordinates]:
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return None
    if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
        return None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def parse_geocode_response(text: str, place_name: str, region: RegionBounds) -> Optional[GeocodeResult]:
    """
    Read a text-model geocode answer.

    The first ``{...}`` block is parsed as JSON. When there is none, bare
    ``latitude: x`` / ``longitude: y`` phrases are salvaged at low
    confidence. Coordinates outside the region are kept but downgraded to
    low confidence.
    """
    match = _JSON_OBJECT.search(text)
    if not match:
        lat_match = _LATITUDE.search(text)
        lon_match = _LONGITUDE.search(text)
        if not (lat_match and lon_match):
            logger.warning(f"No coordinates in text-model geocode for {place_name!r}")
            return None
        coordinates = _finite_coordinates(float(lat_match.group(1)), float(lon_match.group(1)))
        if coordinates is None:
            return None
        return GeocodeResult(
            name=place_name,
            coordinates=coordinates,
            source=GeocodeSource.GEMINI,
            confidence=Confidence.LOW,
        )

    try:
        data: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.warning(f"Invalid JSON in text-model geocode for {place_name!r}: {exc}")
        return None
    if not isinstance(data, dict) or not isinstance(data.get("coordinates"), dict):
        return None

    coordinates = _finite_coordinates(
        data["coordinates"].get("latitude"),
        data["coordinates"].get("longitude"),
    )
    if coordinates is None:
        logger.warning(f"Invalid coordinates in text-model geocode for {place_name!r}")
        return None

    try:
        confidence = Confidence(str(data.get("confidence", "medium")).lower())
    except ValueError:
        confidence = Confidence.MEDIUM
    if not region.contains(coordinates.latitude, coordinates.longitude):
        logger.warning(f"Text-model coordinates for {place_name!r} fall outside {region.name}")
        confidence = Confidence.LOW

    name = data.get("name") if isinstance(data.get("name"), str) and data.get("name") else place_name
    return GeocodeResult(
        name=name,
        coordinates=coordinates,
        source=GeocodeSource.GEMINI,
        confidence=confidence,
    )


class Geocoder:
    """Google, then Nominatim, then the text model."""

    def __init__(
        self,
        google: GooglePlacesClient,
        nominatim: NominatimClient,
        text_generator: TextGenerator,
        region: RegionBounds,
    ) -> None:
        self.google = google
        self.nominatim = nominatim
        self.text_generator = text_generator
        self.region = region

    async def geocode(self, place_name: str) -> Optional[GeocodeResult]:
        """Resolve a place name, or None when every strategy fails."""
        if self.google.configured:
            google = await self.google.geocode(place_name)
            if google.ok:
                return GeocodeResult(
                    name=place_name,
                    coordinates=google.value,
                    source=GeocodeSource.GOOGLE,
                    confidence=Confidence.HIGH,
                )
            logger.info(f"Google geocoding failed for {place_name!r} ({google.error.value}), trying Nominatim")

        nominatim = await self.nominatim.geocode(place_name)
        if nominatim.ok:
            return GeocodeResult(
                name=place_name,
                coordinates=nominatim.value,
                source=GeocodeSource.NOMINATIM,
                confidence=Confidence.MEDIUM,
            )
        logger.info(f"Nominatim failed for {place_name!r} ({nominatim.error.value}), asking text model")

        generated = await self.text_generator.generate(build_geocode_prompt(place_name, self.region))
        if not generated.ok:
            logger.warning(f"All geocoding strategies failed for {place_name!r}")
            return None
        return parse_geocode_response(generated.value, place_name, self.region)

    async def coordinates(self, place_name: str) -> Result[Coordinates]:
        result = await self.geocode(place_name)
        if result is None:
            return Result.failure(ErrorKind.EMPTY, f"Could not geocode {place_name!r}")
        return Result.success(result.coordinates)

    async def reverse(self, latitude: float, longitude: float) -> str:
        """Display name for a point, ``"lat,lon"`` when Nominatim has none."""
        result = await self.nominatim.reverse(latitude, longitude)
        return result.unwrap_or(f"{latitude},{longitude}")
