"""
Encoding of saved routes.

Stored format: ``origin|destination|lat,lng,name|lat,lng,name|...`` where each
name is percent-encoded so commas and pipes inside names survive.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence
from urllib.parse import quote, unquote

from routeweaver.models.saved_routes import ROUTE_FIELD_SEPARATOR, SavedPlace

logger = logging.getLogger(__name__)

# Characters left unescaped, same set as JavaScript's encodeURIComponent
_SAFE = "-_.!~*'()"


@dataclass
class DecodedRoute:
    origin: str
    destination: str
    places: List[SavedPlace] = field(default_factory=list)


def encode_route_data(origin: str, destination: str, places: Sequence[SavedPlace]) -> str:
    """
    Serialize a route selection into its stored string form.

    Raises:
        ValueError: origin or destination contains the field separator.
    """
    for endpoint in (origin, destination):
        if ROUTE_FIELD_SEPARATOR in endpoint:
            raise ValueError(f"Route endpoint {endpoint!r} contains {ROUTE_FIELD_SEPARATOR!r}")
    segments = [f"{place.lat},{place.lng},{quote(place.name, safe=_SAFE)}" for place in places]
    return ROUTE_FIELD_SEPARATOR.join([origin, destination, ROUTE_FIELD_SEPARATOR.join(segments)])


def decode_route_data(encoded: str) -> DecodedRoute:
    """Parse a stored route string, skipping malformed place segments."""
    parts = encoded.split(ROUTE_FIELD_SEPARATOR)
    origin = parts[0]
    destination = parts[1] if len(parts) > 1 else ""
    places: List[SavedPlace] = []

    for segment in parts[2:]:
        fields = segment.split(",")
        if len(fields) < 3:
            if segment:
                logger.warning(f"Skipping malformed route segment: {segment!r}")
            continue
        try:
            lat = float(fields[0])
            lng = float(fields[1])
        except ValueError:
            logger.warning(f"Skipping route segment with invalid coordinates: {segment!r}")
            continue
        name = unquote(fields[2])
        if not name or not (math.isfinite(lat) and math.isfinite(lng)):
            logger.warning(f"Skipping incomplete route segment: {segment!r}")
            continue
        places.append(SavedPlace(name=name, lat=lat, lng=lng))

    return DecodedRoute(origin=origin, destination=destination, places=places)
