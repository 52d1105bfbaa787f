"""
Free-text place parser.

Turns a generative-model answer such as::

    1. **Fort Kochi** (Colonial quarter, 12 km from route) [9.9658, 76.2421]
    - Marine Drive [9.9770, 76.2773]

into ``Place`` records. Parsing never raises; malformed lines are skipped.
"""
import logging
import math
import re
from typing import Dict, List, Optional

from pydantic import ValidationError

from routeweaver.models.places import Coordinates, Place

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "A popular tourist attraction"

# Below this many strict matches the looser line scan is also applied
MIN_STRICT_MATCHES = 3

_MARKER = re.compile(r"^[-*\d.]")
_COORDS = re.compile(r"\[(-?\d+\.?\d*),\s*(-?\d+\.?\d*)\]")
_NAME_WITH_DESCRIPTION = re.compile(r"^[-*\d.\s]*([^(\[\]]+)\s*\(([^)]+)\)")
_NAME_BEFORE_COORDS = re.compile(r"^[-*\d.\s]*([^(\[\]]+)(?=\s*\[)")
_LOOSE = re.compile(r"[-*]?\s*([^\[\]()]+).*?\[(-?\d+\.?\d*),\s*(-?\d+\.?\d*)\]")
_MARKER_PREFIX = re.compile(r"^[-*\d.\s]+")


def normalize_response(text: str) -> List[str]:
    """Strip bold markup, unify bullets and return the non-empty lines."""
    cleaned = text.replace("**", "").replace("•", "-")
    return [line.strip() for line in cleaned.split("\n") if line.strip()]


def _coordinates(lat_text: str, lon_text: str) -> Optional[Coordinates]:
    try:
        latitude = float(lat_text)
        longitude = float(lon_text)
    except ValueError:
        return None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    try:
        return Coordinates(latitude=latitude, longitude=longitude)
    except ValidationError:
        return None


def _first_valid_coordinates(line: str) -> Optional[Coordinates]:
    for match in _COORDS.finditer(line):
        coordinates = _coordinates(match.group(1), match.group(2))
        if coordinates is not None:
            return coordinates
    return None


def _parse_marked_line(line: str) -> Optional[Place]:
    coordinates = _first_valid_coordinates(line)
    if coordinates is None:
        return None

    match = _NAME_WITH_DESCRIPTION.match(line)
    if match:
        name = match.group(1).strip()
        description = match.group(2).strip()
    else:
        match = _NAME_BEFORE_COORDS.match(line)
        if match:
            name = match.group(1).strip()
        else:
            name = line.split("[")[0].split("(")[0].strip()
            if name.startswith("- "):
                name = name[2:].strip()
        description = DEFAULT_DESCRIPTION

    if not name:
        return None
    return Place(name=name, description=description, coordinates=coordinates)


def _parse_loose_line(line: str) -> Optional[Place]:
    match = _LOOSE.search(line)
    if not match:
        return None
    name = _MARKER_PREFIX.sub("", match.group(1)).strip()
    coordinates = _coordinates(match.group(2), match.group(3))
    if not name or coordinates is None:
        return None
    return Place(name=name, description=DEFAULT_DESCRIPTION, coordinates=coordinates)


def parse_places(text: Optional[str]) -> List[Place]:
    """
    Extract places from a free-text list.

    Lines starting with a list marker (``-``, ``*``, ``1.``) are parsed as
    ``name (description) [lat, lon]`` or ``name [lat, lon]``. When that yields
    fewer than three places, every remaining line is scanned again with a
    looser "text before brackets" pattern. Output follows input order.
    """
    if not text:
        return []

    lines = normalize_response(text)
    found: Dict[int, Place] = {}

    for index, line in enumerate(lines):
        if not _MARKER.match(line):
            continue
        place = _parse_marked_line(line)
        if place is not None:
            found[index] = place
        elif _COORDS.search(line) is None:
            logger.debug(f"No coordinates on list line: {line!r}")

    if len(found) < MIN_STRICT_MATCHES:
        if found:
            logger.warning(f"Only {len(found)} places parsed from list lines, scanning loosely")
        for index, line in enumerate(lines):
            if index in found:
                continue
            place = _parse_loose_line(line)
            if place is not None:
                found[index] = place

    places = [found[index] for index in sorted(found)]
    logger.info(f"Parsed {len(places)} places from model response")
    return places

