"""Attach Google photo references to suggested places."""
import asyncio
import logging
from typing import Sequence
from urllib.parse import urlencode

from routeweaver.models.places import Place
from routeweaver.services.google_places import GooglePlacesClient

logger = logging.getLogger(__name__)

PHOTO_PROXY_PATH = "/api/v1/geocoding/photo-proxy"


def photo_proxy_url(photo_reference: str, max_width: int = 800) -> str:
    return f"{PHOTO_PROXY_PATH}?{urlencode({'photo_reference': photo_reference, 'maxwidth': max_width})}"


async def attach_photos(places: Sequence[Place], google: GooglePlacesClient) -> None:
    """
    Look up one photo per place concurrently.

    A failed lookup leaves that place without a photo and does not affect
    the others.
    """
    if not places or not google.configured:
        return

    lookups = [
        google.photo_reference(place.name, place.coordinates.latitude, place.coordinates.longitude)
        for place in places
    ]
    results = await asyncio.gather(*lookups, return_exceptions=True)

    for place, result in zip(places, results):
        if isinstance(result, Exception):
            logger.warning(f"Photo lookup failed for {place.name}: {result}")
            continue
        if result:
            place.photo_reference = result
            place.image_url = photo_proxy_url(result)
