"""
Geocoding and Places Photo Proxy Router
Resolves place names and proxies Google photos to hide the API key from the frontend
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from routeweaver.dependencies import get_geocoder, get_google_client
from routeweaver.errors import ErrorKind
from routeweaver.models.geocoding import GeocodeResponse, ReverseGeocodeResponse
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient

router = APIRouter(prefix="/geocoding", tags=["geocoding"])
logger = logging.getLogger(__name__)


@router.get("/geocode", response_model=GeocodeResponse)
async def geocode_place(
    place: str = Query(..., min_length=1, description="Free-text place name"),
    geocoder: Geocoder = Depends(get_geocoder),
):
    """
    Coordinates for a place name.

    Tries Google Geocoding, then Nominatim, then the text model. The
    ``source`` and ``confidence`` fields say which one answered.
    """
    result = await geocoder.geocode(place)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Could not find coordinates for {place}")

    return GeocodeResponse(
        name=result.name,
        coordinates=result.coordinates,
        source=result.source,
        confidence=result.confidence,
    )


@router.get("/reverse-geocode", response_model=ReverseGeocodeResponse)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    geocoder: Geocoder = Depends(get_geocoder),
):
    """Converts coordinates to a display name (``"lat,lng"`` when unknown)."""
    return ReverseGeocodeResponse(display_name=await geocoder.reverse(lat, lng))


@router.get("/photo-proxy")
async def photo_proxy(
    photo_reference: str = Query(..., min_length=1, description="Google photo reference"),
    maxwidth: int = Query(800, ge=1, le=1600, description="Maximum width in pixels"),
    google: GooglePlacesClient = Depends(get_google_client),
):
    """
    Proxy for Google Places Photo API.

    Returns:
        Photo binary data
    """
    result = await google.fetch_photo(photo_reference, maxwidth)
    if not result.ok:
        if result.error == ErrorKind.NOT_CONFIGURED:
            raise HTTPException(status_code=503, detail="Google Places API not configured")
        raise HTTPException(status_code=502, detail="Failed to fetch photo")

    response = result.value
    return Response(
        content=response.content,
        media_type=response.headers.get("content-type", "image/jpeg"),
        headers={"Cache-Control": "public, max-age=86400"},
    )
