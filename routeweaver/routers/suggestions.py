"""Place suggestion endpoints."""
import logging
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query

from routeweaver.dependencies import (
    get_geocoder,
    get_google_client,
    get_routing_provider,
    get_suggestion_engine,
)
from routeweaver.models.places import (
    Coordinates,
    RouteSuggestionRequest,
    SuggestionMode,
    SuggestionResponse,
    TripSuggestionResponse,
)
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.photos import attach_photos
from routeweaver.services.route_builder import build_route
from routeweaver.services.routing import RoutingProvider
from routeweaver.services.suggestions import SuggestionEngine
from routeweaver.utils.geo import LonLat

router = APIRouter(prefix="/suggestions", tags=["suggestions"])
logger = logging.getLogger(__name__)


async def _resolve(geocoder: Geocoder, name: str, known: Optional[Coordinates]) -> Optional[Coordinates]:
    if known is not None:
        return known
    return (await geocoder.coordinates(name)).unwrap_or(None)


async def _route_line(
    provider: RoutingProvider,
    origin: Optional[Coordinates],
    destination: Optional[Coordinates],
) -> Optional[Sequence[LonLat]]:
    """Provider route between the endpoints; synthetic routes are not used for filtering."""
    if origin is None or destination is None:
        return None
    route, _ = await build_route(provider, origin, destination)
    return None if route.is_fallback else route.geometry


@router.post("/route", response_model=SuggestionResponse)
async def suggest_along_route(
    payload: RouteSuggestionRequest,
    engine: SuggestionEngine = Depends(get_suggestion_engine),
    geocoder: Geocoder = Depends(get_geocoder),
    provider: RoutingProvider = Depends(get_routing_provider),
    google: GooglePlacesClient = Depends(get_google_client),
):
    """
    Attractions along the driving route between two places.

    Returns two sets; the second never repeats a place of the first. When
    both endpoints can be located, places far from the route are dropped.
    """
    origin_coordinates = await _resolve(geocoder, payload.origin, payload.origin_coordinates)
    destination_coordinates = await _resolve(geocoder, payload.destination, payload.destination_coordinates)
    geometry = await _route_line(provider, origin_coordinates, destination_coordinates)

    result = await engine.suggest_places(
        payload.origin,
        payload.destination,
        payload.keyword,
        SuggestionMode.ALONG_ROUTE,
        origin_coordinates=origin_coordinates,
        route_geometry=geometry,
    )
    await attach_photos(result.primary + result.secondary, google)
    return SuggestionResponse(primary=result.primary, secondary=result.secondary)


@router.get("/nearby", response_model=SuggestionResponse)
async def suggest_nearby(
    location: Optional[str] = Query(None, description="Origin place name"),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    keyword: Optional[str] = Query(None, description="Attraction keyword filter"),
    engine: SuggestionEngine = Depends(get_suggestion_engine),
    geocoder: Geocoder = Depends(get_geocoder),
    google: GooglePlacesClient = Depends(get_google_client),
):
    """Nearby (within 80 km) and distant (100-1000 km) attractions around an origin."""
    if lat is not None and lng is not None:
        origin_coordinates = Coordinates(latitude=lat, longitude=lng)
        origin = location or await geocoder.reverse(lat, lng)
    elif location:
        origin = location
        origin_coordinates = await _resolve(geocoder, location, None)
    else:
        raise HTTPException(status_code=400, detail="Provide either location or lat and lng")

    result = await engine.suggest_places(
        origin,
        None,
        keyword,
        SuggestionMode.NEAR_ORIGIN,
        origin_coordinates=origin_coordinates,
    )
    await attach_photos(result.primary + result.secondary, google)
    return SuggestionResponse(primary=result.primary, secondary=result.secondary)


@router.get("/trip", response_model=TripSuggestionResponse)
async def suggest_for_trip(
    location: str = Query(..., min_length=1, description="Origin place name"),
    trip_days: int = Query(2, ge=1, le=14, description="Trip length in days"),
    engine: SuggestionEngine = Depends(get_suggestion_engine),
    geocoder: Geocoder = Depends(get_geocoder),
    google: GooglePlacesClient = Depends(get_google_client),
):
    """Destinations grouped into short, medium and long distance bands for a trip length."""
    origin_coordinates = await _resolve(geocoder, location, None)
    trip = await engine.suggest_trip(location, trip_days, origin_coordinates)

    await attach_photos(trip.all_places(), google)
    return TripSuggestionResponse(
        short_distance=trip.short_distance,
        medium_distance=trip.medium_distance,
        long_distance=trip.long_distance,
    )
