"""Pydantic models for places and place suggestions."""
from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class SuggestionMode(str, Enum):
    """Geographic constraint used when asking for suggestions."""
    ALONG_ROUTE = "along-route"
    NEAR_ORIGIN = "near-origin"
    BY_TRIP_DURATION = "by-trip-duration"


class Coordinates(BaseModel):
    """A latitude/longitude pair."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Place(BaseModel):
    """A point of interest suggested to the user."""
    name: str = Field(..., min_length=1)
    description: str = ""
    coordinates: Coordinates

    # Derived / optional fields
    distance_from_origin_km: Optional[float] = None
    distance_from_route_km: Optional[float] = None
    photo_reference: Optional[str] = None
    image_url: Optional[str] = None
    checked: bool = False


class RouteSuggestionRequest(BaseModel):
    """Request body for along-route suggestions."""
    origin: str = Field(..., min_length=1, description="Origin place name")
    destination: str = Field(..., min_length=1, description="Destination place name")
    keyword: Optional[str] = Field(None, description="Attraction keyword filter")
    origin_coordinates: Optional[Coordinates] = None
    destination_coordinates: Optional[Coordinates] = None


class SuggestionResponse(BaseModel):
    """Two sets of suggestions, the second excluding the first."""
    success: bool = True
    primary: List[Place]
    secondary: List[Place]


class TripSuggestionResponse(BaseModel):
    """Suggestions bucketed by distance from the origin."""
    success: bool = True
    short_distance: List[Place]
    medium_distance: List[Place]
    long_distance: List[Place]


class PopularDestination(BaseModel):
    """A destination found around an origin within a distance band."""
    place_id: Optional[str] = None
    name: str
    latitude: float
    longitude: float
    rating: Optional[float] = None
    types: List[str] = []
    photo_reference: Optional[str] = None
    distance_km: float


class NearbyPlacesResponse(BaseModel):
    """Response for landmark browsing around a point."""
    success: bool = True
    results: List[PopularDestination]


class PopularDestinationsResponse(BaseModel):
    """Response for the popular destinations endpoint."""
    success: bool = True
    destinations: List[PopularDestination]
