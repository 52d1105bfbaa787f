"""Pydantic models for route assembly."""
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from routeweaver.models.places import Coordinates
from routeweaver.utils.geo import is_null_island

# Ordered [longitude, latitude] pairs
RouteGeometry = List[Tuple[float, float]]


class Route(BaseModel):
    """A route returned to clients."""

    geometry: RouteGeometry = Field(..., min_length=2)
    distance_meters: float
    duration_seconds: float
    distance_text: Optional[str] = Field(None, description='Human readable distance, e.g. "12.3km"')
    duration_text: Optional[str] = Field(None, description='Human readable duration, e.g. "2 hr 15 min"')
    bounds: Optional[Dict[str, Dict[str, float]]] = Field(
        None, description="Northeast/southwest corners of the geometry"
    )
    is_fallback: bool = False
    fallback_reason: Optional[str] = None


class RouteRequest(BaseModel):
    """Request body for building a route through waypoints."""

    origin: Coordinates
    destination: Coordinates
    waypoints: List[Coordinates] = Field(default_factory=list)

    @field_validator("waypoints")
    @classmethod
    def reject_placeholder_waypoints(cls, waypoints: List[Coordinates]) -> List[Coordinates]:
        for waypoint in waypoints:
            if is_null_island(waypoint.latitude, waypoint.longitude):
                raise ValueError("Waypoint at (0, 0) is not a real location")
        return waypoints


class RouteResponse(BaseModel):
    """Success envelope for a route."""

    success: bool = True
    route: Route
    waypoints: List[Coordinates] = Field(default_factory=list, description="Waypoints in visiting order")
