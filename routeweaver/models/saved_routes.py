"""Pydantic models for saved routes."""

from typing import List, Optional, Union, Dict

from pydantic import BaseModel, Field, field_validator

# Separates fields in the stored route string
ROUTE_FIELD_SEPARATOR = "|"


def _check_endpoint_name(value: Optional[str]) -> Optional[str]:
    if value is not None and ROUTE_FIELD_SEPARATOR in value:
        raise ValueError(f"must not contain '{ROUTE_FIELD_SEPARATOR}'")
    return value


class SavedPlace(BaseModel):
    """A selected place as stored inside a saved route."""

    name: str = Field(..., min_length=1)
    lat: float
    lng: float
    checked: bool = True


class SavedRouteCreateRequest(BaseModel):
    """Save payload. ``id`` of "x" asks the server to allocate one."""

    id: Union[int, str] = Field("x", description="Route id or 'x' to auto-generate")
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    selected_places: List[SavedPlace] = Field(..., alias="selectedPlaces")

    model_config = {"populate_by_name": True}

    @field_validator("origin", "destination")
    @classmethod
    def reject_separator(cls, value):
        return _check_endpoint_name(value)


class SavedRouteUpdateRequest(BaseModel):
    """Replace the places of a saved route."""

    origin: Optional[str] = None
    destination: Optional[str] = None
    places: List[SavedPlace]

    @field_validator("origin", "destination")
    @classmethod
    def reject_separator(cls, value):
        return _check_endpoint_name(value)


class SavedRouteSummary(BaseModel):
    """Origin and destination of a saved route."""

    origin: str
    destination: str


class SavedRouteResponse(BaseModel):
    """Full saved route returned to clients."""

    success: bool = True
    id: int
    origin: str
    destination: str
    places: List[SavedPlace]


class SavedRouteCreatedResponse(BaseModel):
    success: bool = True
    message: str = "Route saved successfully"
    route_id: int = Field(..., serialization_alias="routeId")


class SavedRouteListResponse(BaseModel):
    success: bool = True
    routes: Dict[int, SavedRouteSummary]
