"""Pydantic models for geocoding."""
from enum import Enum

from pydantic import BaseModel, Field

from routeweaver.models.places import Coordinates


class GeocodeSource(str, Enum):
    GOOGLE = "google"
    NOMINATIM = "nominatim"
    GEMINI = "gemini"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GeocodeResult(BaseModel):
    """Coordinates for a free-text place name."""
    name: str
    coordinates: Coordinates
    source: GeocodeSource
    confidence: Confidence = Confidence.MEDIUM


class GeocodeResponse(BaseModel):
    success: bool = True
    name: str
    coordinates: Coordinates
    source: GeocodeSource
    confidence: Confidence


class ReverseGeocodeResponse(BaseModel):
    success: bool = True
    display_name: str = Field(..., description="Human readable location name")
