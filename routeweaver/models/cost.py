"""Pydantic models for trip cost estimates."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CostEstimateRequest(BaseModel):
    """Cost estimate request."""
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    places: List[str] = Field(default_factory=list)
    num_people: int = Field(2, ge=1, alias="numPeople")

    model_config = {"populate_by_name": True}


class CostEstimate(BaseModel):
    """Best-effort cost breakdown; degraded responses carry only total and a note."""
    success: bool = True
    total_cost: str = Field(..., serialization_alias="totalCost")
    breakdown: Optional[Dict[str, Any]] = None
    details: Optional[str] = None
    error: Optional[str] = None
