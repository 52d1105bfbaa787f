"""Trip cost estimate endpoint."""
from fastapi import APIRouter, Depends

from routeweaver.dependencies import get_text_generator
from routeweaver.models.cost import CostEstimate, CostEstimateRequest
from routeweaver.services.cost_estimator import estimate_cost
from routeweaver.services.text_generation import TextGenerator

router = APIRouter(prefix="/travel", tags=["travel"])


@router.post("/cost", response_model=CostEstimate, response_model_exclude_none=True)
async def trip_cost(
    payload: CostEstimateRequest,
    text_generator: TextGenerator = Depends(get_text_generator),
):
    """Best-effort cost breakdown; degrades to ``totalCost: "unknown"`` with a note."""
    return await estimate_cost(
        text_generator,
        payload.origin,
        payload.destination,
        payload.places,
        payload.num_people,
    )
