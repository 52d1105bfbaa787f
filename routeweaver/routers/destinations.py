"""Popular destinations endpoint."""
from fastapi import APIRouter, Depends, HTTPException, Query

from routeweaver.dependencies import enforce_rate_limit, get_destination_service
from routeweaver.models.places import PopularDestinationsResponse
from routeweaver.services.destinations import PopularDestinationService

router = APIRouter(prefix="/destinations", tags=["destinations"])


@router.get(
    "/popular",
    response_model=PopularDestinationsResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def popular_destinations(
    origin: str = Query(..., min_length=1),
    min_distance: float = Query(50, ge=0, description="Minimum distance in km"),
    max_distance: float = Query(500, gt=0, description="Maximum distance in km"),
    limit: int = Query(4, ge=1, le=50),
    service: PopularDestinationService = Depends(get_destination_service),
):
    """Popular tourist destinations between ``min_distance`` and ``max_distance`` km, cached for 24h."""
    if min_distance > max_distance:
        raise HTTPException(status_code=400, detail="min_distance must not exceed max_distance")

    destinations = await service.find(origin, min_distance, max_distance, limit)
    if destinations is None:
        raise HTTPException(status_code=400, detail="Could not geocode origin location")
    return PopularDestinationsResponse(destinations=destinations)
