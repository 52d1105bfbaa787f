"""Landmark browsing router."""
from fastapi import APIRouter, Depends, HTTPException, Query

from routeweaver.dependencies import enforce_rate_limit, get_landmark_browser
from routeweaver.models.places import NearbyPlacesResponse
from routeweaver.services.landmarks import LandmarkBrowser

router = APIRouter(prefix="/places", tags=["places"])


@router.get(
    "/nearby",
    response_model=NearbyPlacesResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def nearby_places(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    keywords: str = Query("", description="Comma-separated keywords, e.g. 'waterfall,dam'"),
    offset: int = Query(0, ge=0, description="Increase to browse a different set of landmarks"),
    browser: LandmarkBrowser = Depends(get_landmark_browser),
):
    """
    Up to 15 landmarks within 10 km of a point.

    Calling again with the next ``offset`` searches other place types and
    rotates the results, so a "reload" shows different landmarks.
    """
    if not browser.google.configured:
        raise HTTPException(status_code=503, detail="Google Places API not configured")

    results = await browser.nearby(lat, lng, keywords, offset)
    return NearbyPlacesResponse(results=results)
