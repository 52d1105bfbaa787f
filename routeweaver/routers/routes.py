"""Route assembly endpoint."""
import logging

from fastapi import APIRouter, Depends

from routeweaver.dependencies import get_routing_provider
from routeweaver.models.routes import RouteRequest, RouteResponse
from routeweaver.services.route_builder import build_route
from routeweaver.services.routing import RoutingProvider

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


@router.post("", response_model=RouteResponse)
async def create_route(
    payload: RouteRequest,
    provider: RoutingProvider = Depends(get_routing_provider),
):
    """
    Route from origin to destination through the selected places.

    Waypoints are visited nearest-first from the origin. If the routing
    provider fails, a synthetic route flagged with ``is_fallback`` is returned.
    """
    route, ordered = await build_route(provider, payload.origin, payload.destination, payload.waypoints)
    logger.info(
        f"Route with {len(ordered)} waypoints: {route.distance_meters / 1000:.1f} km"
        f"{' (fallback)' if route.is_fallback else ''}"
    )
    return RouteResponse(route=route, waypoints=ordered)
