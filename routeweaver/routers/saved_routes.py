"""Saved routes router - list, fetch, save and update a user's routes."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from routeweaver.database import get_db
from routeweaver.dependencies import get_current_user
from routeweaver.models.saved_routes import (
    SavedRouteCreatedResponse,
    SavedRouteCreateRequest,
    SavedRouteListResponse,
    SavedRouteResponse,
    SavedRouteSummary,
    SavedRouteUpdateRequest,
)
from routeweaver.services.route_store import SavedRouteRecord, SavedRouteStore
from routeweaver.utils.route_codec import decode_route_data, encode_route_data

router = APIRouter(prefix="/saved", tags=["saved-routes"])
logger = logging.getLogger(__name__)


def get_store(db: AsyncSession = Depends(get_db)) -> SavedRouteStore:
    return SavedRouteStore(db)


def _to_response(record: SavedRouteRecord) -> SavedRouteResponse:
    decoded = decode_route_data(record.route_data)
    return SavedRouteResponse(
        id=record.route_id,
        origin=decoded.origin,
        destination=decoded.destination,
        places=[place.model_copy(update={"checked": True}) for place in decoded.places],
    )


@router.get("", response_model=SavedRouteListResponse)
async def list_saved_routes(
    current_user: str = Depends(get_current_user),
    store: SavedRouteStore = Depends(get_store),
):
    """Origin and destination of every saved route, keyed by route id."""
    records = await store.find_by_user(current_user)
    if not records:
        raise HTTPException(status_code=404, detail="No available routes")

    routes = {}
    for record in records:
        decoded = decode_route_data(record.route_data)
        routes[record.route_id] = SavedRouteSummary(origin=decoded.origin, destination=decoded.destination)
    return SavedRouteListResponse(routes=routes)


@router.get("/{route_id}", response_model=SavedRouteResponse)
async def get_saved_route(
    route_id: int,
    current_user: str = Depends(get_current_user),
    store: SavedRouteStore = Depends(get_store),
):
    """A saved route with all of its places checked."""
    record = await store.find_by_user_and_id(current_user, route_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return _to_response(record)


@router.post("", response_model=SavedRouteCreatedResponse, status_code=status.HTTP_201_CREATED)
async def save_route(
    payload: SavedRouteCreateRequest,
    current_user: str = Depends(get_current_user),
    store: SavedRouteStore = Depends(get_store),
):
    """Save the selected places. An id of ``"x"`` asks the server to allocate one."""
    if payload.id == "x":
        route_id = await store.next_route_id()
    else:
        try:
            route_id = int(payload.id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Route id must be an integer or 'x'")

    route_data = encode_route_data(payload.origin, payload.destination, payload.selected_places)
    try:
        await store.insert(current_user, route_id, route_data)
    except IntegrityError:
        logger.error(f"Route id {route_id} already exists for {current_user}")
        raise HTTPException(status_code=500, detail="Failed to save route")

    return SavedRouteCreatedResponse(route_id=route_id)


@router.put("/{route_id}", response_model=SavedRouteResponse)
async def update_saved_route(
    route_id: int,
    payload: SavedRouteUpdateRequest,
    current_user: str = Depends(get_current_user),
    store: SavedRouteStore = Depends(get_store),
):
    """Replace the places of a saved route, keeping origin and destination unless given."""
    record = await store.find_by_user_and_id(current_user, route_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Route not found")

    current = decode_route_data(record.route_data)
    route_data = encode_route_data(
        payload.origin or current.origin,
        payload.destination or current.destination,
        payload.places,
    )
    await store.update(record, route_data)
    return _to_response(record)
