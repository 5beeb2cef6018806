from __future__ import annotations

from fastapi import APIRouter, Query, Request

from freshguard.models import LocationCreateRequest, LocationUpdateRequest
from freshguard.services.query import filter_locations

router = APIRouter(prefix="/api/v1/locations", tags=["locations"])


@router.get("")
async def list_locations(
    request: Request,
    q: str = Query(default=""),
) -> dict:
    inventory = request.app.state.inventory
    rows = filter_locations(inventory.list_locations(), q)
    return {"data": {"items": rows, "count": len(rows)}}


@router.get("/summary")
async def summary(request: Request) -> dict:
    inventory = request.app.state.inventory
    return {"data": {"locations": inventory.location_summary()}}


@router.post("")
async def create_location(payload: LocationCreateRequest, request: Request) -> dict:
    inventory = request.app.state.inventory
    location = inventory.add_location(
        name=payload.name,
        kind=payload.kind,
        subtitle=payload.subtitle,
        target_temp=payload.target_temp,
    )
    return {"data": {"location": location}}


@router.patch("/{location_id}")
async def update_location(location_id: str, payload: LocationUpdateRequest, request: Request) -> dict:
    inventory = request.app.state.inventory
    location = inventory.update_location(
        location_id,
        name=payload.name,
        subtitle=payload.subtitle,
        target_temp=payload.target_temp,
    )
    return {"data": {"location": location}}


@router.delete("/{location_id}")
async def delete_location(location_id: str, request: Request) -> dict:
    request.app.state.inventory.delete_location(location_id)
    return {"data": {"deleted": location_id}}
