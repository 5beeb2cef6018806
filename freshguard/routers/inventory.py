from __future__ import annotations

from fastapi import APIRouter, Query, Request

from freshguard.models import (
    BatchCreateRequest,
    ItemCreateRequest,
    MergeRequest,
    MoveRequest,
    SplitRequest,
    StatusFilter,
    UseRequest,
)
from freshguard.services.query import counts_by_status, filter_entities

router = APIRouter(prefix="/api/v1", tags=["inventory"])


# --- Items ---------------------------------------------------------------------


@router.get("/items")
async def list_items(
    request: Request,
    status: StatusFilter = Query(default="all"),
    q: str = Query(default=""),
) -> dict:
    inventory = request.app.state.inventory
    rows = list(filter_entities(inventory.list_items(), status, q))
    return {"data": {"items": rows, "count": len(rows)}}


@router.get("/items/counts")
async def item_counts(request: Request) -> dict:
    inventory = request.app.state.inventory
    return {"data": {"counts": counts_by_status(inventory.list_items())}}


@router.post("/items")
async def create_item(payload: ItemCreateRequest, request: Request) -> dict:
    inventory = request.app.state.inventory
    item = inventory.add_item(
        name=payload.name,
        location_id=payload.location_id,
        quantity=payload.quantity,
        days_to_expire=payload.days_to_expire,
        opened=payload.opened,
        status=payload.status,
    )
    return {"data": {"item": item}}


@router.post("/items/{item_id}/use")
async def use_item(item_id: str, payload: UseRequest, request: Request) -> dict:
    updated = request.app.state.inventory.use_item(item_id, payload.amount)
    return {"data": {"updated_item": updated, "removed": updated is None}}


@router.post("/items/{item_id}/move")
async def move_item(item_id: str, payload: MoveRequest, request: Request) -> dict:
    item = request.app.state.inventory.move_item(item_id, payload.location_id)
    return {"data": {"item": item}}


@router.delete("/items/{item_id}")
async def delete_item(item_id: str, request: Request) -> dict:
    request.app.state.inventory.delete_item(item_id)
    return {"data": {"deleted": item_id}}


# --- Batches -------------------------------------------------------------------


@router.get("/batches")
async def list_batches(
    request: Request,
    status: StatusFilter = Query(default="all"),
    q: str = Query(default=""),
) -> dict:
    inventory = request.app.state.inventory
    rows = list(filter_entities(inventory.list_batches(), status, q))
    return {"data": {"items": rows, "count": len(rows)}}


@router.get("/batches/counts")
async def batch_counts(request: Request) -> dict:
    inventory = request.app.state.inventory
    return {"data": {"counts": counts_by_status(inventory.list_batches())}}


@router.post("/batches")
async def create_batch(payload: BatchCreateRequest, request: Request) -> dict:
    inventory = request.app.state.inventory
    batch = inventory.add_batch(
        name=payload.name,
        location_id=payload.location_id,
        count_label=payload.count_label,
        nearest_days=payload.nearest_days,
        opened=payload.opened,
        total=payload.total,
        window_days=payload.window_days,
    )
    return {"data": {"batch": batch}}


@router.post("/batches/merge")
async def merge_batches(payload: MergeRequest, request: Request) -> dict:
    merged = request.app.state.inventory.merge_batches(payload.first_id, payload.second_id)
    return {"data": {"batch": merged}}


@router.post("/batches/{batch_id}/use")
async def use_batch(batch_id: str, payload: UseRequest, request: Request) -> dict:
    updated = request.app.state.inventory.use_batch(batch_id, payload.amount)
    return {"data": {"updated_batch": updated, "removed": updated is None}}


@router.post("/batches/{batch_id}/split")
async def split_batch(batch_id: str, payload: SplitRequest, request: Request) -> dict:
    source, split_off = request.app.state.inventory.split_batch(batch_id, payload.amount)
    return {"data": {"source": source, "split": split_off}}


@router.post("/batches/{batch_id}/move")
async def move_batch(batch_id: str, payload: MoveRequest, request: Request) -> dict:
    batch = request.app.state.inventory.move_batch(batch_id, payload.location_id)
    return {"data": {"batch": batch}}


@router.delete("/batches/{batch_id}")
async def delete_batch(batch_id: str, request: Request) -> dict:
    request.app.state.inventory.delete_batch(batch_id)
    return {"data": {"deleted": batch_id}}
