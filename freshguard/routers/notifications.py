from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Request

from freshguard.config import DIGEST_MAX_ENTRIES
from freshguard.models import DigestSettings, DigestTimePayload, RunDuePayload, TogglePayload
from freshguard.services.digest import digest_content, next_fire_time

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


def _settings_response(request: Request, settings: DigestSettings) -> dict:
    scheduler = request.app.state.scheduler
    next_fire = scheduler.next_fire
    return {
        "settings": settings,
        "next_fire_at": next_fire.isoformat() if next_fire else None,
    }


@router.get("/settings")
async def get_settings(request: Request) -> dict:
    return {"data": _settings_response(request, request.app.state.settings.settings)}


@router.post("/push")
async def set_push(payload: TogglePayload, request: Request) -> dict:
    settings = request.app.state.settings.set_push_enabled(payload.enabled)
    return {"data": _settings_response(request, settings)}


@router.post("/digest")
async def set_digest(payload: TogglePayload, request: Request) -> dict:
    settings = request.app.state.settings.set_digest_enabled(payload.enabled)
    return {
        "data": {
            **_settings_response(request, settings),
            "applied": settings.digest_enabled == payload.enabled,
        }
    }


@router.post("/time")
async def set_digest_time(payload: DigestTimePayload, request: Request) -> dict:
    settings = request.app.state.settings.set_digest_time(payload.hour, payload.minute)
    return {"data": _settings_response(request, settings)}


@router.get("/next-fire")
async def get_next_fire(
    request: Request,
    now: Optional[datetime] = Query(default=None),
) -> dict:
    settings = request.app.state.settings.settings
    fire_at = next_fire_time(settings, now or request.app.state.scheduler.now())
    return {"data": {"next_fire_at": fire_at.isoformat() if fire_at else None}}


@router.get("/digest")
async def get_digest(
    request: Request,
    limit: int = Query(default=DIGEST_MAX_ENTRIES, ge=1),
) -> dict:
    entries = digest_content(request.app.state.inventory.entities(), limit=limit)
    return {"data": {"entries": entries, "count": len(entries)}}


@router.post("/run-due")
async def run_due(payload: RunDuePayload, request: Request) -> dict:
    scheduler = request.app.state.scheduler
    entries = scheduler.run_due(payload.as_of_datetime)
    next_fire = scheduler.next_fire
    return {
        "data": {
            "delivered": entries is not None,
            "entries": entries or [],
            "next_fire_at": next_fire.isoformat() if next_fire else None,
        }
    }
