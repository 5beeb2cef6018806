from __future__ import annotations

from fastapi import APIRouter

from freshguard.services.lifecycle import now_iso

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "timestamp": now_iso()}
