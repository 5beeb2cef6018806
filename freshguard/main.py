from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from freshguard.config import DATA_FILE, LOG_LEVEL, get_cors_allow_origins
from freshguard.errors import InventoryError
from freshguard.inventory import InventoryStore
from freshguard.models import ApiError, DigestSettings
from freshguard.routers.health import router as health_router
from freshguard.routers.inventory import router as inventory_router
from freshguard.routers.locations import router as locations_router
from freshguard.routers.notifications import router as notifications_router
from freshguard.services.digest import (
    DigestNotifier,
    DigestScheduler,
    DigestSettingsManager,
    settings_from_pairs,
    settings_to_pairs,
)
from freshguard.storage import JsonStore

logger = logging.getLogger(__name__)


def create_app(
    data_file: Optional[str] = None,
    notifier: Optional[DigestNotifier] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="FreshGuard API",
        version="0.1.0",
        description="Perishable inventory tracking with freshness classification and a daily digest.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_allow_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = JsonStore(data_file or DATA_FILE)

    inventory = InventoryStore()
    inventory.load(store.get_list("locations"), store.get_list("items"), store.get_list("batches"))

    def persist_inventory(changed: InventoryStore) -> None:
        store.set_many(changed.to_rows())

    inventory.subscribe(persist_inventory)

    settings = DigestSettingsManager(settings_from_pairs(store.get_obj("settings")))

    def persist_settings(changed: DigestSettings) -> None:
        store.set_obj("settings", settings_to_pairs(changed))

    settings.subscribe(persist_settings)

    scheduler = DigestScheduler(settings, inventory.entities, notifier=notifier, clock=clock)
    scheduler.start()

    app.state.store = store
    app.state.inventory = inventory
    app.state.settings = settings
    app.state.scheduler = scheduler

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        body = ApiError(error=exc.message, kind=exc.kind)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    app.include_router(health_router)
    app.include_router(locations_router)
    app.include_router(inventory_router)
    app.include_router(notifications_router)

    @app.get("/")
    async def root() -> dict:
        return {
            "name": "freshguard",
            "status": "ok",
            "docs": "/docs",
        }

    @app.post("/api/v1/data/clear")
    async def clear_all_data() -> dict:
        inventory.clear()
        settings.reset()
        return {"data": {"cleared": True}}

    return app


app = create_app()
