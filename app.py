"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the reservation store and services, registers routers, and runs
store initialization on startup.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.analytics_controller import router as analytics_router
from backend.controllers.availability_controller import router as availability_router
from backend.controllers.reservation_controller import router as reservation_router
from backend.domain.constraints import validate_settings
from backend.repository.reservation_store import (
    InMemoryReservationStore,
    ReservationStore,
    SQLiteReservationStore,
)
from backend.services.analytics_service import AnalyticsService
from backend.services.availability_service import AvailabilityService
from backend.services.lifecycle_service import ReservationLifecycleService
from backend.services.slot_service import SlotFinderService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ReservationStore] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    No global singletons; every dependency is traceable from this function.
    """
    settings = settings or get_settings()
    validate_settings(settings)

    # --- Store (SQLite by default, in-memory for ephemeral runs) ---
    if store is None:
        if settings.storage_backend == "memory":
            store = InMemoryReservationStore()
        else:
            store = SQLiteReservationStore(settings)

    # --- Services (business logic, no direct DB access) ---
    availability_service = AvailabilityService(store=store, settings=settings)
    slot_service = SlotFinderService(availability_service)
    lifecycle_service = ReservationLifecycleService(
        store=store,
        availability_service=availability_service,
        settings=settings,
    )
    analytics_service = AnalyticsService(store=store, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(reservation_router)
    app.include_router(availability_router)
    app.include_router(analytics_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.store = store
    app.state.availability_service = availability_service
    app.state.slot_service = slot_service
    app.state.lifecycle_service = lifecycle_service
    app.state.analytics_service = analytics_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    store = app.state.store
    settings: Settings = app.state.settings

    if isinstance(store, SQLiteReservationStore):
        logger.info("Startup: initializing reservation schema")
        store.initialize_database()

    logger.info(
        "Startup: room pools %s (default %s)",
        ", ".join(f"{pool.name}={pool.capacity}" for pool in settings.room_pools),
        settings.default_pool,
    )
    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
