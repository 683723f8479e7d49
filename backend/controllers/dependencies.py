"""Shared FastAPI dependency providers and error mapping for controllers."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from backend.domain.errors import (
    CapacityExceededError,
    ReservationNotFoundError,
    ReservationValidationError,
    StoreError,
)
from backend.services.analytics_service import AnalyticsService
from backend.services.availability_service import AvailabilityService
from backend.services.lifecycle_service import ReservationLifecycleService
from backend.services.slot_service import SlotFinderService
from backend.utils.config import Settings, get_settings


def _from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not initialized",
        )
    return service


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_lifecycle_service(request: Request) -> ReservationLifecycleService:
    return _from_state(request, "lifecycle_service", "Reservation service")


def get_availability_service(request: Request) -> AvailabilityService:
    return _from_state(request, "availability_service", "Availability service")


def get_slot_service(request: Request) -> SlotFinderService:
    return _from_state(request, "slot_service", "Slot finder service")


def get_analytics_service(request: Request) -> AnalyticsService:
    return _from_state(request, "analytics_service", "Analytics service")


def to_http_exception(exc: Exception) -> HTTPException:
    """Translate a domain failure into the matching HTTP error."""
    if isinstance(exc, CapacityExceededError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "requested": exc.requested,
                "min_available_in_range": exc.min_available_in_range,
                "room_pool": exc.room_pool,
                "daily_breakdown": exc.daily_breakdown,
            },
        )
    if isinstance(exc, ReservationValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ReservationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unexpected reservation failure",
    )
