"""HTTP controller layer for availability checks, slot search and the calendar feed."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import (
    get_app_settings,
    get_availability_service,
    get_slot_service,
    to_http_exception,
)
from backend.domain.errors import ReservationError
from backend.domain.models import ReservationStatus
from backend.services.availability_service import AvailabilityService, statuses_counted_for
from backend.services.slot_service import SlotFinderService
from backend.utils.config import Settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["availability"])


class AvailabilityCheckRequest(BaseModel):
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)
    requested_rooms: int = Field(ge=1)
    room_pool: Optional[str] = None
    exclude_ids: list[str] = Field(default_factory=list)
    booking_status: Optional[ReservationStatus] = None


class AvailabilityCheckResponse(BaseModel):
    is_available: bool
    min_available_in_range: int
    requested_rooms: int
    start_date: date
    end_date: date
    room_pool: str
    capacity: int = Field(gt=0)
    daily_breakdown: dict[str, int]


class SlotSearchRequest(BaseModel):
    earliest_check_in: str = Field(min_length=1)
    latest_check_out_by: str = Field(min_length=1)
    nights: int
    requested_rooms: int = Field(ge=1)
    room_pool: Optional[str] = None
    booking_status: Optional[ReservationStatus] = None


class SlotResponse(BaseModel):
    start_date: date
    end_date: date
    min_available: int


class SlotSearchResponse(BaseModel):
    slots: list[SlotResponse]


class CalendarDayResponse(BaseModel):
    day: date
    confirmed: int = Field(ge=0)
    provisional: int = Field(ge=0)
    total: int = Field(ge=0)
    available: int
    capacity: int = Field(gt=0)


class PoolResponse(BaseModel):
    name: str
    capacity: int = Field(gt=0)
    is_default: bool


def _counted(booking_status: Optional[ReservationStatus]) -> Optional[frozenset[ReservationStatus]]:
    """Checks on behalf of a pending write use that tier's rules; otherwise combined."""
    if booking_status is None:
        return None
    return statuses_counted_for(booking_status)


@router.get("/pools", response_model=list[PoolResponse], status_code=status.HTTP_200_OK)
async def list_pools(settings: Settings = Depends(get_app_settings)) -> list[PoolResponse]:
    return [
        PoolResponse(
            name=pool.name,
            capacity=pool.capacity,
            is_default=pool.name == settings.default_pool,
        )
        for pool in settings.room_pools
    ]


@router.post(
    "/availability/check",
    response_model=AvailabilityCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def check_availability(
    payload: AvailabilityCheckRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityCheckResponse:
    try:
        result = service.check_range(
            payload.start_date,
            payload.end_date,
            payload.requested_rooms,
            exclude_ids=payload.exclude_ids,
            pool=payload.room_pool,
            counted_statuses=_counted(payload.booking_status),
        )
        return AvailabilityCheckResponse(
            is_available=result.is_available,
            min_available_in_range=result.min_available_in_range,
            requested_rooms=result.requested_rooms,
            start_date=result.start_date,
            end_date=result.end_date,
            room_pool=result.room_pool,
            capacity=result.capacity,
            daily_breakdown=result.daily_breakdown,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability check failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check availability",
        ) from exc


@router.post(
    "/availability/slots",
    response_model=SlotSearchResponse,
    status_code=status.HTTP_200_OK,
)
async def find_slots(
    payload: SlotSearchRequest,
    service: SlotFinderService = Depends(get_slot_service),
) -> SlotSearchResponse:
    try:
        slots = service.find_slots(
            payload.earliest_check_in,
            payload.latest_check_out_by,
            payload.nights,
            payload.requested_rooms,
            payload.room_pool,
            counted_statuses=_counted(payload.booking_status),
        )
        return SlotSearchResponse(
            slots=[
                SlotResponse(
                    start_date=slot.start_date,
                    end_date=slot.end_date,
                    min_available=slot.min_available,
                )
                for slot in slots
            ]
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected slot search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search slots",
        ) from exc


@router.get(
    "/availability/calendar",
    response_model=list[CalendarDayResponse],
    status_code=status.HTTP_200_OK,
)
async def availability_calendar(
    start: str = Query(min_length=1),
    end: str = Query(min_length=1),
    pool: Optional[str] = Query(default=None),
    service: AvailabilityService = Depends(get_availability_service),
) -> list[CalendarDayResponse]:
    """Per-day confirmed/provisional counts for a closed range."""
    try:
        rows = service.day_occupancy(start, end, pool)
        return [CalendarDayResponse(**row.to_dict()) for row in rows]
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
