"""HTTP controller layer for reservation lifecycle operations."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_lifecycle_service, to_http_exception
from backend.domain.errors import ReservationError
from backend.domain.models import (
    Reservation,
    ReservationCategory,
    ReservationDraft,
    ReservationStatus,
    WriteOutcome,
)
from backend.services.lifecycle_service import ReservationLifecycleService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])


class ReservationPayload(BaseModel):
    """Input DTO; dates are ISO days or ISO timestamps in any UTC offset."""

    title: str = Field(min_length=1)
    category: ReservationCategory
    category_qualifier: Optional[str] = None
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)
    room_count: int = Field(ge=1)
    status: ReservationStatus = ReservationStatus.PROVISIONAL
    room_pool: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> object:
        # Accepts case variants and the legacy "pencil" alias.
        if isinstance(value, str):
            return ReservationStatus(value)
        return value

    def to_draft(self) -> ReservationDraft:
        return ReservationDraft(
            title=self.title,
            category=self.category,
            category_qualifier=self.category_qualifier,
            start_date=self.start_date,
            end_date=self.end_date,
            room_count=self.room_count,
            status=self.status,
            room_pool=self.room_pool,
        )


class ReservationUpdatePayload(ReservationPayload):
    original_status: ReservationStatus
    created_at: Optional[datetime] = None

    @field_validator("original_status", mode="before")
    @classmethod
    def _parse_original_status(cls, value: object) -> object:
        if isinstance(value, str):
            return ReservationStatus(value)
        return value

    def to_draft(self) -> ReservationDraft:
        # Only updates may carry an explicit created_at; creates are stamped by the service.
        return replace(super().to_draft(), created_at=self.created_at)


class ReservationResponse(BaseModel):
    id: str
    title: str
    category: ReservationCategory
    category_qualifier: Optional[str] = None
    start_date: date
    end_date: date
    room_count: int = Field(ge=1)
    status: ReservationStatus
    room_pool: str
    created_at: datetime

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationResponse":
        return cls(**reservation.to_dict())


class WriteOutcomeResponse(BaseModel):
    reservation: ReservationResponse
    evicted_ids: list[str]

    @classmethod
    def from_domain(cls, outcome: WriteOutcome) -> "WriteOutcomeResponse":
        return cls(
            reservation=ReservationResponse.from_domain(outcome.reservation),
            evicted_ids=list(outcome.evicted_ids),
        )


class ClearResponse(BaseModel):
    removed: int = Field(ge=0)


@router.post(
    "",
    response_model=WriteOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: ReservationPayload,
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> WriteOutcomeResponse:
    try:
        outcome = service.create(payload.to_draft())
        return WriteOutcomeResponse.from_domain(outcome)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation create failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create reservation",
        ) from exc


@router.get("", response_model=list[ReservationResponse], status_code=status.HTTP_200_OK)
async def list_reservations(
    pool: Optional[str] = Query(default=None),
    reservation_status: Optional[ReservationStatus] = Query(default=None, alias="status"),
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> list[ReservationResponse]:
    try:
        reservations = service.list_reservations(pool=pool, status=reservation_status)
        return [ReservationResponse.from_domain(item) for item in reservations]
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    status_code=status.HTTP_200_OK,
)
async def get_reservation(
    reservation_id: str,
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> ReservationResponse:
    try:
        return ReservationResponse.from_domain(service.get(reservation_id))
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.put(
    "/{reservation_id}",
    response_model=WriteOutcomeResponse,
    status_code=status.HTTP_200_OK,
)
async def update_reservation(
    reservation_id: str,
    payload: ReservationUpdatePayload,
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> WriteOutcomeResponse:
    try:
        outcome = service.update(
            reservation_id,
            payload.original_status,
            payload.to_draft(),
        )
        return WriteOutcomeResponse.from_domain(outcome)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update reservation",
        ) from exc


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: str,
    reservation_status: ReservationStatus = Query(alias="status"),
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> None:
    try:
        service.delete(reservation_id, reservation_status)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.delete("", response_model=ClearResponse, status_code=status.HTTP_200_OK)
async def clear_reservations(
    service: ReservationLifecycleService = Depends(get_lifecycle_service),
) -> ClearResponse:
    try:
        return ClearResponse(removed=service.clear_all())
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
