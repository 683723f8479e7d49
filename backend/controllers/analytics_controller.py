"""HTTP controller layer for read-only occupancy analytics."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_analytics_service, to_http_exception
from backend.domain.errors import ReservationError
from backend.services.analytics_service import AnalyticsService
from backend.utils.dates import to_canonical_day


router = APIRouter(prefix="/analytics", tags=["analytics"])


class CategoryStatsResponse(BaseModel):
    category: str
    label: str
    confirmed_room_days: int = Field(ge=0)
    provisional_room_days: int = Field(ge=0)
    total_room_days: int = Field(ge=0)


class PeriodSummaryResponse(BaseModel):
    range_start: date
    range_end: date
    room_pool: Optional[str] = None
    capacity: int = Field(gt=0)
    days_in_range: int = Field(gt=0)
    total_reservations: int = Field(ge=0)
    confirmed_room_days: int = Field(ge=0)
    provisional_room_days: int = Field(ge=0)
    total_room_days_booked: int = Field(ge=0)
    capacity_room_days: int = Field(gt=0)
    occupancy_rate: float = Field(ge=0.0)
    category_breakdown: list[CategoryStatsResponse]


class DaySummaryResponse(BaseModel):
    day: date
    confirmed: int = Field(ge=0)
    provisional: int = Field(ge=0)
    total: int = Field(ge=0)
    available: int
    capacity: int = Field(gt=0)


class YearSummaryResponse(BaseModel):
    summary: PeriodSummaryResponse
    monthly: list[PeriodSummaryResponse]


@router.get("/summary", response_model=PeriodSummaryResponse, status_code=status.HTTP_200_OK)
async def summary(
    start: str = Query(min_length=1),
    end: str = Query(min_length=1),
    pool: Optional[str] = Query(default=None),
    service: AnalyticsService = Depends(get_analytics_service),
) -> PeriodSummaryResponse:
    try:
        return PeriodSummaryResponse(**service.summarize(start, end, pool).to_dict())
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.get("/day/{day}", response_model=DaySummaryResponse, status_code=status.HTTP_200_OK)
async def day_summary(
    day: str,
    pool: Optional[str] = Query(default=None),
    service: AnalyticsService = Depends(get_analytics_service),
) -> DaySummaryResponse:
    try:
        return DaySummaryResponse(**service.day_summary(to_canonical_day(day), pool).to_dict())
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/month/{year}/{month}",
    response_model=PeriodSummaryResponse,
    status_code=status.HTTP_200_OK,
)
async def month_summary(
    year: int,
    month: int,
    pool: Optional[str] = Query(default=None),
    service: AnalyticsService = Depends(get_analytics_service),
) -> PeriodSummaryResponse:
    try:
        return PeriodSummaryResponse(**service.month_summary(year, month, pool).to_dict())
    except ReservationError as exc:
        raise to_http_exception(exc) from exc


@router.get("/year/{year}", response_model=YearSummaryResponse, status_code=status.HTTP_200_OK)
async def year_summary(
    year: int,
    pool: Optional[str] = Query(default=None),
    service: AnalyticsService = Depends(get_analytics_service),
) -> YearSummaryResponse:
    try:
        result = service.year_summary(year, pool)
        return YearSummaryResponse(
            summary=PeriodSummaryResponse(**result["summary"].to_dict()),
            monthly=[
                PeriodSummaryResponse(**item.to_dict()) for item in result["monthly"]
            ],
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc
