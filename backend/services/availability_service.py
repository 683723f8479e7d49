"""Availability checks for a pool over a half-open day range."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional, Sequence

from backend.domain.errors import ReservationValidationError
from backend.domain.models import (
    AvailabilityResult,
    DayOccupancy,
    Reservation,
    ReservationStatus,
)
from backend.repository.reservation_store import ReservationStore, build_store
from backend.services.occupancy_service import daily_occupancy, daily_tier_occupancy
from backend.utils.config import Settings, get_settings
from backend.utils.dates import DayLike, to_canonical_day
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def statuses_counted_for(status: ReservationStatus) -> frozenset[ReservationStatus]:
    """Return the tiers a write of `status` must fit against.

    Confirmed reservations compete only with other confirmed reservations,
    since any overlapping provisional hold is evicted when they are written.
    Provisional reservations must fit inside the combined occupancy.
    """
    if status is ReservationStatus.CONFIRMED:
        return frozenset({ReservationStatus.CONFIRMED})
    return frozenset(ReservationStatus)


class AvailabilityService:
    """Answers whether N rooms fit in a pool for [start, end)."""

    def __init__(
        self,
        store: Optional[ReservationStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or build_store(self._settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> ReservationStore:
        return self._store

    def evaluate(
        self,
        reservations: Iterable[Reservation],
        start: DayLike,
        end_exclusive: DayLike,
        requested_rooms: int,
        *,
        pool: str,
        capacity: int,
        counted_statuses: Optional[Iterable[ReservationStatus]] = None,
    ) -> AvailabilityResult:
        """Compute availability against an already loaded reservation set."""
        range_start = to_canonical_day(start)
        range_end = to_canonical_day(end_exclusive)
        if range_start >= range_end:
            return AvailabilityResult(
                is_available=False,
                min_available_in_range=0,
                requested_rooms=requested_rooms,
                start_date=range_start,
                end_date=range_end,
                room_pool=pool,
                capacity=capacity,
                daily_breakdown={},
            )

        booked_by_day = daily_occupancy(
            reservations,
            range_start,
            range_end - timedelta(days=1),
            statuses=counted_statuses,
        )
        daily_breakdown = {
            day.isoformat(): capacity - booked
            for day, booked in sorted(booked_by_day.items())
        }
        min_available = min(daily_breakdown.values())
        return AvailabilityResult(
            is_available=min_available >= requested_rooms,
            min_available_in_range=min_available,
            requested_rooms=requested_rooms,
            start_date=range_start,
            end_date=range_end,
            room_pool=pool,
            capacity=capacity,
            daily_breakdown=daily_breakdown,
        )

    def check_range(
        self,
        start: DayLike,
        end_exclusive: DayLike,
        requested_rooms: int,
        *,
        exclude_ids: Sequence[str] = (),
        pool: Optional[str] = None,
        counted_statuses: Optional[Iterable[ReservationStatus]] = None,
    ) -> AvailabilityResult:
        if isinstance(requested_rooms, bool) or not isinstance(requested_rooms, int):
            raise ReservationValidationError("requested_rooms must be an integer")
        if requested_rooms < 1:
            raise ReservationValidationError("requested_rooms must be at least 1")

        resolved_pool = self._settings.resolve_pool(pool)
        capacity = self._settings.capacity_for(resolved_pool)
        range_start = to_canonical_day(start)
        range_end = to_canonical_day(end_exclusive)

        if range_start >= range_end:
            reservations: list[Reservation] = []
        else:
            reservations = self._store.query_overlapping(
                resolved_pool,
                range_start,
                range_end,
                exclude_ids=tuple(exclude_ids),
            )

        result = self.evaluate(
            reservations,
            range_start,
            range_end,
            requested_rooms,
            pool=resolved_pool,
            capacity=capacity,
            counted_statuses=counted_statuses,
        )
        logger.debug(
            "Availability %s..%s pool=%s requested=%s min_available=%s",
            range_start,
            range_end,
            resolved_pool,
            requested_rooms,
            result.min_available_in_range,
        )
        return result

    def day_occupancy(
        self,
        range_start: DayLike,
        range_end_inclusive: DayLike,
        pool: Optional[str] = None,
    ) -> list[DayOccupancy]:
        """Return per-tier occupancy rows for every day of a closed range."""
        resolved_pool = self._settings.resolve_pool(pool)
        capacity = self._settings.capacity_for(resolved_pool)
        start = to_canonical_day(range_start)
        end = to_canonical_day(range_end_inclusive)
        if end < start:
            raise ReservationValidationError("end must not be before start")
        if (end - start).days + 1 > self._settings.analytics_max_days:
            raise ReservationValidationError(
                f"range must not exceed {self._settings.analytics_max_days} days"
            )

        reservations = self._store.query_overlapping(
            resolved_pool, start, end + timedelta(days=1)
        )
        tiers = daily_tier_occupancy(reservations, start, end)
        return [
            DayOccupancy(
                day=day,
                confirmed=counts[ReservationStatus.CONFIRMED],
                provisional=counts[ReservationStatus.PROVISIONAL],
                capacity=capacity,
            )
            for day, counts in sorted(tiers.items())
        ]
