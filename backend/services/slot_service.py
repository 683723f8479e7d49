"""Search for contiguous date ranges that can hold a room request."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from backend.domain.errors import ReservationValidationError
from backend.domain.models import ReservationStatus, Slot
from backend.services.availability_service import AvailabilityService
from backend.services.occupancy_service import occupancy_array
from backend.utils.config import Settings
from backend.utils.dates import DayLike, to_canonical_day
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class SlotFinderService:
    """Enumerates candidate stays of a fixed length inside a search window.

    The window is loaded and its daily occupancy computed once; a sliding
    minimum over the free-room array gives the same answer as running
    `check_range` for every candidate start day. Results are a snapshot and a
    later create still re-validates.
    """

    def __init__(self, availability_service: AvailabilityService) -> None:
        self._availability = availability_service

    @property
    def _settings(self) -> Settings:
        return self._availability.settings

    def find_slots(
        self,
        earliest_check_in: DayLike,
        latest_check_out_by: DayLike,
        nights: int,
        requested_rooms: int,
        pool: Optional[str] = None,
        *,
        counted_statuses: Optional[Iterable[ReservationStatus]] = None,
    ) -> list[Slot]:
        if isinstance(requested_rooms, bool) or not isinstance(requested_rooms, int):
            raise ReservationValidationError("requested_rooms must be an integer")
        if requested_rooms < 1:
            raise ReservationValidationError("requested_rooms must be at least 1")

        resolved_pool = self._settings.resolve_pool(pool)
        capacity = self._settings.capacity_for(resolved_pool)
        window_start = to_canonical_day(earliest_check_in)
        window_end = to_canonical_day(latest_check_out_by)

        if nights < 1 or window_start >= window_end:
            return []
        window_days = (window_end - window_start).days
        if window_days > self._settings.slot_search_max_days:
            raise ReservationValidationError(
                f"search window must not exceed {self._settings.slot_search_max_days} days"
            )
        if nights > window_days:
            return []

        reservations = self._availability.store.query_overlapping(
            resolved_pool, window_start, window_end
        )
        booked = occupancy_array(
            reservations,
            window_start,
            window_end - timedelta(days=1),
            statuses=counted_statuses,
        )
        available = capacity - booked
        window_minimums = sliding_window_view(available, nights).min(axis=1)
        matching_offsets = np.flatnonzero(window_minimums >= requested_rooms)

        slots = [
            Slot(
                start_date=window_start + timedelta(days=int(offset)),
                end_date=window_start + timedelta(days=int(offset) + nights),
                min_available=int(window_minimums[offset]),
            )
            for offset in matching_offsets
        ]
        logger.debug(
            "Slot search %s..%s pool=%s nights=%s rooms=%s found=%s",
            window_start,
            window_end,
            resolved_pool,
            nights,
            requested_rooms,
            len(slots),
        )
        return slots
