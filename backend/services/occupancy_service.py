"""Pure per-day occupancy calculation over half-open reservation ranges.

All overlap logic lives here. Availability checks, slot search, the calendar
feed and analytics call these functions rather than re-deriving which days a
reservation covers.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

import numpy as np

from backend.domain.models import Reservation, ReservationStatus
from backend.utils.dates import DayLike, to_canonical_day


def occupancy_array(
    reservations: Iterable[Reservation],
    range_start: DayLike,
    range_end_inclusive: DayLike,
    statuses: Optional[Iterable[ReservationStatus]] = None,
) -> np.ndarray:
    """Return rooms booked per day as an int64 array aligned to `range_start`.

    Each reservation adds `room_count` at its clipped start offset and removes
    it at its clipped exclusive end offset; the cumulative sum of that
    difference array is the daily booking count.
    """
    start = to_canonical_day(range_start)
    end = to_canonical_day(range_end_inclusive)
    if end < start:
        return np.zeros(0, dtype=np.int64)

    day_total = (end - start).days + 1
    counted = None if statuses is None else frozenset(statuses)
    diff = np.zeros(day_total + 1, dtype=np.int64)
    for reservation in reservations:
        if counted is not None and reservation.status not in counted:
            continue
        first = (to_canonical_day(reservation.start_date) - start).days
        stop = (to_canonical_day(reservation.end_date) - start).days
        first = max(first, 0)
        stop = min(stop, day_total)
        if first >= stop:
            continue
        diff[first] += reservation.room_count
        diff[stop] -= reservation.room_count
    return np.cumsum(diff[:-1])


def daily_occupancy(
    reservations: Iterable[Reservation],
    range_start: DayLike,
    range_end_inclusive: DayLike,
    statuses: Optional[Iterable[ReservationStatus]] = None,
) -> dict[date, int]:
    """Map every day of the closed range to the rooms booked on it."""
    start = to_canonical_day(range_start)
    booked = occupancy_array(reservations, start, range_end_inclusive, statuses)
    return {
        start + timedelta(days=offset): int(value)
        for offset, value in enumerate(booked)
    }


def daily_tier_occupancy(
    reservations: Iterable[Reservation],
    range_start: DayLike,
    range_end_inclusive: DayLike,
) -> dict[date, dict[ReservationStatus, int]]:
    """Split daily occupancy by tier for calendar and analytics views."""
    materialized = list(reservations)
    start = to_canonical_day(range_start)
    per_tier = {
        status: occupancy_array(materialized, start, range_end_inclusive, (status,))
        for status in ReservationStatus
    }
    day_total = len(per_tier[ReservationStatus.CONFIRMED])
    return {
        start + timedelta(days=offset): {
            status: int(per_tier[status][offset]) for status in ReservationStatus
        }
        for offset in range(day_total)
    }
