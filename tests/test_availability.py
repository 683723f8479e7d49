from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from backend.domain.errors import ReservationValidationError
from backend.domain.models import (
    Reservation,
    ReservationCategory,
    ReservationStatus,
    RoomPool,
)
from backend.repository.reservation_store import InMemoryReservationStore
from backend.services.availability_service import AvailabilityService, statuses_counted_for
from backend.utils.config import get_settings


def _build_test_settings():
    return replace(
        get_settings(),
        storage_backend="memory",
        room_pools=(RoomPool("MAIN", 10), RoomPool("ANNEX", 4)),
        default_pool="MAIN",
    )


def _reservation(reservation_id, start, end, rooms, status, pool="MAIN") -> Reservation:
    return Reservation(
        id=reservation_id,
        title=f"Booking {reservation_id}",
        category=ReservationCategory.CUSTOM_LDP,
        start_date=start,
        end_date=end,
        room_count=rooms,
        status=status,
        room_pool=pool,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


def _build_service(*reservations: Reservation) -> AvailabilityService:
    store = InMemoryReservationStore(reservations)
    return AvailabilityService(store=store, settings=_build_test_settings())


def test_confirmed_booking_leaves_four_rooms() -> None:
    service = _build_service(
        _reservation("a", date(2025, 6, 1), date(2025, 6, 3), 6, ReservationStatus.CONFIRMED)
    )

    result = service.check_range(date(2025, 6, 1), date(2025, 6, 3), 5)

    assert result.is_available is False
    assert result.min_available_in_range == 4
    assert result.daily_breakdown == {"2025-06-01": 4, "2025-06-02": 4}
    assert result.room_pool == "MAIN"
    assert result.capacity == 10


def test_default_check_counts_both_tiers() -> None:
    service = _build_service(
        _reservation("a", date(2025, 6, 1), date(2025, 6, 3), 6, ReservationStatus.CONFIRMED),
        _reservation("b", date(2025, 6, 2), date(2025, 6, 4), 3, ReservationStatus.PROVISIONAL),
    )

    combined = service.check_range(date(2025, 6, 1), date(2025, 6, 4), 1)
    confirmed_only = service.check_range(
        date(2025, 6, 1),
        date(2025, 6, 4),
        1,
        counted_statuses=statuses_counted_for(ReservationStatus.CONFIRMED),
    )

    assert combined.daily_breakdown == {
        "2025-06-01": 4,
        "2025-06-02": 1,
        "2025-06-03": 7,
    }
    assert combined.min_available_in_range == 1
    assert confirmed_only.min_available_in_range == 4


def test_excluded_reservation_is_ignored() -> None:
    service = _build_service(
        _reservation("a", date(2025, 6, 1), date(2025, 6, 3), 6, ReservationStatus.CONFIRMED)
    )

    result = service.check_range(date(2025, 6, 1), date(2025, 6, 3), 10, exclude_ids=["a"])

    assert result.is_available is True
    assert result.min_available_in_range == 10


def test_pools_are_independent() -> None:
    service = _build_service(
        _reservation("a", date(2025, 6, 1), date(2025, 6, 3), 10, ReservationStatus.CONFIRMED)
    )

    annex = service.check_range(date(2025, 6, 1), date(2025, 6, 3), 4, pool="ANNEX")

    assert annex.is_available is True
    assert annex.min_available_in_range == 4


def test_inverted_range_fails_fast() -> None:
    service = _build_service()

    result = service.check_range(date(2025, 6, 3), date(2025, 6, 1), 1)

    assert result.is_available is False
    assert result.min_available_in_range == 0
    assert result.daily_breakdown == {}


@pytest.mark.parametrize("rooms", [0, -1])
def test_non_positive_request_is_rejected(rooms: int) -> None:
    with pytest.raises(ReservationValidationError):
        _build_service().check_range(date(2025, 6, 1), date(2025, 6, 3), rooms)


def test_unknown_pool_is_rejected() -> None:
    with pytest.raises(ReservationValidationError):
        _build_service().check_range(date(2025, 6, 1), date(2025, 6, 3), 1, pool="WEST")


def test_day_occupancy_reports_tiers_per_day() -> None:
    service = _build_service(
        _reservation("a", date(2025, 6, 1), date(2025, 6, 3), 6, ReservationStatus.CONFIRMED),
        _reservation("b", date(2025, 6, 2), date(2025, 6, 3), 2, ReservationStatus.PROVISIONAL),
    )

    rows = service.day_occupancy(date(2025, 6, 1), date(2025, 6, 3))

    assert [row.to_dict() for row in rows] == [
        {"day": "2025-06-01", "confirmed": 6, "provisional": 0, "total": 6, "available": 4, "capacity": 10},
        {"day": "2025-06-02", "confirmed": 6, "provisional": 2, "total": 8, "available": 2, "capacity": 10},
        {"day": "2025-06-03", "confirmed": 0, "provisional": 0, "total": 0, "available": 10, "capacity": 10},
    ]


def test_day_occupancy_rejects_inverted_range() -> None:
    with pytest.raises(ReservationValidationError):
        _build_service().day_occupancy(date(2025, 6, 3), date(2025, 6, 1))
