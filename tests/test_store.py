from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from backend.domain.errors import ReservationNotFoundError, StoreError
from backend.domain.models import Reservation, ReservationCategory, ReservationStatus
from backend.repository.reservation_store import (
    InMemoryReservationStore,
    SQLiteReservationStore,
    build_store,
)
from backend.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    return replace(get_settings(), database_path=tmp_path / filename)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryReservationStore()
    sqlite_store = SQLiteReservationStore(_build_test_settings(tmp_path, "store.db"))
    sqlite_store.initialize_database()
    return sqlite_store


def _reservation(reservation_id, start, end, pool="MDC", **overrides) -> Reservation:
    fields = {
        "id": reservation_id,
        "title": f"Booking {reservation_id}",
        "category": ReservationCategory.INSTITUTIONAL_BOOKINGS,
        "category_qualifier": "University partner",
        "start_date": start,
        "end_date": end,
        "room_count": 3,
        "status": ReservationStatus.PROVISIONAL,
        "room_pool": pool,
        "created_at": datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return Reservation(**fields)


def test_insert_and_get_round_trip(store) -> None:
    reservation = _reservation("r1", date(2025, 6, 1), date(2025, 6, 3))

    store.insert(reservation)

    assert store.get("r1") == reservation
    assert store.get("missing") is None


def test_duplicate_insert_raises_store_error(store) -> None:
    store.insert(_reservation("r1", date(2025, 6, 1), date(2025, 6, 3)))

    with pytest.raises(StoreError):
        store.insert(_reservation("r1", date(2025, 6, 5), date(2025, 6, 7)))


def test_query_overlapping_uses_half_open_ranges(store) -> None:
    store.insert(_reservation("before", date(2025, 5, 28), date(2025, 6, 1)))
    store.insert(_reservation("inside", date(2025, 6, 2), date(2025, 6, 4)))
    store.insert(_reservation("spanning", date(2025, 5, 1), date(2025, 7, 1)))
    store.insert(_reservation("after", date(2025, 6, 5), date(2025, 6, 8)))
    store.insert(_reservation("other_pool", date(2025, 6, 2), date(2025, 6, 4), pool="TATA_HALL"))

    overlapping = store.query_overlapping("MDC", date(2025, 6, 1), date(2025, 6, 5))

    assert [item.id for item in overlapping] == ["spanning", "inside"]


def test_query_overlapping_honours_exclusions(store) -> None:
    store.insert(_reservation("a", date(2025, 6, 1), date(2025, 6, 3)))
    store.insert(_reservation("b", date(2025, 6, 1), date(2025, 6, 3)))

    overlapping = store.query_overlapping(
        "MDC", date(2025, 6, 1), date(2025, 6, 3), exclude_ids=("a",)
    )

    assert [item.id for item in overlapping] == ["b"]


def test_update_and_delete_missing_raise_not_found(store) -> None:
    ghost = _reservation("ghost", date(2025, 6, 1), date(2025, 6, 3))

    with pytest.raises(ReservationNotFoundError):
        store.update("ghost", ghost)
    with pytest.raises(ReservationNotFoundError):
        store.delete("ghost")


def test_update_replaces_fields(store) -> None:
    store.insert(_reservation("r1", date(2025, 6, 1), date(2025, 6, 3)))
    changed = _reservation(
        "r1",
        date(2025, 6, 2),
        date(2025, 6, 6),
        room_count=7,
        status=ReservationStatus.CONFIRMED,
    )

    store.update("r1", changed)

    assert store.get("r1") == changed


def test_transaction_rolls_back_on_error(store) -> None:
    store.insert(_reservation("keep", date(2025, 6, 1), date(2025, 6, 3)))

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert(_reservation("discard", date(2025, 6, 4), date(2025, 6, 6)))
            store.delete("keep")
            raise RuntimeError("abort")

    assert [item.id for item in store.query_all()] == ["keep"]


def test_query_all_filters_by_pool_and_clear(store) -> None:
    store.insert(_reservation("a", date(2025, 6, 1), date(2025, 6, 3)))
    store.insert(_reservation("b", date(2025, 6, 1), date(2025, 6, 3), pool="MDC_SUITES"))

    assert [item.id for item in store.query_all("MDC_SUITES")] == ["b"]
    assert store.clear() == 2
    assert store.query_all() == []


def test_sqlite_dates_persist_as_utc_midnight(tmp_path) -> None:
    settings = _build_test_settings(tmp_path, "format.db")
    store = SQLiteReservationStore(settings)
    store.initialize_database()
    store.insert(_reservation("r1", date(2025, 6, 1), date(2025, 6, 3)))

    with sqlite3.connect(settings.database_path) as conn:
        row = conn.execute(
            "SELECT start_date, end_date FROM Reservations WHERE id = ?;", ("r1",)
        ).fetchone()

    assert row == ("2025-06-01T00:00:00+00:00", "2025-06-03T00:00:00+00:00")


def test_sqlite_schema_rejects_inverted_range(tmp_path) -> None:
    store = SQLiteReservationStore(_build_test_settings(tmp_path, "checks.db"))
    store.initialize_database()

    with pytest.raises(StoreError):
        store.insert(_reservation("bad", date(2025, 6, 3), date(2025, 6, 1)))


def test_build_store_selects_backend(tmp_path) -> None:
    memory_settings = replace(_build_test_settings(tmp_path, "unused.db"), storage_backend="memory")
    sqlite_settings = _build_test_settings(tmp_path, "built.db")

    assert isinstance(build_store(memory_settings), InMemoryReservationStore)
    built = build_store(sqlite_settings)
    assert isinstance(built, SQLiteReservationStore)
    assert built.query_all() == []
