"""Tests for reservation draft and settings validation."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from backend.domain.constraints import validate_reservation_draft, validate_settings
from backend.domain.errors import (
    CapacityExceededError,
    ReservationValidationError,
    RoomCountOverCapacityError,
)
from backend.domain.models import (
    ReservationCategory,
    ReservationDraft,
    ReservationStatus,
    RoomPool,
)
from backend.utils.config import Settings, parse_room_pools


def valid_draft(**overrides) -> ReservationDraft:
    """Return a valid baseline draft, optionally overriding fields."""
    defaults = {
        "title": "Leadership Programme",
        "category": ReservationCategory.OPEN_LDP,
        "start_date": date(2025, 6, 1),
        "end_date": date(2025, 6, 3),
        "room_count": 4,
        "status": ReservationStatus.PROVISIONAL,
        "room_pool": "MAIN",
    }
    defaults.update(overrides)
    return ReservationDraft(**defaults)


def valid_settings(**overrides) -> Settings:
    defaults = {
        "room_pools": (RoomPool("MAIN", 10), RoomPool("ANNEX", 4)),
        "default_pool": "MAIN",
    }
    defaults.update(overrides)
    return Settings(**defaults)


# --- Baseline pass ---

def test_valid_draft_passes() -> None:
    validate_reservation_draft(valid_draft(), capacity=10)


def test_room_count_equal_to_capacity_passes() -> None:
    """Exact upper boundary must pass."""
    validate_reservation_draft(valid_draft(room_count=10), capacity=10)


# --- title ---

@pytest.mark.parametrize("title", ["", "   "])
def test_blank_title_raises(title: str) -> None:
    with pytest.raises(ReservationValidationError, match="title"):
        validate_reservation_draft(valid_draft(title=title), capacity=10)


# --- room_count ---

@pytest.mark.parametrize("room_count", [0, -3])
def test_non_positive_room_count_raises(room_count: int) -> None:
    with pytest.raises(ReservationValidationError, match="at least 1"):
        validate_reservation_draft(valid_draft(room_count=room_count), capacity=10)


def test_room_count_over_capacity_is_both_validation_and_capacity_error() -> None:
    with pytest.raises(RoomCountOverCapacityError) as excinfo:
        validate_reservation_draft(valid_draft(room_count=11), capacity=10)

    assert isinstance(excinfo.value, ReservationValidationError)
    assert isinstance(excinfo.value, CapacityExceededError)
    assert excinfo.value.requested == 11
    assert excinfo.value.min_available_in_range == 10


def test_boolean_room_count_raises() -> None:
    with pytest.raises(ReservationValidationError):
        validate_reservation_draft(valid_draft(room_count=True), capacity=10)


# --- date range ---

def test_inverted_range_raises() -> None:
    with pytest.raises(ReservationValidationError, match="after start_date"):
        validate_reservation_draft(
            valid_draft(start_date=date(2025, 6, 3), end_date=date(2025, 6, 1)),
            capacity=10,
        )


def test_zero_night_range_raises() -> None:
    with pytest.raises(ReservationValidationError):
        validate_reservation_draft(
            valid_draft(start_date=date(2025, 6, 1), end_date=date(2025, 6, 1)),
            capacity=10,
        )


# --- category qualifier ---

@pytest.mark.parametrize(
    "category",
    [ReservationCategory.OTHER_BOOKINGS, ReservationCategory.INSTITUTIONAL_BOOKINGS],
)
def test_qualifier_required_for_open_ended_categories(category: ReservationCategory) -> None:
    with pytest.raises(ReservationValidationError, match="category_qualifier"):
        validate_reservation_draft(valid_draft(category=category), capacity=10)

    validate_reservation_draft(
        valid_draft(category=category, category_qualifier="Alumni meet"),
        capacity=10,
    )


def test_qualifier_not_required_for_programmes() -> None:
    validate_reservation_draft(valid_draft(category=ReservationCategory.CTP), capacity=10)


def test_string_status_raises() -> None:
    with pytest.raises(ReservationValidationError, match="status"):
        validate_reservation_draft(valid_draft(status="tentative"), capacity=10)


# --- status parsing ---

def test_pencil_alias_maps_to_provisional() -> None:
    assert ReservationStatus("pencil") is ReservationStatus.PROVISIONAL
    assert ReservationStatus("Confirmed") is ReservationStatus.CONFIRMED


def test_unknown_status_value_raises() -> None:
    with pytest.raises(ValueError):
        ReservationStatus("cancelled")


# --- settings ---

def test_valid_settings_pass() -> None:
    validate_settings(valid_settings())


def test_settings_reject_duplicate_pools() -> None:
    with pytest.raises(ValueError, match="unique"):
        validate_settings(
            valid_settings(room_pools=(RoomPool("MAIN", 10), RoomPool("MAIN", 4)))
        )


def test_settings_reject_non_positive_capacity() -> None:
    with pytest.raises(ValueError, match="capacity"):
        validate_settings(valid_settings(room_pools=(RoomPool("MAIN", 0),)))


def test_settings_reject_unknown_default_pool() -> None:
    with pytest.raises(ValueError, match="default_pool"):
        validate_settings(valid_settings(default_pool="WEST"))


def test_settings_reject_unknown_backend() -> None:
    with pytest.raises(ValueError, match="storage_backend"):
        validate_settings(replace(valid_settings(), storage_backend="redis"))


def test_parse_room_pools_preserves_order() -> None:
    pools = parse_room_pools("MDC:133, TATA_HALL:60 ,MDC_SUITES:14")
    assert pools == (
        RoomPool("MDC", 133),
        RoomPool("TATA_HALL", 60),
        RoomPool("MDC_SUITES", 14),
    )


def test_parse_room_pools_rejects_malformed_entry() -> None:
    with pytest.raises(ValueError):
        parse_room_pools("MDC")


def test_capacity_lookup_and_unknown_pool() -> None:
    settings = valid_settings()
    assert settings.capacity_for(None) == 10
    assert settings.capacity_for("ANNEX") == 4
    assert settings.total_capacity == 14
    with pytest.raises(ReservationValidationError, match="Unknown room pool"):
        settings.capacity_for("WEST")
