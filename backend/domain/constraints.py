"""Domain-level validation rules for reservations and pool configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from backend.domain.errors import ReservationValidationError, RoomCountOverCapacityError
from backend.domain.models import ReservationCategory, ReservationDraft, ReservationStatus

if TYPE_CHECKING:
    from backend.utils.config import Settings


def validate_settings(settings: "Settings") -> None:
    if not settings.room_pools:
        raise ValueError("at least one room pool must be configured")
    names = [pool.name for pool in settings.room_pools]
    if len(set(names)) != len(names):
        raise ValueError("room pool names must be unique")
    for pool in settings.room_pools:
        if not pool.name:
            raise ValueError("room pool name must be non-empty")
        if pool.capacity <= 0:
            raise ValueError(f"room pool '{pool.name}' capacity must be > 0")
    if settings.default_pool not in names:
        raise ValueError("default_pool must name a configured room pool")
    if settings.slot_search_max_days <= 0:
        raise ValueError("slot_search_max_days must be > 0")
    if settings.analytics_max_days <= 0:
        raise ValueError("analytics_max_days must be > 0")
    if settings.storage_backend not in {"sqlite", "memory"}:
        raise ValueError("storage_backend must be 'sqlite' or 'memory'")


def validate_reservation_draft(draft: ReservationDraft, capacity: int) -> None:
    """Reject malformed drafts before the store is touched."""
    if not isinstance(draft.status, ReservationStatus):
        raise ReservationValidationError("status must be 'confirmed' or 'provisional'")
    if not isinstance(draft.category, ReservationCategory):
        raise ReservationValidationError("category must be a known program type")
    if not draft.title or not draft.title.strip():
        raise ReservationValidationError("title is required")
    if draft.category.requires_qualifier and not (
        draft.category_qualifier and draft.category_qualifier.strip()
    ):
        raise ReservationValidationError(
            f"category_qualifier is required for {draft.category.label}"
        )
    if isinstance(draft.room_count, bool) or not isinstance(draft.room_count, int):
        raise ReservationValidationError("room_count must be an integer")
    if draft.room_count < 1:
        raise ReservationValidationError("room_count must be at least 1")
    if draft.start_date >= draft.end_date:
        raise ReservationValidationError("end_date must be after start_date")
    if draft.room_count > capacity:
        raise RoomCountOverCapacityError(
            requested=draft.room_count,
            capacity=capacity,
            room_pool=draft.room_pool,
        )
