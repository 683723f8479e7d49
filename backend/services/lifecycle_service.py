"""Reservation create/update/delete with read-check-write capacity enforcement.

Every write runs inside `store.transaction()` and a process-local lock: the
reservation set is loaded, availability is computed, and the write happens
only if the request fits. A failed check leaves the store untouched.

Confirmed reservations outrank provisional ones. Writing a confirmed
reservation evicts every provisional reservation in the same pool whose range
overlaps it, whether or not capacity was actually short. The eviction rule
is a product policy and may change once confirmed with stakeholders.

Known limitation: the SQLite store serializes writers through
`BEGIN IMMEDIATE`; the in-memory store only serializes writers inside one
process. A store without either guarantee allows last-write-wins races.
"""

from __future__ import annotations

from dataclasses import replace
from threading import RLock
from typing import Optional
from uuid import uuid4

from backend.domain.constraints import validate_reservation_draft
from backend.domain.errors import (
    CapacityExceededError,
    ReservationNotFoundError,
    StoreError,
)
from backend.domain.models import (
    Reservation,
    ReservationDraft,
    ReservationStatus,
    WriteOutcome,
)
from backend.repository.reservation_store import ReservationStore
from backend.services.availability_service import (
    AvailabilityService,
    statuses_counted_for,
)
from backend.utils.config import Settings
from backend.utils.dates import to_canonical_day, utc_now
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class ReservationLifecycleService:
    """Single funnel for every reservation mutation."""

    def __init__(
        self,
        store: ReservationStore,
        availability_service: Optional[AvailabilityService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._availability = availability_service or AvailabilityService(
            store=store,
            settings=settings,
        )
        self._settings = settings or self._availability.settings
        self._store = store
        self._lock = RLock()

    def _normalize(self, draft: ReservationDraft) -> ReservationDraft:
        """Resolve the pool and reduce both dates to canonical days."""
        return replace(
            draft,
            room_pool=self._settings.resolve_pool(draft.room_pool),
            start_date=to_canonical_day(draft.start_date),
            end_date=to_canonical_day(draft.end_date),
            title=draft.title.strip() if isinstance(draft.title, str) else draft.title,
        )

    def _validated(self, draft: ReservationDraft) -> ReservationDraft:
        normalized = self._normalize(draft)
        validate_reservation_draft(
            normalized,
            capacity=self._settings.capacity_for(normalized.room_pool),
        )
        return normalized

    def _ensure_capacity(
        self,
        draft: ReservationDraft,
        exclude_ids: tuple[str, ...] = (),
    ) -> None:
        result = self._availability.check_range(
            draft.start_date,
            draft.end_date,
            draft.room_count,
            exclude_ids=exclude_ids,
            pool=draft.room_pool,
            counted_statuses=statuses_counted_for(draft.status),
        )
        if not result.is_available:
            logger.warning(
                "Capacity rejected %s reservation pool=%s %s..%s requested=%s min_available=%s",
                draft.status.value,
                draft.room_pool,
                draft.start_date,
                draft.end_date,
                draft.room_count,
                result.min_available_in_range,
            )
            raise CapacityExceededError(
                requested=draft.room_count,
                min_available_in_range=result.min_available_in_range,
                room_pool=draft.room_pool,
                daily_breakdown=result.daily_breakdown,
            )

    def _evict_overlapping_provisional(self, confirmed: Reservation) -> list[str]:
        """Delete provisional holds in the same pool that overlap `confirmed`."""
        overlapping = self._store.query_overlapping(
            confirmed.room_pool,
            confirmed.start_date,
            confirmed.end_date,
            exclude_ids=(confirmed.id,),
        )
        evicted: list[str] = []
        for reservation in overlapping:
            if reservation.status is not ReservationStatus.PROVISIONAL:
                continue
            self._store.delete(reservation.id)
            evicted.append(reservation.id)
        if evicted:
            logger.info(
                "Confirmed reservation %s evicted %s provisional reservation(s): %s",
                confirmed.id,
                len(evicted),
                ", ".join(evicted),
            )
        return evicted

    def create(self, draft: ReservationDraft) -> WriteOutcome:
        validated = self._validated(draft)
        try:
            with self._lock, self._store.transaction():
                self._ensure_capacity(validated)
                reservation = Reservation(
                    id=uuid4().hex,
                    title=validated.title,
                    category=validated.category,
                    category_qualifier=validated.category_qualifier,
                    start_date=validated.start_date,
                    end_date=validated.end_date,
                    room_count=validated.room_count,
                    status=validated.status,
                    room_pool=validated.room_pool,
                    created_at=utc_now(),
                )
                self._store.insert(reservation)
                evicted: list[str] = []
                if reservation.status is ReservationStatus.CONFIRMED:
                    evicted = self._evict_overlapping_provisional(reservation)
        except StoreError:
            logger.exception("Store failure while creating reservation")
            raise

        logger.info(
            "Created %s reservation %s pool=%s %s..%s rooms=%s",
            reservation.status.value,
            reservation.id,
            reservation.room_pool,
            reservation.start_date,
            reservation.end_date,
            reservation.room_count,
        )
        return WriteOutcome(reservation=reservation, evicted_ids=evicted)

    def update(
        self,
        reservation_id: str,
        original_status: ReservationStatus,
        draft: ReservationDraft,
    ) -> WriteOutcome:
        validated = self._validated(draft)
        try:
            with self._lock, self._store.transaction():
                existing = self._store.get(reservation_id)
                if existing is None or existing.status is not original_status:
                    raise ReservationNotFoundError(reservation_id, original_status.value)

                self._ensure_capacity(validated, exclude_ids=(reservation_id,))
                updated = Reservation(
                    id=reservation_id,
                    title=validated.title,
                    category=validated.category,
                    category_qualifier=validated.category_qualifier,
                    start_date=validated.start_date,
                    end_date=validated.end_date,
                    room_count=validated.room_count,
                    status=validated.status,
                    room_pool=validated.room_pool,
                    created_at=validated.created_at or existing.created_at,
                )
                self._store.update(reservation_id, updated)
                evicted: list[str] = []
                if updated.status is ReservationStatus.CONFIRMED:
                    evicted = self._evict_overlapping_provisional(updated)
        except StoreError:
            logger.exception("Store failure while updating reservation %s", reservation_id)
            raise

        logger.info(
            "Updated reservation %s (%s -> %s) pool=%s %s..%s rooms=%s",
            reservation_id,
            original_status.value,
            updated.status.value,
            updated.room_pool,
            updated.start_date,
            updated.end_date,
            updated.room_count,
        )
        return WriteOutcome(reservation=updated, evicted_ids=evicted)

    def delete(self, reservation_id: str, status: ReservationStatus) -> None:
        try:
            with self._lock, self._store.transaction():
                existing = self._store.get(reservation_id)
                if existing is None or existing.status is not status:
                    raise ReservationNotFoundError(reservation_id, status.value)
                self._store.delete(reservation_id)
        except StoreError:
            logger.exception("Store failure while deleting reservation %s", reservation_id)
            raise
        logger.info("Deleted %s reservation %s", status.value, reservation_id)

    def get(self, reservation_id: str) -> Reservation:
        reservation = self._store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def list_reservations(
        self,
        pool: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
    ) -> list[Reservation]:
        """Return reservations sorted by start date, optionally filtered."""
        resolved_pool = self._settings.resolve_pool(pool) if pool else None
        reservations = self._store.query_all(resolved_pool)
        if status is not None:
            reservations = [item for item in reservations if item.status is status]
        return sorted(reservations, key=lambda item: (item.start_date, item.id))

    def clear_all(self) -> int:
        with self._lock, self._store.transaction():
            removed = self._store.clear()
        logger.info("Cleared all reservations (%s removed)", removed)
        return removed
