"""Error taxonomy shared by the reservation services."""

from __future__ import annotations

from typing import Optional


class ReservationError(Exception):
    """Base exception for reservation workflow failures."""


class ReservationValidationError(ReservationError):
    """Raised when input is malformed; always raised before any store I/O."""


class CapacityExceededError(ReservationError):
    """Raised when a read-check-write finds too few free rooms."""

    def __init__(
        self,
        requested: int,
        min_available_in_range: int,
        room_pool: Optional[str] = None,
        daily_breakdown: Optional[dict[str, int]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.requested = requested
        self.min_available_in_range = min_available_in_range
        self.room_pool = room_pool
        self.daily_breakdown = dict(daily_breakdown or {})
        super().__init__(
            message
            or (
                f"Only {min_available_in_range} rooms available in pool "
                f"'{room_pool}' for the selected period; {requested} requested"
            )
        )


class RoomCountOverCapacityError(ReservationValidationError, CapacityExceededError):
    """Raised when a room count can never fit because it exceeds pool capacity."""

    def __init__(self, requested: int, capacity: int, room_pool: Optional[str] = None) -> None:
        CapacityExceededError.__init__(
            self,
            requested=requested,
            min_available_in_range=capacity,
            room_pool=room_pool,
            message=(
                f"room_count {requested} exceeds the capacity of pool "
                f"'{room_pool}' ({capacity} rooms)"
            ),
        )


class ReservationNotFoundError(ReservationError):
    """Raised when an id/tier combination does not exist."""

    def __init__(self, reservation_id: str, status: Optional[str] = None) -> None:
        self.reservation_id = reservation_id
        self.status = status
        if status:
            detail = f"No {status} reservation with id '{reservation_id}'"
        else:
            detail = f"No reservation with id '{reservation_id}'"
        super().__init__(detail)


class StoreError(ReservationError):
    """Raised when the persistence layer fails; final state is unknown."""

    def __init__(
        self,
        operation: str,
        detail: str,
        reservation_id: Optional[str] = None,
        room_pool: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.reservation_id = reservation_id
        self.room_pool = room_pool
        context = [f"operation={operation}"]
        if reservation_id is not None:
            context.append(f"id={reservation_id}")
        if room_pool is not None:
            context.append(f"pool={room_pool}")
        super().__init__(f"Reservation store failure ({', '.join(context)}): {detail}")
