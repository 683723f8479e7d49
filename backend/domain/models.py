"""Domain models for room pool reservations and availability."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PROVISIONAL = "provisional"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ReservationStatus"]:
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "pencil":
                return cls.PROVISIONAL
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class ReservationCategory(str, Enum):
    OPEN_LDP = "OPEN_LDP"
    CUSTOM_LDP = "CUSTOM_LDP"
    OPEN_MDP = "OPEN_MDP"
    CTP = "CTP"
    INSTITUTIONAL_BOOKINGS = "INSTITUTIONAL_BOOKINGS"
    OTHER_BOOKINGS = "OTHER_BOOKINGS"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def requires_qualifier(self) -> bool:
        return self in (
            ReservationCategory.INSTITUTIONAL_BOOKINGS,
            ReservationCategory.OTHER_BOOKINGS,
        )


_CATEGORY_LABELS = {
    ReservationCategory.OPEN_LDP: "Open LDP",
    ReservationCategory.CUSTOM_LDP: "Custom LDP",
    ReservationCategory.OPEN_MDP: "Open MDP",
    ReservationCategory.CTP: "CTP",
    ReservationCategory.INSTITUTIONAL_BOOKINGS: "Institutional Bookings",
    ReservationCategory.OTHER_BOOKINGS: "Other Bookings",
}


@dataclass(frozen=True)
class RoomPool:
    name: str
    capacity: int


@dataclass(frozen=True)
class ReservationDraft:
    """Caller-supplied reservation fields before id assignment."""

    title: str
    category: ReservationCategory
    start_date: date
    end_date: date
    room_count: int
    status: ReservationStatus
    room_pool: Optional[str] = None
    category_qualifier: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Reservation:
    """Persisted reservation over the half-open day range [start_date, end_date)."""

    id: str
    title: str
    category: ReservationCategory
    start_date: date
    end_date: date
    room_count: int
    status: ReservationStatus
    room_pool: str
    created_at: datetime
    category_qualifier: Optional[str] = None

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days

    def covers(self, day: date) -> bool:
        return self.start_date <= day < self.end_date

    def overlaps(self, start: date, end_exclusive: date) -> bool:
        return self.start_date < end_exclusive and start < self.end_date

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "category_qualifier": self.category_qualifier,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "room_count": self.room_count,
            "status": self.status.value,
            "room_pool": self.room_pool,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AvailabilityResult:
    is_available: bool
    min_available_in_range: int
    requested_rooms: int
    start_date: date
    end_date: date
    room_pool: str
    capacity: int
    daily_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Slot:
    start_date: date
    end_date: date
    min_available: int


@dataclass(frozen=True)
class WriteOutcome:
    reservation: Reservation
    evicted_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DayOccupancy:
    day: date
    confirmed: int
    provisional: int
    capacity: int

    @property
    def total(self) -> int:
        return self.confirmed + self.provisional

    @property
    def available(self) -> int:
        return self.capacity - self.total

    def to_dict(self) -> dict[str, str | int]:
        return {
            "day": self.day.isoformat(),
            "confirmed": self.confirmed,
            "provisional": self.provisional,
            "total": self.total,
            "available": self.available,
            "capacity": self.capacity,
        }
