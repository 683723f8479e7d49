"""Read-only occupancy analytics over stored reservations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from backend.domain.errors import ReservationValidationError
from backend.domain.models import (
    DayOccupancy,
    Reservation,
    ReservationCategory,
    ReservationStatus,
)
from backend.repository.reservation_store import ReservationStore, build_store
from backend.services.occupancy_service import daily_tier_occupancy, occupancy_array
from backend.utils.config import Settings, get_settings
from backend.utils.dates import DayLike, month_bounds, to_canonical_day, year_bounds
from backend.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class CategoryStats:
    category: ReservationCategory
    confirmed_room_days: int
    provisional_room_days: int

    @property
    def total_room_days(self) -> int:
        return self.confirmed_room_days + self.provisional_room_days

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "label": self.category.label,
            "confirmed_room_days": self.confirmed_room_days,
            "provisional_room_days": self.provisional_room_days,
            "total_room_days": self.total_room_days,
        }


@dataclass(frozen=True)
class PeriodSummary:
    range_start: date
    range_end: date
    room_pool: Optional[str]
    capacity: int
    total_reservations: int
    confirmed_room_days: int
    provisional_room_days: int
    category_breakdown: list[CategoryStats] = field(default_factory=list)

    @property
    def days_in_range(self) -> int:
        return (self.range_end - self.range_start).days + 1

    @property
    def total_room_days_booked(self) -> int:
        return self.confirmed_room_days + self.provisional_room_days

    @property
    def capacity_room_days(self) -> int:
        return self.capacity * self.days_in_range

    @property
    def occupancy_rate(self) -> float:
        if self.capacity_room_days <= 0:
            return 0.0
        return float(self.total_room_days_booked / self.capacity_room_days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "range_start": self.range_start.isoformat(),
            "range_end": self.range_end.isoformat(),
            "room_pool": self.room_pool,
            "capacity": self.capacity,
            "days_in_range": self.days_in_range,
            "total_reservations": self.total_reservations,
            "confirmed_room_days": self.confirmed_room_days,
            "provisional_room_days": self.provisional_room_days,
            "total_room_days_booked": self.total_room_days_booked,
            "capacity_room_days": self.capacity_room_days,
            "occupancy_rate": self.occupancy_rate,
            "category_breakdown": [item.to_dict() for item in self.category_breakdown],
        }


class AnalyticsService:
    """Rolls stored reservations up into day, month, year and custom views."""

    def __init__(
        self,
        store: Optional[ReservationStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or build_store(self._settings)

    def _scope(self, pool: Optional[str]) -> tuple[Optional[str], int]:
        if pool is None:
            return None, self._settings.total_capacity
        resolved = self._settings.resolve_pool(pool)
        return resolved, self._settings.capacity_for(resolved)

    def _load(
        self,
        pool: Optional[str],
        range_start: date,
        range_end: date,
    ) -> list[Reservation]:
        end_exclusive = range_end + timedelta(days=1)
        pools = [pool] if pool is not None else list(self._settings.pool_names)
        return [
            reservation
            for name in pools
            for reservation in self._store.query_overlapping(name, range_start, end_exclusive)
        ]

    def _build_frame(
        self,
        reservations: list[Reservation],
        range_start: date,
        range_end: date,
    ) -> pd.DataFrame:
        """One row per category and tier, summed from the daily occupancy array."""
        by_category: dict[ReservationCategory, list[Reservation]] = {}
        for reservation in reservations:
            by_category.setdefault(reservation.category, []).append(reservation)

        rows = []
        for category, members in by_category.items():
            for status in ReservationStatus:
                booked = occupancy_array(members, range_start, range_end, statuses=(status,))
                rows.append(
                    {
                        "category": category.value,
                        "status": status.value,
                        "room_days": int(booked.sum()),
                    }
                )
        return pd.DataFrame(rows, columns=["category", "status", "room_days"])

    def summarize(
        self,
        range_start: DayLike,
        range_end_inclusive: DayLike,
        pool: Optional[str] = None,
    ) -> PeriodSummary:
        start = to_canonical_day(range_start)
        end = to_canonical_day(range_end_inclusive)
        if end < start:
            raise ReservationValidationError("range end must not be before range start")
        if (end - start).days + 1 > self._settings.analytics_max_days:
            raise ReservationValidationError(
                f"analytics range must not exceed {self._settings.analytics_max_days} days"
            )

        resolved_pool, capacity = self._scope(pool)
        reservations = self._load(resolved_pool, start, end)
        frame = self._build_frame(reservations, start, end)

        if frame.empty:
            return PeriodSummary(
                range_start=start,
                range_end=end,
                room_pool=resolved_pool,
                capacity=capacity,
                total_reservations=0,
                confirmed_room_days=0,
                provisional_room_days=0,
            )

        by_status = frame.groupby("status")["room_days"].sum()
        by_category = frame.pivot_table(
            index="category",
            columns="status",
            values="room_days",
            aggfunc="sum",
            fill_value=0,
        )

        breakdown: list[CategoryStats] = []
        for category in ReservationCategory:
            if category.value not in by_category.index:
                continue
            row = by_category.loc[category.value]
            breakdown.append(
                CategoryStats(
                    category=category,
                    confirmed_room_days=int(row.get(ReservationStatus.CONFIRMED.value, 0)),
                    provisional_room_days=int(row.get(ReservationStatus.PROVISIONAL.value, 0)),
                )
            )

        summary = PeriodSummary(
            range_start=start,
            range_end=end,
            room_pool=resolved_pool,
            capacity=capacity,
            total_reservations=len({reservation.id for reservation in reservations}),
            confirmed_room_days=int(by_status.get(ReservationStatus.CONFIRMED.value, 0)),
            provisional_room_days=int(by_status.get(ReservationStatus.PROVISIONAL.value, 0)),
            category_breakdown=breakdown,
        )
        logger.debug(
            "Analytics %s..%s pool=%s reservations=%s occupancy=%.4f",
            start,
            end,
            resolved_pool,
            summary.total_reservations,
            summary.occupancy_rate,
        )
        return summary

    def day_summary(self, day: DayLike, pool: Optional[str] = None) -> DayOccupancy:
        target = to_canonical_day(day)
        resolved_pool, capacity = self._scope(pool)
        counts = daily_tier_occupancy(
            self._load(resolved_pool, target, target),
            target,
            target,
        )[target]
        return DayOccupancy(
            day=target,
            confirmed=counts[ReservationStatus.CONFIRMED],
            provisional=counts[ReservationStatus.PROVISIONAL],
            capacity=capacity,
        )

    def month_summary(self, year: int, month: int, pool: Optional[str] = None) -> PeriodSummary:
        first_day, last_day = month_bounds(year, month)
        return self.summarize(first_day, last_day, pool)

    def year_summary(self, year: int, pool: Optional[str] = None) -> dict[str, Any]:
        first_day, last_day = year_bounds(year)
        return {
            "summary": self.summarize(first_day, last_day, pool),
            "monthly": [
                self.month_summary(year, month, pool) for month in range(1, 13)
            ],
        }
