"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from backend.domain.errors import ReservationValidationError
from backend.domain.models import RoomPool


DEFAULT_ROOM_POOLS = "MDC:133,TATA_HALL:60,MDC_SUITES:14"


def parse_room_pools(raw: str) -> tuple[RoomPool, ...]:
    """Parse `NAME:CAPACITY,NAME:CAPACITY` into ordered pool definitions."""
    pools: list[RoomPool] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, separator, capacity = chunk.partition(":")
        if not separator:
            raise ValueError(f"room pool '{chunk}' must follow NAME:CAPACITY format")
        try:
            parsed_capacity = int(capacity)
        except ValueError as exc:
            raise ValueError(f"room pool '{name}' capacity must be an integer") from exc
        pools.append(RoomPool(name=name.strip(), capacity=parsed_capacity))
    return tuple(pools)


@dataclass(frozen=True)
class Settings:
    app_name: str = "Room Pool Reservation Manager"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    storage_backend: str = "sqlite"
    database_path: str = "data/reservations.db"
    room_pools: tuple[RoomPool, ...] = field(
        default_factory=lambda: parse_room_pools(DEFAULT_ROOM_POOLS)
    )
    default_pool: str = "MDC"
    slot_search_max_days: int = 366
    analytics_max_days: int = 3660

    @property
    def pool_names(self) -> tuple[str, ...]:
        return tuple(pool.name for pool in self.room_pools)

    @property
    def total_capacity(self) -> int:
        return sum(pool.capacity for pool in self.room_pools)

    def resolve_pool(self, pool: Optional[str]) -> str:
        """Map an absent pool to the configured default."""
        resolved = pool or self.default_pool
        if resolved not in self.pool_names:
            raise ReservationValidationError(
                f"Unknown room pool '{resolved}'. Known pools: {', '.join(self.pool_names)}"
            )
        return resolved

    def capacity_for(self, pool: Optional[str]) -> int:
        resolved = self.resolve_pool(pool)
        for room_pool in self.room_pools:
            if room_pool.name == resolved:
                return room_pool.capacity
        raise ReservationValidationError(f"Unknown room pool '{resolved}'")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once from the process environment."""
    room_pools = parse_room_pools(os.getenv("ROOM_POOLS", DEFAULT_ROOM_POOLS))
    default_pool = os.getenv("DEFAULT_POOL") or (room_pools[0].name if room_pools else "")
    return Settings(
        app_name=os.getenv("APP_NAME", "Room Pool Reservation Manager"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        storage_backend=os.getenv("STORAGE_BACKEND", "sqlite").lower(),
        database_path=os.getenv("DATABASE_PATH", "data/reservations.db"),
        room_pools=room_pools,
        default_pool=default_pool,
        slot_search_max_days=int(os.getenv("SLOT_SEARCH_MAX_DAYS", "366")),
        analytics_max_days=int(os.getenv("ANALYTICS_MAX_DAYS", "3660")),
    )
