"""Reservation store contract and its SQLite and in-memory implementations."""

from __future__ import annotations

import copy
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Sequence

from backend.domain.errors import ReservationNotFoundError, StoreError
from backend.domain.models import Reservation, ReservationCategory, ReservationStatus
from backend.utils.config import Settings, get_settings
from backend.utils.dates import from_utc_timestamp, to_utc_timestamp
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class ReservationStore(Protocol):
    """Operations the reservation services perform against persistence."""

    def insert(self, reservation: Reservation) -> Reservation: ...

    def update(self, reservation_id: str, reservation: Reservation) -> Reservation: ...

    def delete(self, reservation_id: str) -> None: ...

    def get(self, reservation_id: str) -> Optional[Reservation]: ...

    def query_overlapping(
        self,
        pool: str,
        range_start: date,
        range_end_exclusive: date,
        exclude_ids: Sequence[str] = (),
    ) -> list[Reservation]: ...

    def query_all(self, pool: Optional[str] = None) -> list[Reservation]: ...

    def transaction(self): ...

    def clear(self) -> int: ...


def _sort_key(reservation: Reservation) -> tuple[date, str]:
    return reservation.start_date, reservation.id


class SQLiteReservationStore:
    """SQLite-backed store; dates persist as UTC-midnight ISO timestamps."""

    _COLUMNS = (
        "id, title, category, category_qualifier, start_date, end_date, "
        "room_count, status, room_pool, created_at"
    )

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._local = threading.local()

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path, isolation_level=None, timeout=30.0)
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Reuse the active transaction connection, else open a short-lived one."""
        active = getattr(self._local, "connection", None)
        if active is not None:
            yield active
            return
        connection = self._open()
        try:
            yield connection
        finally:
            connection.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Serialize a read-check-write sequence behind a reserved write lock."""
        if getattr(self._local, "connection", None) is not None:
            yield
            return
        try:
            connection = self._open()
            connection.execute("BEGIN IMMEDIATE;")
        except sqlite3.Error as exc:
            raise StoreError("begin_transaction", str(exc)) from exc
        self._local.connection = connection
        try:
            yield
        except BaseException:
            connection.execute("ROLLBACK;")
            raise
        else:
            try:
                connection.execute("COMMIT;")
            except sqlite3.Error as exc:
                raise StoreError("commit", str(exc)) from exc
        finally:
            self._local.connection = None
            connection.close()

    def initialize_database(self) -> None:
        """Create persistence artifacts before API startup."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        category TEXT NOT NULL,
                        category_qualifier TEXT,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        room_count INTEGER NOT NULL CHECK (room_count > 0),
                        status TEXT NOT NULL CHECK (status IN ('confirmed', 'provisional')),
                        room_pool TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        CHECK (start_date < end_date)
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_pool_range
                    ON Reservations(room_pool, start_date, end_date);
                    """
                )
            logger.info("Reservation store initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise StoreError("initialize", str(exc)) from exc

    def _to_row(self, reservation: Reservation) -> tuple:
        return (
            reservation.title,
            reservation.category.value,
            reservation.category_qualifier,
            to_utc_timestamp(reservation.start_date),
            to_utc_timestamp(reservation.end_date),
            reservation.room_count,
            reservation.status.value,
            reservation.room_pool,
            reservation.created_at.isoformat(),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Reservation:
        return Reservation(
            id=str(row["id"]),
            title=str(row["title"]),
            category=ReservationCategory(row["category"]),
            category_qualifier=row["category_qualifier"],
            start_date=from_utc_timestamp(str(row["start_date"])),
            end_date=from_utc_timestamp(str(row["end_date"])),
            room_count=int(row["room_count"]),
            status=ReservationStatus(row["status"]),
            room_pool=str(row["room_pool"]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
        )

    def insert(self, reservation: Reservation) -> Reservation:
        try:
            with self._connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO Reservations ({self._COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (reservation.id, *self._to_row(reservation)),
                )
        except sqlite3.Error as exc:
            raise StoreError(
                "insert", str(exc), reservation.id, reservation.room_pool
            ) from exc
        return reservation

    def update(self, reservation_id: str, reservation: Reservation) -> Reservation:
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    """
                    UPDATE Reservations
                    SET title = ?,
                        category = ?,
                        category_qualifier = ?,
                        start_date = ?,
                        end_date = ?,
                        room_count = ?,
                        status = ?,
                        room_pool = ?,
                        created_at = ?
                    WHERE id = ?;
                    """,
                    (*self._to_row(reservation), reservation_id),
                )
                updated = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(
                "update", str(exc), reservation_id, reservation.room_pool
            ) from exc
        if updated == 0:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def delete(self, reservation_id: str) -> None:
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM Reservations WHERE id = ?;",
                    (reservation_id,),
                )
                deleted = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError("delete", str(exc), reservation_id) from exc
        if deleted == 0:
            raise ReservationNotFoundError(reservation_id)

    def get(self, reservation_id: str) -> Optional[Reservation]:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    f"SELECT {self._COLUMNS} FROM Reservations WHERE id = ?;",
                    (reservation_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("get", str(exc), reservation_id) from exc
        if row is None:
            return None
        return self._from_row(row)

    def query_overlapping(
        self,
        pool: str,
        range_start: date,
        range_end_exclusive: date,
        exclude_ids: Sequence[str] = (),
    ) -> list[Reservation]:
        """Return reservations in `pool` whose [start, end) intersects the range."""
        query = f"""
            SELECT {self._COLUMNS}
            FROM Reservations
            WHERE room_pool = ?
              AND start_date < ?
              AND end_date > ?
        """
        params: list[object] = [
            pool,
            to_utc_timestamp(range_end_exclusive),
            to_utc_timestamp(range_start),
        ]
        excluded = list(exclude_ids)
        if excluded:
            placeholders = ",".join("?" for _ in excluded)
            query += f" AND id NOT IN ({placeholders})"
            params.extend(excluded)
        query += " ORDER BY start_date ASC, id ASC;"
        try:
            with self._connection() as conn:
                rows = conn.execute(query, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("query_overlapping", str(exc), room_pool=pool) from exc
        return [self._from_row(row) for row in rows]

    def query_all(self, pool: Optional[str] = None) -> list[Reservation]:
        query = f"SELECT {self._COLUMNS} FROM Reservations"
        params: tuple = ()
        if pool is not None:
            query += " WHERE room_pool = ?"
            params = (pool,)
        query += " ORDER BY start_date ASC, id ASC;"
        try:
            with self._connection() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError("query_all", str(exc), room_pool=pool) from exc
        return [self._from_row(row) for row in rows]

    def clear(self) -> int:
        try:
            with self._connection() as conn:
                cursor = conn.execute("DELETE FROM Reservations;")
                removed = cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError("clear", str(exc)) from exc
        logger.info("Cleared %s reservations", removed)
        return int(removed)


class InMemoryReservationStore:
    """Process-local store; transactions hold a lock and restore on error."""

    def __init__(self, reservations: Optional[Iterable[Reservation]] = None) -> None:
        self._records: dict[str, Reservation] = {
            reservation.id: reservation for reservation in reservations or ()
        }
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = copy.copy(self._records)
            try:
                yield
            except BaseException:
                self._records = snapshot
                raise

    def insert(self, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.id in self._records:
                raise StoreError(
                    "insert",
                    "duplicate reservation id",
                    reservation.id,
                    reservation.room_pool,
                )
            self._records[reservation.id] = reservation
        return reservation

    def update(self, reservation_id: str, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation_id not in self._records:
                raise ReservationNotFoundError(reservation_id)
            self._records[reservation_id] = reservation
        return reservation

    def delete(self, reservation_id: str) -> None:
        with self._lock:
            if self._records.pop(reservation_id, None) is None:
                raise ReservationNotFoundError(reservation_id)

    def get(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._records.get(reservation_id)

    def query_overlapping(
        self,
        pool: str,
        range_start: date,
        range_end_exclusive: date,
        exclude_ids: Sequence[str] = (),
    ) -> list[Reservation]:
        excluded = set(exclude_ids)
        with self._lock:
            matches = [
                reservation
                for reservation in self._records.values()
                if reservation.room_pool == pool
                and reservation.id not in excluded
                and reservation.overlaps(range_start, range_end_exclusive)
            ]
        return sorted(matches, key=_sort_key)

    def query_all(self, pool: Optional[str] = None) -> list[Reservation]:
        with self._lock:
            matches = [
                reservation
                for reservation in self._records.values()
                if pool is None or reservation.room_pool == pool
            ]
        return sorted(matches, key=_sort_key)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records = {}
        return removed


def build_store(settings: Optional[Settings] = None) -> ReservationStore:
    """Create the configured store, initializing SQLite schema when needed."""
    resolved = settings or get_settings()
    if resolved.storage_backend == "memory":
        logger.info("Using in-memory reservation store")
        return InMemoryReservationStore()
    store = SQLiteReservationStore(resolved)
    store.initialize_database()
    return store
