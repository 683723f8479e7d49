"""Canonical day handling.

Every date that enters the system is reduced to a `datetime.date` read as a
UTC calendar day. Aware datetimes are converted to UTC first, naive ones are
taken as UTC, and any time-of-day is floored to its day. Storage uses the
matching UTC-midnight timestamp so local-time callers cannot shift occupancy.
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timedelta, timezone
from typing import Iterator, Union

from backend.domain.errors import ReservationValidationError


DayLike = Union[date, datetime, str]


def to_canonical_day(value: DayLike) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ReservationValidationError("date value must not be empty")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return to_canonical_day(datetime.fromisoformat(text))
        except ValueError as exc:
            raise ReservationValidationError(
                f"date '{value}' must be an ISO-8601 date or timestamp"
            ) from exc
    raise ReservationValidationError(
        f"unsupported date value of type {type(value).__name__}"
    )


def to_utc_timestamp(day: date) -> str:
    """Serialize a canonical day as its UTC-midnight ISO timestamp."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc).isoformat()


def from_utc_timestamp(value: str) -> date:
    return to_canonical_day(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_count(start: date, end_exclusive: date) -> int:
    return max(0, (end_exclusive - start).days)


def iter_days(start: date, end_exclusive: date) -> Iterator[date]:
    for offset in range(day_count(start, end_exclusive)):
        yield start + timedelta(days=offset)


# Half-open range ends need a representable following day.
_LAST_YEAR = MAXYEAR - 1


def _check_year(year: int) -> None:
    if not MINYEAR <= year <= _LAST_YEAR:
        raise ReservationValidationError(
            f"year must be between {MINYEAR} and {_LAST_YEAR}"
        )


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the inclusive first and last day of a calendar month."""
    _check_year(year)
    if not 1 <= month <= 12:
        raise ReservationValidationError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_bounds(year: int) -> tuple[date, date]:
    _check_year(year)
    return date(year, 1, 1), date(year, 12, 31)
