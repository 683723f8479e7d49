from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from backend.domain.errors import ReservationValidationError
from backend.utils.dates import (
    day_count,
    iter_days,
    month_bounds,
    to_canonical_day,
    to_utc_timestamp,
    year_bounds,
)


def test_plain_date_is_unchanged() -> None:
    assert to_canonical_day(date(2025, 3, 10)) == date(2025, 3, 10)


def test_aware_datetime_is_converted_to_utc_day() -> None:
    # 01:30 on March 10 in UTC+05:30 is still March 9 in UTC.
    local = datetime(2025, 3, 10, 1, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert to_canonical_day(local) == date(2025, 3, 9)


def test_naive_datetime_is_floored_to_its_day() -> None:
    assert to_canonical_day(datetime(2025, 3, 10, 14, 0)) == date(2025, 3, 10)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-03-10", date(2025, 3, 10)),
        ("2025-03-10T00:00:00+00:00", date(2025, 3, 10)),
        ("2025-03-10T00:00:00Z", date(2025, 3, 10)),
        ("2025-03-10T23:30:00-02:00", date(2025, 3, 11)),
    ],
)
def test_iso_strings_are_parsed(raw: str, expected: date) -> None:
    assert to_canonical_day(raw) == expected


@pytest.mark.parametrize("raw", ["", "10/03/2025", "not-a-date"])
def test_malformed_strings_raise_validation_error(raw: str) -> None:
    with pytest.raises(ReservationValidationError):
        to_canonical_day(raw)


def test_unsupported_type_raises_validation_error() -> None:
    with pytest.raises(ReservationValidationError):
        to_canonical_day(20250310)  # type: ignore[arg-type]


def test_utc_timestamp_round_trips_through_canonical_day() -> None:
    stamp = to_utc_timestamp(date(2025, 3, 10))
    assert stamp == "2025-03-10T00:00:00+00:00"
    assert to_canonical_day(stamp) == date(2025, 3, 10)


def test_half_open_iteration() -> None:
    days = list(iter_days(date(2025, 3, 10), date(2025, 3, 12)))
    assert days == [date(2025, 3, 10), date(2025, 3, 11)]
    assert day_count(date(2025, 3, 12), date(2025, 3, 10)) == 0


def test_month_and_year_bounds() -> None:
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert year_bounds(2025) == (date(2025, 1, 1), date(2025, 12, 31))
    with pytest.raises(ReservationValidationError):
        month_bounds(2025, 13)


@pytest.mark.parametrize("year", [0, -1, 9999, 10000])
def test_bounds_reject_unsupported_years(year: int) -> None:
    with pytest.raises(ReservationValidationError, match="year"):
        year_bounds(year)
    with pytest.raises(ReservationValidationError, match="year"):
        month_bounds(year, 6)
