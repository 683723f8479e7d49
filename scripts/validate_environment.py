#!/usr/bin/env python3
"""Validate local reservation manager environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.constraints import validate_settings
from backend.domain.models import ReservationCategory, ReservationDraft, ReservationStatus
from backend.repository.reservation_store import SQLiteReservationStore
from backend.services.availability_service import AvailabilityService
from backend.services.lifecycle_service import ReservationLifecycleService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="reservations-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import PackageNotFoundError, version

    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        base_settings = get_settings()

        # CHECK 3: Room pool configuration
        try:
            validate_settings(base_settings)
            ok, line = _print_result(
                "Room pools",
                True,
                ": " + ", ".join(
                    f"{pool.name}={pool.capacity}" for pool in base_settings.room_pools
                ),
            )
        except ValueError as exc:
            ok, line = _print_result("Room pools", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        validation_settings = replace(
            base_settings,
            database_path=str(Path(temp_dir) / "reservations_validation.db"),
        )
        store = SQLiteReservationStore(validation_settings)

        # CHECK 4: Database initialization
        try:
            store.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Read-check-write round trip
        try:
            availability = AvailabilityService(store=store, settings=validation_settings)
            lifecycle = ReservationLifecycleService(
                store=store,
                availability_service=availability,
                settings=validation_settings,
            )
            outcome = lifecycle.create(
                ReservationDraft(
                    title="Environment check",
                    category=ReservationCategory.CTP,
                    start_date=date(2030, 1, 1),
                    end_date=date(2030, 1, 3),
                    room_count=1,
                    status=ReservationStatus.PROVISIONAL,
                )
            )
            result = availability.check_range(date(2030, 1, 1), date(2030, 1, 3), 1)
            capacity = validation_settings.capacity_for(None)
            if result.min_available_in_range != capacity - 1:
                raise RuntimeError(
                    f"expected {capacity - 1} rooms free, got {result.min_available_in_range}"
                )
            lifecycle.delete(outcome.reservation.id, ReservationStatus.PROVISIONAL)
            ok, line = _print_result("Reservation round trip", True)
        except Exception as exc:
            ok, line = _print_result("Reservation round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Reservation Manager Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
