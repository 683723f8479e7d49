"""
main.py: Server launcher and entry point.

Run this file to start the reservation API:

    python main.py [--host 0.0.0.0] [--port 8080] [--no-reload]

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import argparse

import uvicorn

from backend.utils.config import get_settings


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the room pool reservation API")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="disable hot-reload (use for shared or long-running instances)",
    )
    return parser.parse_args()


def main() -> None:
    """Start the reservation API server."""
    args = _parse_args()
    settings = get_settings()

    print("=" * 60)
    print(f"  {settings.app_name} v{settings.app_version}")
    print("=" * 60)
    print(f"  Server   : http://{args.host}:{args.port}")
    print(f"  API docs : http://{args.host}:{args.port}/docs")
    print(f"  Storage  : {settings.storage_backend} ({settings.database_path})")
    print("  Pools    : " + ", ".join(
        f"{pool.name}={pool.capacity}" for pool in settings.room_pools
    ))
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    # Blocks until CTRL+C
    uvicorn.run(
        "app:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
