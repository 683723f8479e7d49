"""Process-wide logging setup shared by every reservation module."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from backend.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def _resolve_level(level: Optional[str]) -> int:
    name = (level or get_settings().log_level).strip().upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{name}'")
    return resolved


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once; later calls are no-ops.

    Write events, evictions and capacity rejections all go through module
    loggers created by `get_logger`, so one handler formats every layer.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
