"""Felles innstillinger som leses fra miljøvariabler."""

from __future__ import annotations

import os
from typing import Optional

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_MEMORY_THRESHOLD,
)

__all__ = [
    "MAX_FILE_BYTES",
    "MEMORY_THRESHOLD",
    "MEMORY_LIMIT_BYTES",
    "BATCH_SIZE",
    "CHUNK_SIZE",
    "CONCURRENCY",
    "SKIP_SCHEMA_VALIDATION",
]


def _env_flag(name: str) -> bool:
    value = os.getenv(name)
    if value is None:
        return False
    normalized = value.strip().lower()
    return normalized in {"1", "true", "ja", "on", "yes"}


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return None
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return None


def _positive(value: Optional[int], default: int) -> int:
    if value is None or value <= 0:
        return default
    return value


_max_file_mb = _env_int("WKRSCAN_MAX_FILE_MB")
MAX_FILE_BYTES = (
    _max_file_mb * 1024 * 1024
    if _max_file_mb is not None and _max_file_mb > 0
    else DEFAULT_MAX_FILE_BYTES
)

_threshold = _env_float("WKRSCAN_MEMORY_THRESHOLD")
MEMORY_THRESHOLD = (
    _threshold if _threshold is not None and 0 < _threshold <= 100 else DEFAULT_MEMORY_THRESHOLD
)

_limit_mb = _env_int("WKRSCAN_MEMORY_LIMIT_MB")
MEMORY_LIMIT_BYTES: Optional[int] = (
    _limit_mb * 1024 * 1024 if _limit_mb is not None and _limit_mb > 0 else None
)

BATCH_SIZE = _positive(_env_int("WKRSCAN_BATCH_SIZE"), DEFAULT_BATCH_SIZE)
CHUNK_SIZE = _positive(_env_int("WKRSCAN_CHUNK_SIZE"), DEFAULT_CHUNK_SIZE)
CONCURRENCY = _positive(_env_int("WKRSCAN_CONCURRENCY"), DEFAULT_CONCURRENCY)
SKIP_SCHEMA_VALIDATION = _env_flag("WKRSCAN_SKIP_SCHEMA_VALIDATION")
