"""PostgreSQL bridge.

Works with psycopg2 and psycopg 3 without importing either: both hand
back aware ``datetime`` objects for ``TIMESTAMP WITH TIME ZONE`` and
expose the SQLSTATE of a failed statement (``pgcode`` / ``sqlstate``).
"""

from __future__ import annotations

from datetime import datetime

from .base import BaseBridge, as_utc

UNIQUE_VIOLATION = "23505"


class PostgreSQLBridge(BaseBridge):
    """Bridge for psycopg2 / psycopg 3."""

    name = "postgresql"

    def time_scan_type(self) -> type:
        return datetime

    def _decode_time(self, value: datetime) -> datetime:
        return value

    def convert_time(self, dt: datetime) -> datetime:
        return as_utc(dt)

    def is_duplicate_insert(self, exc: BaseException) -> bool:
        code = getattr(exc, "pgcode", None) or getattr(exc, "sqlstate", None)
        return code == UNIQUE_VIOLATION


__all__ = [
    "PostgreSQLBridge",
    "UNIQUE_VIOLATION",
]
