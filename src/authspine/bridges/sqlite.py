"""SQLite bridge.

SQLite has no timestamp type and Python 3.12 deprecated the sqlite3
default datetime adapters, so timestamps are stored as fixed-width ISO
text in UTC (``0001-01-01 00:00:00.000000``).  Fixed width keeps the text
lexically ordered, which the expiry sweep relies on.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any

from .base import BaseBridge, as_utc


class SQLiteBridge(BaseBridge):
    """Bridge for the stdlib ``sqlite3`` driver."""

    name = "sqlite"

    def time_scan_type(self) -> type:
        return str

    def _decode_time(self, value: str) -> datetime:
        return datetime.fromisoformat(value)

    def convert_time(self, dt: datetime) -> str:
        return as_utc(dt).replace(tzinfo=None).isoformat(sep=" ", timespec="microseconds")

    def is_duplicate_insert(self, exc: BaseException) -> bool:
        if not isinstance(exc, sqlite3.IntegrityError):
            return False
        message = str(exc)
        return message.startswith("UNIQUE constraint failed") or "PRIMARY KEY" in message


__all__ = [
    "SQLiteBridge",
]
