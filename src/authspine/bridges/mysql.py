"""MySQL bridge.

``DATETIME`` columns carry no zone, so values are bound and read as naive
UTC.  Duplicate keys are MySQL error 1062 (``ER_DUP_ENTRY``), exposed as
``errno`` by mysql-connector and as ``args[0]`` by PyMySQL.
"""

from __future__ import annotations

from datetime import datetime

from .base import BaseBridge, as_utc

ER_DUP_ENTRY = 1062


class MySQLBridge(BaseBridge):
    """Bridge for mysql-connector-python / PyMySQL."""

    name = "mysql"

    def time_scan_type(self) -> type:
        return datetime

    def _decode_time(self, value: datetime) -> datetime:
        return value

    def convert_time(self, dt: datetime) -> datetime:
        return as_utc(dt).replace(tzinfo=None)

    def is_duplicate_insert(self, exc: BaseException) -> bool:
        errno = getattr(exc, "errno", None)
        if errno is None and exc.args and isinstance(exc.args[0], int):
            errno = exc.args[0]
        return errno == ER_DUP_ENTRY


__all__ = [
    "MySQLBridge",
    "ER_DUP_ENTRY",
]
