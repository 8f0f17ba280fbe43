"""Driver bridge contract and shared base class.

Manifesto:
    DB-API 2.0 leaves two things to each driver: how timestamps travel
    in and out, and how a unique-key violation is signalled.  The bridge
    is the one place a dialect answers those questions, so the storage
    engines stay driver-free.

Features:
    - ``time_scan_type()`` / ``convert_time_scan()`` for reading timestamps
    - ``convert_time()`` for binding timestamps as parameters
    - ``is_duplicate_insert()`` / ``is_duplicate_update()`` classification
    - ``BaseBridge`` with type checking and UTC normalisation built in

Tags:
    bridge, driver, timestamps, duplicate-key, authspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from authspine.errors import ScanTypeError


@runtime_checkable
class SQLBridge(Protocol):
    """Per-dialect adapter for timestamps and duplicate-key errors.

    Implementations must be stateless and safe to call concurrently.
    """

    @property
    def name(self) -> str:
        ...

    def time_scan_type(self) -> type:
        """Python type a timestamp column arrives as when scanned."""
        ...

    def convert_time_scan(self, value: Any) -> datetime:
        """Convert a scanned timestamp value into an aware UTC datetime.

        Raises:
            ScanTypeError: If ``value`` is not of :meth:`time_scan_type`.
        """
        ...

    def convert_time(self, dt: datetime) -> Any:
        """Convert a datetime into the driver's parameter representation."""
        ...

    def is_duplicate_insert(self, exc: BaseException) -> bool:
        ...

    def is_duplicate_update(self, exc: BaseException) -> bool:
        ...


def as_utc(dt: datetime) -> datetime:
    """Normalise to UTC; naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class BaseBridge(ABC):
    """Common bridge behaviour.

    Subclasses declare the scan type and decode/encode; type checking,
    UTC normalisation and the insert/update equivalence live here.
    """

    name: str = "base"

    @abstractmethod
    def time_scan_type(self) -> type:
        ...

    def convert_time_scan(self, value: Any) -> datetime:
        expected = self.time_scan_type()
        if not isinstance(value, expected):
            raise ScanTypeError(
                f"{self.name}: expected timestamp of type {expected.__name__}, "
                f"got {type(value).__name__}",
                value=value,
            )
        return as_utc(self._decode_time(value))

    @abstractmethod
    def _decode_time(self, value: Any) -> datetime:
        ...

    @abstractmethod
    def convert_time(self, dt: datetime) -> Any:
        ...

    @abstractmethod
    def is_duplicate_insert(self, exc: BaseException) -> bool:
        ...

    def is_duplicate_update(self, exc: BaseException) -> bool:
        # Drivers report the same error for both.
        return self.is_duplicate_insert(exc)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


__all__ = [
    "SQLBridge",
    "BaseBridge",
    "as_utc",
]
