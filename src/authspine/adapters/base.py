"""Backing-store contract used by the SQL storage engines.

Manifesto:
    The storage engines need four things from a database: a transaction
    for the init statements, a statement call that reports affected rows
    and the generated id, a single-row query, and close.  Everything else
    about connections (pooling, DSNs, drivers) stays behind this ABC.

Features:
    - ``begin()`` returns a :class:`Transaction` (execute / commit / rollback)
    - ``execute()`` returns an :class:`ExecResult`; ``None`` fields mean the
      driver could not report that value
    - ``query_row()`` raises :class:`~authspine.errors.NoRowsError`
    - Context-manager protocol closes the store

Tags:
    authspine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from authspine.dialect import Dialect, get_dialect

Params = Sequence[Any]


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a non-query statement."""

    rows_affected: int | None = None
    last_insert_id: int | None = None


def cursor_result(cursor: Any) -> ExecResult:
    """Build an :class:`ExecResult` from an executed DB-API cursor.

    A statement that returns rows (``INSERT ... RETURNING``) reports the
    first column of its first row as the generated id.  Negative or missing
    ``rowcount`` / ``lastrowid`` become ``None``.
    """
    rowcount = getattr(cursor, "rowcount", -1)
    rows_affected = rowcount if rowcount is not None and rowcount >= 0 else None

    if cursor.description:
        row = cursor.fetchone()
        last_insert_id = row[0] if row else None
    else:
        last_insert_id = getattr(cursor, "lastrowid", None) or None
    return ExecResult(rows_affected=rows_affected, last_insert_id=last_insert_id)


class Transaction(ABC):
    """An open transaction.  Exactly one of commit / rollback ends it."""

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


class Database(ABC):
    """
    Abstract backing store.

    Implementations must be safe to share between threads; the storage
    engines call them concurrently.
    """

    def __init__(self, dialect: str | Dialect):
        self._dialect: Dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect

    @property
    def dialect(self) -> Dialect:
        """SQL dialect of this store."""
        return self._dialect

    @abstractmethod
    def begin(self) -> Transaction:
        """Open a transaction."""
        ...

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        """Run one statement in its own transaction."""
        ...

    @abstractmethod
    def query_row(self, sql: str, params: Params = ()) -> tuple[Any, ...]:
        """Return the first row of a query.

        Raises:
            NoRowsError: If the query matched nothing.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "ExecResult",
    "Transaction",
    "Database",
    "cursor_result",
]
