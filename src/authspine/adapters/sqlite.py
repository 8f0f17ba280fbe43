"""SQLite backing store."""

from __future__ import annotations

import sqlite3
import threading
from typing import Any

from authspine.errors import DatabaseConnectionError, DatabaseError, NoRowsError
from authspine.logging import get_logger

from .base import Database, ExecResult, Params, Transaction, cursor_result

logger = get_logger(__name__)


class SQLiteTransaction(Transaction):
    """Explicit ``BEGIN`` ... ``COMMIT`` on the shared connection.

    Holds the store's lock from ``begin()`` until commit or rollback, so
    statements of other threads never interleave with the transaction.
    """

    def __init__(self, conn: sqlite3.Connection, lock: threading.RLock):
        self._conn = conn
        self._lock = lock
        self._done = False

    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        self._check_open()
        return cursor_result(self._conn.execute(sql, tuple(params)))

    def commit(self) -> None:
        self._check_open()
        self._done = True
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise
        finally:
            self._lock.release()

    def rollback(self) -> None:
        self._check_open()
        self._done = True
        try:
            self._conn.execute("ROLLBACK")
        finally:
            self._lock.release()

    def _check_open(self) -> None:
        if self._done:
            raise DatabaseError("transaction already finished")


class SQLiteDatabase(Database):
    """
    SQLite backing store over one shared ``sqlite3`` connection.

    The connection runs in autocommit mode (``isolation_level=None``);
    transactions are explicit.  A re-entrant lock serialises all use of
    the connection.  ``":memory:"`` databases live as long as the store.
    """

    def __init__(self, path: str = ":memory:", *, timeout: float = 5.0):
        super().__init__("sqlite")
        self._path = path
        self._timeout = timeout
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> None:
        """Open the connection (done lazily by every other method)."""
        with self._lock:
            if self._conn is not None:
                return
            uri = self._path.startswith("file:")
            try:
                self._conn = sqlite3.connect(
                    self._path,
                    timeout=self._timeout,
                    check_same_thread=False,
                    isolation_level=None,
                    uri=uri,
                )
            except sqlite3.Error as e:
                raise DatabaseConnectionError(
                    f"Failed to connect to SQLite: {e}",
                    cause=e,
                ) from e
            logger.debug("database_connected", backend="sqlite", path=self._path)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.connect()
        assert self._conn is not None
        return self._conn

    def begin(self) -> SQLiteTransaction:
        self._lock.acquire()
        try:
            conn = self._connection()
            conn.execute("BEGIN")
        except BaseException:
            self._lock.release()
            raise
        return SQLiteTransaction(conn, self._lock)

    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        with self._lock:
            return cursor_result(self._connection().execute(sql, tuple(params)))

    def query_row(self, sql: str, params: Params = ()) -> tuple[Any, ...]:
        with self._lock:
            row = self._connection().execute(sql, tuple(params)).fetchone()
        if row is None:
            raise NoRowsError()
        return tuple(row)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("database_closed", backend="sqlite", path=self._path)

    def __repr__(self) -> str:
        return f"SQLiteDatabase({self._path!r})"


__all__ = [
    "SQLiteDatabase",
    "SQLiteTransaction",
]
