"""Generic DB-API 2.0 backing store, with PostgreSQL and MySQL constructors."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from authspine.dialect import Dialect
from authspine.errors import ConfigError, DatabaseConnectionError, DatabaseError, NoRowsError
from authspine.logging import get_logger

from .base import Database, ExecResult, Params, Transaction, cursor_result

logger = get_logger(__name__)


class DBAPITransaction(Transaction):
    """Transaction on a dedicated connection, closed when it ends."""

    def __init__(self, conn: Any):
        self._conn = conn
        self._done = False

    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        self._check_open()
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, tuple(params))
            return cursor_result(cursor)
        finally:
            cursor.close()

    def commit(self) -> None:
        self._check_open()
        self._done = True
        try:
            self._conn.commit()
        finally:
            self._conn.close()

    def rollback(self) -> None:
        self._check_open()
        self._done = True
        try:
            self._conn.rollback()
        finally:
            self._conn.close()

    def _check_open(self) -> None:
        if self._done:
            raise DatabaseError("transaction already finished")


class DBAPIDatabase(Database):
    """
    Backing store over any DB-API 2.0 driver.

    Opens one connection per operation through ``connect`` and closes it
    afterwards; pooling, if wanted, belongs in ``connect``.

    Parameters:
        connect: Zero-argument callable returning a new DB-API connection.
        dialect: Dialect name or instance matching the driver's
            placeholder style.
        connect_errors: Driver exception types wrapped as
            :class:`~authspine.errors.DatabaseConnectionError`.
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        dialect: str | Dialect,
        *,
        connect_errors: tuple[type[BaseException], ...] = (),
    ):
        super().__init__(dialect)
        self._connect = connect
        self._connect_errors = connect_errors

    def _open(self) -> Any:
        try:
            return self._connect()
        except self._connect_errors as e:
            raise DatabaseConnectionError(
                f"Failed to connect to {self.dialect.name}: {e}",
                cause=e,
            ) from e

    def begin(self) -> DBAPITransaction:
        return DBAPITransaction(self._open())

    def execute(self, sql: str, params: Params = ()) -> ExecResult:
        conn = self._open()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(sql, tuple(params))
                result = cursor_result(cursor)
            finally:
                cursor.close()
            conn.commit()
            return result
        finally:
            conn.close()

    def query_row(self, sql: str, params: Params = ()) -> tuple[Any, ...]:
        conn = self._open()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(sql, tuple(params))
                row = cursor.fetchone()
            finally:
                cursor.close()
        finally:
            conn.close()
        if row is None:
            raise NoRowsError()
        return tuple(row)

    def close(self) -> None:
        """Nothing to release; connections never outlive an operation."""

    def __repr__(self) -> str:
        return f"DBAPIDatabase(dialect={self.dialect.name!r})"


def postgresql_database(dsn: str | None = None, **kwargs: Any) -> DBAPIDatabase:
    """PostgreSQL store using psycopg2.

    Args:
        dsn: libpq connection string, e.g. ``"dbname=auth user=app"``.
        **kwargs: Extra ``psycopg2.connect`` keyword arguments.
    """
    try:
        import psycopg2
    except ImportError:
        raise ConfigError(
            "psycopg2 is required for PostgreSQL. Install with: pip install psycopg2-binary"
        ) from None

    def connect() -> Any:
        return psycopg2.connect(dsn, **kwargs)

    return DBAPIDatabase(connect, "postgresql", connect_errors=(psycopg2.Error,))


def mysql_database(**kwargs: Any) -> DBAPIDatabase:
    """MySQL store using mysql-connector-python.

    Args:
        **kwargs: ``mysql.connector.connect`` keyword arguments
            (host, port, user, password, database, ...).
    """
    try:
        import mysql.connector
    except ImportError:
        raise ConfigError(
            "mysql-connector-python is required for MySQL. "
            "Install with: pip install mysql-connector-python"
        ) from None

    def connect() -> Any:
        conn = mysql.connector.connect(**kwargs)
        cursor = conn.cursor()
        try:
            cursor.execute("SET time_zone = '+00:00'")
        finally:
            cursor.close()
        return conn

    return DBAPIDatabase(connect, "mysql", connect_errors=(mysql.connector.Error,))


__all__ = [
    "DBAPIDatabase",
    "DBAPITransaction",
    "postgresql_database",
    "mysql_database",
]
