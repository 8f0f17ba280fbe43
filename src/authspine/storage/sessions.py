"""SQL session storage engine."""

from __future__ import annotations

from datetime import datetime

from authspine.adapters.base import Database
from authspine.bridges.base import SQLBridge
from authspine.errors import (
    NoRowsError,
    NoSuchSessionError,
    NotSupportedError,
    SessionExistsError,
)
from authspine.logging import get_logger
from authspine.models import SessionEntry, UserID
from authspine.queries.base import SessionQueries
from authspine.session_keys import DEFAULT_KEY_ATTEMPTS

from ._init import run_init_statements

logger = get_logger(__name__)


class SQLSessionStorage:
    """
    Session storage over any SQL backing store.

    Stateless apart from its collaborators; safe to share between threads.
    Bulk deletes report how many sessions they removed, or raise
    :class:`NotSupportedError` (after the delete took effect) when the
    driver cannot tell.

    ``key_attempts`` is the attempt budget
    :func:`~authspine.session_keys.insert_session_with_retry` uses for
    this storage when the caller gives none.
    """

    def __init__(
        self,
        database: Database,
        queries: SessionQueries,
        bridge: SQLBridge,
        *,
        key_attempts: int = DEFAULT_KEY_ATTEMPTS,
    ):
        if key_attempts < 1:
            raise ValueError(f"key_attempts must be at least 1, got {key_attempts}")
        self._db = database
        self._queries = queries
        self._bridge = bridge
        self.key_attempts = key_attempts
        self._table: str | None = getattr(queries, "table", None)

    @property
    def database(self) -> Database:
        return self._db

    @property
    def queries(self) -> SessionQueries:
        return self._queries

    @property
    def bridge(self) -> SQLBridge:
        return self._bridge

    def init_sessions(self) -> None:
        run_init_statements(
            self._db,
            self._queries.init_sessions(),
            operation="init_sessions",
            table=self._table,
        )

    def insert_session(self, entry: SessionEntry) -> None:
        """
        Raises:
            SessionExistsError: A session with ``entry.key`` exists.
        """
        params = (entry.key, entry.user, self._bridge.convert_time(entry.expire_date))
        try:
            self._db.execute(self._queries.insert_session(), params)
        except Exception as exc:
            if self._bridge.is_duplicate_insert(exc):
                raise SessionExistsError(entry.key, cause=exc).with_context(
                    operation="insert_session",
                    backend=self._bridge.name,
                    table=self._table,
                ) from exc
            raise
        logger.info("session_inserted", table=self._table, user_id=entry.user)

    def get_session(self, key: str) -> SessionEntry:
        """
        Raises:
            NoSuchSessionError: No session is stored under ``key``.
        """
        try:
            row = self._db.query_row(self._queries.get_session(), (key,))
        except NoRowsError as e:
            raise NoSuchSessionError(key).with_context(
                operation="get_session", backend=self._bridge.name, table=self._table
            ) from e
        stored_key, user, expire_date = row
        return SessionEntry(
            key=stored_key,
            user=UserID(int(user)),
            expire_date=self._bridge.convert_time_scan(expire_date),
        )

    def delete_session(self, key: str) -> None:
        """Remove a session; an unknown key is not an error."""
        self._db.execute(self._queries.delete_session(), (key,))

    def clean_up(self, reference: datetime) -> int:
        """Delete every session with ``expire_date <= reference``."""
        removed = self._bulk_delete(
            "clean_up",
            self._queries.clean_up_session(),
            self._bridge.convert_time(reference),
        )
        logger.info("sessions_cleaned_up", table=self._table, removed=removed)
        return removed

    def delete_for_user(self, user_id: UserID) -> int:
        """Delete every session of ``user_id``."""
        removed = self._bulk_delete(
            "delete_for_user", self._queries.delete_for_user_session(), user_id
        )
        logger.info("user_sessions_deleted", table=self._table, user_id=user_id, removed=removed)
        return removed

    def _bulk_delete(self, operation: str, query: str, param: object) -> int:
        result = self._db.execute(query, (param,))
        if result.rows_affected is None:
            logger.warning(
                "rows_affected_unsupported",
                operation=operation,
                backend=self._bridge.name,
                table=self._table,
            )
            raise NotSupportedError(
                "backend did not report the number of deleted sessions"
            ).with_context(operation=operation, backend=self._bridge.name, table=self._table)
        return result.rows_affected

    def __repr__(self) -> str:
        return f"SQLSessionStorage(backend={self._bridge.name!r}, table={self._table!r})"


__all__ = ["SQLSessionStorage"]
