"""
SQL user storage engine.

One engine serves every dialect: the query provider supplies statement
text, the bridge translates timestamps and classifies duplicate-key
errors, the backing store executes.  The engine itself holds no mutable
state and may be shared between threads.

Manifesto:
    Statement text differs per dialect; the rules do not.  Scan order,
    the insert defaults, partial updates, and the mapping of driver errors
    onto :mod:`authspine.errors` live here exactly once.

Architecture::

    SQLUserStorage(database, queries, bridge)
        │
        ├── init_users()       ─► run_init_statements(queries.init_users())
        ├── get_user*(key)     ─► database.query_row ─► _scan_user(row)
        ├── insert_user(user)  ─► database.execute  ─► ExecResult.last_insert_id
        ├── update_user(id, user, fields)
        │       fields ─► UserField.parse_many ─► queries.update_user(fields)
        └── delete_user(id)

    Driver error ─► bridge.is_duplicate_insert / is_duplicate_update
                        │ yes                         │ no
                        ▼                             ▼
              UserExistsError /                 re-raised unchanged
              AmbiguousUpdateError

Examples:
    >>> storage = SQLUserStorage(SQLiteDatabase(":memory:"),
    ...                          SQLiteUserQueries(), SQLiteBridge())
    >>> storage.init_users()
    >>> uid = storage.insert_user(UserModel(username="alice", email="a@x.org"))
    >>> storage.get_user(uid).username
    'alice'

Guardrails:
    ❌ DON'T: Pass a partially filled model to ``update_user`` without fields
    ✅ DO: Name the fields to change, or send the complete model

Tags:
    storage, users, sql, engine, authspine

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from authspine.adapters.base import Database
from authspine.bridges.base import SQLBridge
from authspine.errors import (
    AmbiguousUpdateError,
    InvalidUserFieldError,
    LookupKey,
    NoRowsError,
    NoSuchUserError,
    NotSupportedError,
    UserExistsError,
)
from authspine.logging import get_logger
from authspine.models import (
    INVALID_USER_ID,
    USER_FIELD_ORDER,
    ZERO_TIME,
    UserField,
    UserID,
    UserModel,
)
from authspine.queries.base import UserQueries

from ._init import run_init_statements

logger = get_logger(__name__)


class SQLUserStorage:
    """
    User storage over any SQL backing store.

    Parameters:
        database: Backing store executing the statements.
        queries: Resolved statement text for the store's dialect.
        bridge: Timestamp and duplicate-key translation for the driver.
    """

    def __init__(self, database: Database, queries: UserQueries, bridge: SQLBridge):
        self._db = database
        self._queries = queries
        self._bridge = bridge
        self._table: str | None = getattr(queries, "table", None)

    @property
    def database(self) -> Database:
        return self._db

    @property
    def queries(self) -> UserQueries:
        return self._queries

    @property
    def bridge(self) -> SQLBridge:
        return self._bridge

    # -- Setup -------------------------------------------------------------

    def init_users(self) -> None:
        """Create the users table and its indexes (idempotent)."""
        run_init_statements(
            self._db,
            self._queries.init_users(),
            operation="init_users",
            table=self._table,
        )

    # -- Lookups -----------------------------------------------------------

    def get_user(self, user_id: UserID) -> UserModel:
        """
        Raises:
            NoSuchUserError: ``lookup`` is :attr:`LookupKey.ID`.
        """
        return self._get_one(self._queries.get_user(), LookupKey.ID, user_id)

    def get_user_by_name(self, username: str) -> UserModel:
        return self._get_one(self._queries.get_user_by_name(), LookupKey.USERNAME, username)

    def get_user_by_email(self, email: str) -> UserModel:
        """Lookup by email; with duplicate emails allowed any match may be returned."""
        return self._get_one(self._queries.get_user_by_email(), LookupKey.EMAIL, email)

    def _get_one(self, query: str, lookup: LookupKey, value: Any) -> UserModel:
        try:
            row = self._db.query_row(query, (value,))
        except NoRowsError as e:
            raise NoSuchUserError(lookup, value).with_context(
                operation=f"get_user_by_{lookup.value}",
                backend=self._bridge.name,
                table=self._table,
            ) from e
        return self._scan_user(row)

    def _scan_user(self, row: Sequence[Any]) -> UserModel:
        (
            user_id,
            username,
            password,
            email,
            first_name,
            last_name,
            is_superuser,
            is_staff,
            is_active,
            date_joined,
            last_login,
        ) = row
        return UserModel(
            id=UserID(int(user_id)),
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
            is_superuser=bool(is_superuser),
            is_staff=bool(is_staff),
            is_active=bool(is_active),
            date_joined=self._bridge.convert_time_scan(date_joined),
            last_login=self._bridge.convert_time_scan(last_login),
        )

    # -- Mutations ---------------------------------------------------------

    def insert_user(self, user: UserModel) -> UserID:
        """
        Insert ``user`` and return its new id.

        ``user`` is updated in place: ``date_joined`` becomes now (UTC),
        ``last_login`` the zero instant and ``id`` the generated id.

        Raises:
            UserExistsError: Username (or email, where unique) is taken.
            NotSupportedError: The driver did not report the generated id.
                The row WAS inserted; ``user.id`` stays ``INVALID_USER_ID``.
        """
        user.id = INVALID_USER_ID
        user.date_joined = datetime.now(UTC)
        user.last_login = ZERO_TIME

        params = self._field_values(user, USER_FIELD_ORDER)
        try:
            result = self._db.execute(self._queries.insert_user(), params)
        except Exception as exc:
            if self._bridge.is_duplicate_insert(exc):
                raise UserExistsError(
                    f"user with username {user.username!r} or email {user.email!r} "
                    "already exists",
                    value=user.username,
                    cause=exc,
                ).with_context(
                    operation="insert_user",
                    backend=self._bridge.name,
                    table=self._table,
                    email=user.email,
                ) from exc
            raise

        if result.last_insert_id is None:
            logger.warning(
                "insert_id_unsupported",
                backend=self._bridge.name,
                table=self._table,
                username=user.username,
            )
            raise NotSupportedError(
                "backend did not report the id of the inserted user"
            ).with_context(operation="insert_user", backend=self._bridge.name, table=self._table)

        user.id = UserID(int(result.last_insert_id))
        logger.info("user_inserted", table=self._table, user_id=user.id, username=user.username)
        return user.id

    def update_user(
        self,
        user_id: UserID,
        user: UserModel,
        fields: Sequence[UserField | str] | None = None,
    ) -> None:
        """
        Write ``user``'s values to the row with ``user_id``.

        With ``fields`` (and a provider that supports them) only those
        columns are written; otherwise all ten.  Field names are resolved
        before anything is sent to the store.  ``user.id`` is ignored.
        Updating a nonexistent id succeeds silently.

        Raises:
            InvalidUserFieldError: Unknown field name, or a timestamp field
                holding something that is not a datetime.
            AmbiguousUpdateError: The new values collide with another user.
        """
        resolved: Sequence[UserField] = USER_FIELD_ORDER
        query_fields: Sequence[UserField] | None = None
        if fields:
            parsed = list(UserField.parse_many(fields))
            if self._queries.supports_user_fields:
                resolved = query_fields = parsed

        params = [*self._field_values(user, resolved), user_id]
        try:
            self._db.execute(self._queries.update_user(query_fields), params)
        except Exception as exc:
            if self._bridge.is_duplicate_update(exc):
                raise AmbiguousUpdateError(
                    f"update of user {user_id} violates a uniqueness constraint",
                    cause=exc,
                ).with_context(
                    operation="update_user",
                    backend=self._bridge.name,
                    table=self._table,
                    user_id=user_id,
                ) from exc
            raise
        logger.debug(
            "user_updated",
            table=self._table,
            user_id=user_id,
            fields=[f.value for f in resolved],
        )

    def delete_user(self, user_id: UserID) -> None:
        """Delete the user; a nonexistent id is not an error."""
        self._db.execute(self._queries.delete_user(), (user_id,))
        logger.info("user_deleted", table=self._table, user_id=user_id)

    # -- Helpers -----------------------------------------------------------

    def _field_values(self, user: UserModel, fields: Sequence[UserField]) -> list[Any]:
        values: list[Any] = []
        for f in fields:
            value = getattr(user, f.attr)
            if f.is_time:
                if not isinstance(value, datetime):
                    raise InvalidUserFieldError(
                        f"{f.value} must be a datetime, got {type(value).__name__}",
                        field=f.value,
                        value=value,
                    )
                value = self._bridge.convert_time(value)
            values.append(value)
        return values

    def __repr__(self) -> str:
        return f"SQLUserStorage(backend={self._bridge.name!r}, table={self._table!r})"


__all__ = ["SQLUserStorage"]
