"""Query provider contracts and the shared statement builders.

A query provider hands the storage engines fully resolved, parameterised
statement text.  Providers build their statements once, as templates with
``$NAME$`` meta variables, resolve them with a
:class:`~authspine.templates.SQLTemplateReplacer` in ``__init__`` and from
then on only return immutable strings.

Manifesto:
    Statement text is the only thing a dialect should have to write.
    ``SQLUserQueries`` and ``SQLSessionQueries`` assemble every statement
    from a :class:`~authspine.dialect.Dialect` and an explicit column
    table, so a new dialect is a Dialect plus a two-line subclass.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │ SQLUserQueries(replacer, columns)                                │
    │                                                                  │
    │   template (f-string + dialect fragments + $NAME$)               │
    │        │                                                         │
    │        ▼  replacer.apply()  (once, in __init__)                  │
    │   resolved text ─► init_users() / get_user() / insert_user() ... │
    │                                                                  │
    │   update_user(fields) ─► "UPDATE t SET a = ?, b = ? WHERE id = ?"│
    └──────────────────────────────────────────────────────────────────┘

Statement contracts:
    - Lookups select ``id, username, password, email, first_name,
      last_name, is_superuser, is_staff, is_active, date_joined,
      last_login`` and take one parameter.
    - ``insert_user`` takes the ten non-ID fields in that order.
    - ``update_user(None)`` takes the ten fields then the id;
      ``update_user(fields)`` takes the named fields in order then the id.
    - Session lookups select ``key, user, expire_date``.

Tags:
    queries, sql, templates, provider, authspine

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import ClassVar, Protocol, runtime_checkable

from authspine.dialect import Dialect
from authspine.models import (
    DEFAULT_SESSION_COLUMNS,
    DEFAULT_USER_COLUMNS,
    SESSION_KEY_LENGTH,
    USER_FIELD_ORDER,
    UserField,
)
from authspine.templates import (
    EMAIL_UNIQUE,
    SESSIONS_TABLE_NAME,
    USERS_TABLE_NAME,
    SQLTemplateReplacer,
    default_sql_replacer,
)
from authspine.validate import (
    EMAIL_MAX_LEN,
    FIRST_NAME_MAX_LEN,
    LAST_NAME_MAX_LEN,
    PASSWORD_HASH_MAX_LEN,
    USERNAME_MAX_LEN,
)

# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@runtime_checkable
class UserQueries(Protocol):
    """Statement text for the user storage engine."""

    @property
    def supports_user_fields(self) -> bool:
        """True if :meth:`update_user` honours a field subset."""
        ...

    def init_users(self) -> Sequence[str]:
        """Setup statements, run in order inside one transaction."""
        ...

    def get_user(self) -> str:
        ...

    def get_user_by_name(self) -> str:
        ...

    def get_user_by_email(self) -> str:
        ...

    def insert_user(self) -> str:
        ...

    def update_user(self, fields: Sequence[UserField] | None) -> str:
        ...

    def delete_user(self) -> str:
        ...


@runtime_checkable
class SessionQueries(Protocol):
    """Statement text for the session storage engine."""

    def init_sessions(self) -> Sequence[str]:
        ...

    def get_session(self) -> str:
        ...

    def insert_session(self) -> str:
        ...

    def delete_session(self) -> str:
        ...

    def clean_up_session(self) -> str:
        """Delete every session with ``expire_date <= ?``."""
        ...

    def delete_for_user_session(self) -> str:
        ...


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------

_USER_STRING_WIDTHS: Mapping[UserField, int] = {
    UserField.USERNAME: USERNAME_MAX_LEN,
    UserField.PASSWORD: PASSWORD_HASH_MAX_LEN,
    UserField.EMAIL: EMAIL_MAX_LEN,
    UserField.FIRST_NAME: FIRST_NAME_MAX_LEN,
    UserField.LAST_NAME: LAST_NAME_MAX_LEN,
}

_USER_BOOL_FIELDS = (UserField.IS_SUPERUSER, UserField.IS_STAFF, UserField.IS_ACTIVE)


def _index_ddl(dialect: Dialect, table: str, column: str, column_sql: str) -> tuple[str, str]:
    """
    Index on ``column`` of the resolved ``table``.

    Returns ``(statement, inline)``: a standalone CREATE INDEX, or an
    inline ``INDEX`` clause for dialects without ``IF NOT EXISTS``.  The
    index is named after the unqualified table; a schema prefix is kept
    where the dialect expects it.
    """
    schema, _, name = table.rpartition(".")
    index = f"{name}_{column}_idx"
    if not dialect.supports_create_index_if_not_exists:
        return "", f"INDEX {index} ({column_sql})"
    if schema and dialect.index_takes_schema:
        return f"CREATE INDEX IF NOT EXISTS {schema}.{index} ON {name} ({column_sql})", ""
    return f"CREATE INDEX IF NOT EXISTS {index} ON {table} ({column_sql})", ""


class SQLUserQueries:
    """
    User statements for any :class:`Dialect`.

    Subclasses set :attr:`dialect`; everything else is derived.

    Parameters:
        replacer: Meta-variable values.  Defaults to
            :func:`~authspine.templates.default_sql_replacer`.
        columns: Field name -> column name table (plus ``"id"``).
    """

    dialect: ClassVar[Dialect]
    supports_user_fields: ClassVar[bool] = True

    def __init__(
        self,
        replacer: SQLTemplateReplacer | None = None,
        columns: Mapping[str, str] = DEFAULT_USER_COLUMNS,
    ) -> None:
        self._replacer = replacer if replacer is not None else default_sql_replacer()
        self._columns = columns
        d = self.dialect
        table = USERS_TABLE_NAME
        col = self._col

        select_cols = ", ".join(col(c) for c in ("id", *(f.value for f in USER_FIELD_ORDER)))
        id_ph = d.placeholder(0)

        resolve = self._replacer.apply
        self._table = resolve(table)
        self._init = tuple(resolve(stmt) for stmt in self._init_templates())
        self._get_user = resolve(f"SELECT {select_cols} FROM {table} WHERE {col('id')} = {id_ph}")
        self._get_user_by_name = resolve(
            f"SELECT {select_cols} FROM {table} WHERE {col(UserField.USERNAME)} = {id_ph}"
        )
        self._get_user_by_email = resolve(
            f"SELECT {select_cols} FROM {table} WHERE {col(UserField.EMAIL)} = {id_ph}"
        )
        insert_cols = ", ".join(col(f) for f in USER_FIELD_ORDER)
        self._insert_user = resolve(
            f"INSERT INTO {table} ({insert_cols}) "
            f"VALUES ({d.placeholders(len(USER_FIELD_ORDER))}){d.returning(columns['id'])}"
        )
        self._update_all = self._build_update(USER_FIELD_ORDER)
        self._delete_user = resolve(f"DELETE FROM {table} WHERE {col('id')} = {id_ph}")

    # -- Template construction ---------------------------------------------

    def _col(self, name: UserField | str) -> str:
        if isinstance(name, UserField):
            name = name.value
        return self.dialect.quote(self._columns[name])

    def _init_templates(self) -> list[str]:
        d = self.dialect
        col = self._col
        table = USERS_TABLE_NAME

        definitions = [f"{col('id')} {d.auto_increment()}"]
        for f in USER_FIELD_ORDER:
            if f in _USER_STRING_WIDTHS:
                ctype = f"VARCHAR({_USER_STRING_WIDTHS[f]}) NOT NULL"
            elif f in _USER_BOOL_FIELDS:
                ctype = f"{d.boolean_type()} NOT NULL"
            else:
                ctype = f"{d.timestamp_type()} NOT NULL"
            if f is UserField.USERNAME:
                ctype += " UNIQUE"
            elif f is UserField.EMAIL:
                ctype += f" {EMAIL_UNIQUE}"
            definitions.append(f"{col(f)} {ctype}")

        # A UNIQUE email column is indexed by its constraint already.
        index_stmt = ""
        if not self._replacer.apply(EMAIL_UNIQUE).strip():
            index_stmt, inline = _index_ddl(
                d, self._table, self._columns[UserField.EMAIL.value], col(UserField.EMAIL)
            )
            if inline:
                definitions.append(inline)

        create = f"CREATE TABLE IF NOT EXISTS {table} (\n    " + ",\n    ".join(definitions) + "\n)"
        return [create, index_stmt]

    def _build_update(self, fields: Sequence[UserField]) -> str:
        d = self.dialect
        assignments = ", ".join(
            f"{self._col(f)} = {d.placeholder(i)}" for i, f in enumerate(fields)
        )
        return self._replacer.apply(
            f"UPDATE {USERS_TABLE_NAME} SET {assignments} "
            f"WHERE {self._col('id')} = {d.placeholder(len(fields))}"
        )

    # -- UserQueries -------------------------------------------------------

    @property
    def table(self) -> str:
        """Resolved users table name."""
        return self._table

    def init_users(self) -> Sequence[str]:
        return self._init

    def get_user(self) -> str:
        return self._get_user

    def get_user_by_name(self) -> str:
        return self._get_user_by_name

    def get_user_by_email(self) -> str:
        return self._get_user_by_email

    def insert_user(self) -> str:
        return self._insert_user

    def update_user(self, fields: Sequence[UserField | str] | None) -> str:
        if not fields:
            return self._update_all
        return self._build_update(UserField.parse_many(fields))

    def delete_user(self) -> str:
        return self._delete_user

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self._table!r})"


class SQLSessionQueries:
    """
    Session statements for any :class:`Dialect`.

    Parameters:
        replacer: Meta-variable values.
        columns: ``key`` / ``user`` / ``expire_date`` -> column name.
    """

    dialect: ClassVar[Dialect]

    def __init__(
        self,
        replacer: SQLTemplateReplacer | None = None,
        columns: Mapping[str, str] = DEFAULT_SESSION_COLUMNS,
    ) -> None:
        self._replacer = replacer if replacer is not None else default_sql_replacer()
        self._columns = columns
        d = self.dialect
        table = SESSIONS_TABLE_NAME
        col = self._col
        ph = d.placeholder(0)
        resolve = self._replacer.apply

        self._table = resolve(table)
        self._init = tuple(resolve(stmt) for stmt in self._init_templates())
        self._get = resolve(
            f"SELECT {col('key')}, {col('user')}, {col('expire_date')} "
            f"FROM {table} WHERE {col('key')} = {ph}"
        )
        self._insert = resolve(
            f"INSERT INTO {table} ({col('key')}, {col('user')}, {col('expire_date')}) "
            f"VALUES ({d.placeholders(3)})"
        )
        self._delete = resolve(f"DELETE FROM {table} WHERE {col('key')} = {ph}")
        self._clean_up = resolve(f"DELETE FROM {table} WHERE {col('expire_date')} <= {ph}")
        self._delete_for_user = resolve(f"DELETE FROM {table} WHERE {col('user')} = {ph}")

    def _col(self, name: str) -> str:
        return self.dialect.quote(self._columns[name])

    def _init_templates(self) -> list[str]:
        d = self.dialect
        col = self._col
        table = SESSIONS_TABLE_NAME

        definitions = [
            f"{col('key')} VARCHAR({SESSION_KEY_LENGTH}) NOT NULL PRIMARY KEY",
            f"{col('user')} {d.bigint_type()} NOT NULL",
            f"{col('expire_date')} {d.timestamp_type()} NOT NULL",
        ]
        indexes = []
        for name in ("user", "expire_date"):
            statement, inline = _index_ddl(d, self._table, self._columns[name], col(name))
            if inline:
                definitions.append(inline)
            else:
                indexes.append(statement)

        create = f"CREATE TABLE IF NOT EXISTS {table} (\n    " + ",\n    ".join(definitions) + "\n)"
        return [create, *indexes]

    @property
    def table(self) -> str:
        """Resolved sessions table name."""
        return self._table

    def init_sessions(self) -> Sequence[str]:
        return self._init

    def get_session(self) -> str:
        return self._get

    def insert_session(self) -> str:
        return self._insert

    def delete_session(self) -> str:
        return self._delete

    def clean_up_session(self) -> str:
        return self._clean_up

    def delete_for_user_session(self) -> str:
        return self._delete_for_user

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self._table!r})"


__all__ = [
    "UserQueries",
    "SessionQueries",
    "SQLUserQueries",
    "SQLSessionQueries",
]
