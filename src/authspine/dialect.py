"""SQL dialect fragments for the query providers.

Provides a ``Dialect`` protocol and concrete implementations for every
supported backend.  Query providers use ``Dialect`` methods to generate
placeholders, quoted identifiers and DDL column types without importing
any database driver.

Manifesto:
    The user and session statements are the same on every backend except
    for a handful of fragments.  Without a dialect layer, each provider
    repeats every statement with its own placeholder style and types.

    - **One interface:** Dialect protocol for all SQL fragments
    - **Zero coupling:** Providers never import database drivers
    - **Registry:** get_dialect(name) chooses the right dialect

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    Query providers:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = f"SELECT ... WHERE {d.quote('key')} = {d.placeholder(0)}" │
    │  ddl = f"id {d.auto_increment()}, ... {d.timestamp_type()}"     │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌──────────────┐ ┌──────────────────┐ ┌──────────────────┐
    │ SQLite       │ │ PostgreSQL       │ │ MySQL            │
    │ ?  "col"     │ │ %s  "col"        │ │ %s  `col`        │
    │ TEXT times   │ │ TIMESTAMPTZ      │ │ DATETIME(6)      │
    └──────────────┘ └──────────────────┘ └──────────────────┘

Examples:
    >>> from authspine.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote("user")
    '"user"'

Guardrails:
    ❌ DON'T: Write backend-specific fragments in the shared builders
    ✅ DO: Add a Dialect method and implement it per backend

Tags:
    dialect, sql, abstraction, portability, database, authspine

Doc-Types:
    - API Reference
    - Database Portability Guide
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from authspine.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment (string) valid for the target
    database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    # -- Placeholder generation --------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Identifiers -------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote a column name (``user`` and ``key`` are reserved words)."""
        ...

    # -- DDL helpers -------------------------------------------------------

    def auto_increment(self) -> str:
        """Full column type of an auto-incrementing 64-bit primary key."""
        ...

    def bigint_type(self) -> str:
        ...

    def boolean_type(self) -> str:
        ...

    def timestamp_type(self) -> str:
        """Column type that stores the bridge's native timestamp value."""
        ...

    @property
    def supports_create_index_if_not_exists(self) -> bool:
        """False means indexes are declared inline in CREATE TABLE."""
        ...

    @property
    def index_takes_schema(self) -> bool:
        """True if a schema prefix goes on the index name, not the table (SQLite)."""
        ...

    # -- DML helpers -------------------------------------------------------

    def returning(self, column: str) -> str:
        """Suffix for INSERT that makes the generated id come back as a row.

        Empty for dialects whose drivers report ``cursor.lastrowid``.
        """
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ISO text timestamps."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def bigint_type(self) -> str:
        return "INTEGER"

    def boolean_type(self) -> str:
        return "BOOLEAN"

    def timestamp_type(self) -> str:
        # Fixed-width ISO text, see SQLiteBridge.
        return "TEXT"

    @property
    def supports_create_index_if_not_exists(self) -> bool:
        return True

    @property
    def index_takes_schema(self) -> bool:
        return True

    def returning(self, column: str) -> str:  # noqa: ARG002
        return ""


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2 / psycopg 3).

    psycopg does not report ``lastrowid`` for SERIAL keys, so inserts use
    ``RETURNING``.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def auto_increment(self) -> str:
        return "BIGSERIAL PRIMARY KEY"

    def bigint_type(self) -> str:
        return "BIGINT"

    def boolean_type(self) -> str:
        return "BOOLEAN"

    def timestamp_type(self) -> str:
        return "TIMESTAMP WITH TIME ZONE"

    @property
    def supports_create_index_if_not_exists(self) -> bool:
        return True

    @property
    def index_takes_schema(self) -> bool:
        return False

    def returning(self, column: str) -> str:
        return f" RETURNING {self.quote(column)}"


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders, backtick identifiers.

    Compatible with ``mysql.connector`` and ``PyMySQL``.  MySQL has no
    ``CREATE INDEX IF NOT EXISTS``, so indexes are declared inline.
    """

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return "`" + identifier.replace("`", "``") + "`"

    def auto_increment(self) -> str:
        return "BIGINT NOT NULL AUTO_INCREMENT PRIMARY KEY"

    def bigint_type(self) -> str:
        return "BIGINT"

    def boolean_type(self) -> str:
        return "BOOLEAN"

    def timestamp_type(self) -> str:
        return "DATETIME(6)"

    @property
    def supports_create_index_if_not_exists(self) -> bool:
        return False

    @property
    def index_takes_schema(self) -> bool:
        return False

    def returning(self, column: str) -> str:  # noqa: ARG002
        return ""


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Args:
        db_type: One of ``'sqlite'``, ``'postgresql'``, ``'postgres'``,
                 ``'mysql'``.

    Raises:
        ConfigError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (lower-cased key)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
