"""Backend registry and storage factory.

Manifesto:
    Consumers should never hard-code which query provider goes with which
    bridge.  A :class:`Backend` bundles the dialect, bridge and provider
    classes of one database, and :func:`create_storages` turns a backing
    store plus settings into a ready user/session storage pair.

Features:
    - ``BackendRegistry`` singleton with pre-registered defaults
      (``sqlite``, ``postgresql`` / ``postgres``, ``mysql``)
    - ``register_backend()`` for custom dialects
    - ``create_storages()`` factory: database + settings → engines
    - ``open_database()`` factory: settings → backing store

Tags:
    authspine, registry, factory, multi-backend

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass

from authspine.adapters.base import Database
from authspine.adapters.dbapi import postgresql_database
from authspine.adapters.sqlite import SQLiteDatabase
from authspine.bridges import MySQLBridge, PostgreSQLBridge, SQLBridge, SQLiteBridge
from authspine.dialect import Dialect
from authspine.errors import ConfigError
from authspine.logging import get_logger
from authspine.queries import (
    MySQLSessionQueries,
    MySQLUserQueries,
    PostgreSQLSessionQueries,
    PostgreSQLUserQueries,
    SQLiteSessionQueries,
    SQLiteUserQueries,
    SQLSessionQueries,
    SQLUserQueries,
)
from authspine.session_keys import DEFAULT_KEY_ATTEMPTS
from authspine.settings import AuthSpineSettings
from authspine.storage import SQLSessionStorage, SQLUserStorage
from authspine.templates import (
    SESSIONS_TABLE_NAME,
    USERS_TABLE_NAME,
    default_sql_replacer,
    replacer_from_settings,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Backend:
    """Everything dialect-specific about one database."""

    dialect: Dialect
    bridge: SQLBridge
    user_queries_cls: type[SQLUserQueries]
    session_queries_cls: type[SQLSessionQueries]

    @property
    def name(self) -> str:
        return self.dialect.name


class BackendRegistry:
    """Registry of :class:`Backend` bundles keyed by lower-cased name."""

    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        sqlite = Backend(
            SQLiteUserQueries.dialect, SQLiteBridge(), SQLiteUserQueries, SQLiteSessionQueries
        )
        postgresql = Backend(
            PostgreSQLUserQueries.dialect,
            PostgreSQLBridge(),
            PostgreSQLUserQueries,
            PostgreSQLSessionQueries,
        )
        mysql = Backend(
            MySQLUserQueries.dialect, MySQLBridge(), MySQLUserQueries, MySQLSessionQueries
        )
        self._backends["sqlite"] = sqlite
        self._backends["postgresql"] = postgresql
        self._backends["postgres"] = postgresql  # Alias
        self._backends["mysql"] = mysql

    def register(self, name: str, backend: Backend) -> None:
        self._backends[name.lower()] = backend

    def get(self, name: str) -> Backend:
        key = name.lower()
        if key not in self._backends:
            raise ConfigError(f"Unknown backend: {name}. Registered: {self.list_backends()}")
        return self._backends[key]

    def list_backends(self) -> list[str]:
        return sorted(self._backends)


# Global registry
backend_registry = BackendRegistry()


def get_backend(name: str) -> Backend:
    """Look up a backend bundle by name.

    Raises:
        ConfigError: If ``name`` is not registered.
    """
    return backend_registry.get(name)


def register_backend(name: str, backend: Backend) -> None:
    """Register (or replace) a backend bundle."""
    backend_registry.register(name, backend)


def create_storages(
    database: Database,
    settings: AuthSpineSettings | None = None,
) -> tuple[SQLUserStorage, SQLSessionStorage]:
    """
    Build the user and session engines for ``database``.

    The backend is chosen by ``database.dialect.name``; table names and
    email uniqueness come from ``settings`` (defaults when omitted), as
    does the session storage's ``key_attempts``.
    Tables are not created; call ``init_users`` / ``init_sessions``.
    """
    backend = get_backend(database.dialect.name)
    replacer = replacer_from_settings(settings) if settings is not None else default_sql_replacer()
    users = SQLUserStorage(database, backend.user_queries_cls(replacer), backend.bridge)
    sessions = SQLSessionStorage(
        database,
        backend.session_queries_cls(replacer),
        backend.bridge,
        key_attempts=(
            settings.session_key_attempts if settings is not None else DEFAULT_KEY_ATTEMPTS
        ),
    )
    logger.debug(
        "storages_created",
        backend=backend.name,
        users_table=replacer.apply(USERS_TABLE_NAME),
        sessions_table=replacer.apply(SESSIONS_TABLE_NAME),
    )
    return users, sessions


def open_database(settings: AuthSpineSettings) -> Database:
    """Open the backing store described by ``settings.dialect`` / ``database``.

    SQLite takes a file path (or ``:memory:``), PostgreSQL a libpq DSN.
    MySQL needs keyword arguments; build it with
    :func:`~authspine.adapters.mysql_database` instead.
    """
    match settings.dialect:
        case "sqlite":
            return SQLiteDatabase(settings.database)
        case "postgresql":
            return postgresql_database(settings.database)
        case _:
            raise ConfigError(
                f"open_database does not support {settings.dialect!r}; "
                "construct the Database directly"
            )


__all__ = [
    "Backend",
    "BackendRegistry",
    "backend_registry",
    "get_backend",
    "register_backend",
    "create_storages",
    "open_database",
]
