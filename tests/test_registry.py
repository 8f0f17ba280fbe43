"""Tests for ``authspine.registry``."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from authspine.adapters import SQLiteDatabase
from authspine.bridges import PostgreSQLBridge, SQLiteBridge
from authspine.errors import ConfigError, NoSuchUserError
from authspine.models import SessionEntry, UserModel
from authspine.queries import (
    PostgreSQLUserQueries,
    SQLiteSessionQueries,
    SQLiteUserQueries,
)
from authspine.registry import (
    Backend,
    BackendRegistry,
    backend_registry,
    create_storages,
    get_backend,
    open_database,
    register_backend,
)
from authspine.settings import AuthSpineSettings


class TestBackendRegistry:
    def test_defaults(self):
        assert BackendRegistry().list_backends() == ["mysql", "postgres", "postgresql", "sqlite"]

    def test_lookup(self):
        backend = get_backend("SQLite")
        assert backend.name == "sqlite"
        assert isinstance(backend.bridge, SQLiteBridge)
        assert backend.user_queries_cls is SQLiteUserQueries

    def test_postgres_alias(self):
        assert get_backend("postgres") is get_backend("postgresql")
        assert get_backend("postgres").user_queries_cls is PostgreSQLUserQueries
        assert isinstance(get_backend("postgres").bridge, PostgreSQLBridge)

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown backend"):
            get_backend("db2")

    def test_register(self, monkeypatch):
        monkeypatch.setattr(backend_registry, "_backends", dict(backend_registry._backends))
        custom = Backend(
            SQLiteUserQueries.dialect, SQLiteBridge(), SQLiteUserQueries, SQLiteSessionQueries
        )
        register_backend("Lite", custom)
        assert get_backend("lite") is custom


class TestCreateStorages:
    def test_default_tables(self, sqlite_db):
        users, sessions = create_storages(sqlite_db)
        assert users.queries.table == "auth_user"
        assert sessions.queries.table == "auth_session"
        assert users.database is sqlite_db
        assert sessions.bridge is users.bridge

    def test_settings_tables(self, sqlite_db):
        settings = AuthSpineSettings(users_table="accounts", sessions_table="logins")
        users, sessions = create_storages(sqlite_db, settings)
        users.init_users()
        sessions.init_sessions()

        user_id = users.insert_user(UserModel(username="alice", email="a@b.org", password="h"))
        assert sqlite_db.query_row(
            "SELECT username FROM accounts WHERE id = ?", (user_id,)
        ) == ("alice",)
        with pytest.raises(NoSuchUserError):
            users.get_user_by_name("bob")

    def test_settings_shared_email(self, sqlite_db):
        users, _ = create_storages(sqlite_db, AuthSpineSettings(email_unique=False))
        users.init_users()
        users.insert_user(UserModel(username="alice", email="same@b.org", password="h"))
        users.insert_user(UserModel(username="bob", email="same@b.org", password="h"))

    def test_schema_qualified_tables(self, sqlite_db):
        settings = AuthSpineSettings(
            users_table="main.accounts", sessions_table="main.logins", email_unique=False
        )
        users, sessions = create_storages(sqlite_db, settings)
        users.init_users()
        sessions.init_sessions()
        users.init_users()

        user_id = users.insert_user(UserModel(username="alice", email="a@b.org", password="h"))
        assert users.get_user_by_email("a@b.org").id == user_id
        sessions.insert_session(SessionEntry("K" * 39, user_id, datetime(2030, 1, 1, tzinfo=UTC)))
        assert sessions.delete_for_user(user_id) == 1

        for index in ("accounts_email_idx", "logins_user_idx", "logins_expire_date_idx"):
            assert sqlite_db.query_row(
                "SELECT tbl_name FROM main.sqlite_master WHERE type = 'index' AND name = ?",
                (index,),
            )[0] in ("accounts", "logins")

    def test_key_attempts_from_settings(self, sqlite_db):
        _, sessions = create_storages(sqlite_db, AuthSpineSettings(session_key_attempts=5))
        assert sessions.key_attempts == 5
        _, default_sessions = create_storages(sqlite_db)
        assert default_sessions.key_attempts == 3


class TestOpenDatabase:
    def test_sqlite(self, tmp_path):
        settings = AuthSpineSettings(database=str(tmp_path / "auth.db"))
        db = open_database(settings)
        try:
            assert isinstance(db, SQLiteDatabase)
            assert db.dialect.name == "sqlite"
        finally:
            db.close()

    def test_mysql_needs_explicit_database(self):
        with pytest.raises(ConfigError):
            open_database(AuthSpineSettings(dialect="mysql"))
