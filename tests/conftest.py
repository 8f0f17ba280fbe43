"""
Shared pytest fixtures for authspine tests.

This module provides:
- Backing stores (in-memory SQLite) closed after each test
- Parametrised user/session storages so every conformance test runs
  against the in-memory reference store and the SQLite engine
- The fixed users and sessions of the conformance scenarios

Usage:
    def test_something(user_storage):
        user_storage.insert_user(...)
"""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Ensure authspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from authspine.adapters import SQLiteDatabase
from authspine.bridges import SQLiteBridge
from authspine.memory import MemorySessionStorage, MemoryUserStorage
from authspine.models import SessionEntry, UserID, UserModel
from authspine.queries import SQLiteSessionQueries, SQLiteUserQueries
from authspine.storage import SQLSessionStorage, SQLUserStorage
from authspine.templates import EMAIL_UNIQUE, default_sql_replacer


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Backing stores
# =============================================================================


@pytest.fixture
def sqlite_db():
    db = SQLiteDatabase(":memory:")
    yield db
    db.close()


def make_user_storage(kind: str, *, email_unique: bool = True):
    if kind == "memory":
        return MemoryUserStorage(email_unique=email_unique)
    replacer = default_sql_replacer()
    if not email_unique:
        replacer.set(EMAIL_UNIQUE, "")
    return SQLUserStorage(SQLiteDatabase(":memory:"), SQLiteUserQueries(replacer), SQLiteBridge())


def make_session_storage(kind: str):
    if kind == "memory":
        return MemorySessionStorage()
    return SQLSessionStorage(SQLiteDatabase(":memory:"), SQLiteSessionQueries(), SQLiteBridge())


def _close(storage) -> None:
    database = getattr(storage, "database", None)
    if database is not None:
        database.close()


@pytest.fixture(params=["memory", "sqlite"])
def user_storage(request: pytest.FixtureRequest):
    """Parametric fixture: initialised user storage with unique emails."""
    storage = make_user_storage(request.param)
    storage.init_users()
    yield storage
    _close(storage)


@pytest.fixture(params=["memory", "sqlite"])
def user_storage_shared_email(request: pytest.FixtureRequest):
    """User storage that allows several users with the same email."""
    storage = make_user_storage(request.param, email_unique=False)
    storage.init_users()
    yield storage
    _close(storage)


@pytest.fixture(params=["memory", "sqlite"])
def session_storage(request: pytest.FixtureRequest):
    storage = make_session_storage(request.param)
    storage.init_sessions()
    yield storage
    _close(storage)


# =============================================================================
# Scenario data
# =============================================================================


@pytest.fixture
def scenario_users() -> dict[str, UserModel]:
    """u1-u3 insert cleanly; u4 repeats u1's username; u5 repeats u3's email."""
    return {
        "u1": UserModel(
            username="user1",
            email="user1@foo.com",
            first_name="Foo",
            password="hash1",
            is_active=True,
        ),
        "u2": UserModel(
            username="user2",
            email="user2@bar.com",
            password="hash2",
            is_active=True,
            is_superuser=True,
            is_staff=True,
        ),
        "u3": UserModel(
            username="user-three",
            email="user3@something.org",
            password="hash3",
            is_active=True,
            is_superuser=True,
        ),
        "u4": UserModel(username="user1", email="user4@foo.com", password="hash4"),
        "u5": UserModel(username="user5", email="user3@something.org", password="hash5"),
    }


@pytest.fixture
def scenario_sessions() -> list[SessionEntry]:
    return [
        SessionEntry("A" * 39, UserID(1), datetime(2019, 9, 9, tzinfo=UTC)),
        SessionEntry("B" * 39, UserID(2), datetime(2019, 9, 10, tzinfo=UTC)),
        SessionEntry("C" * 39, UserID(3), datetime(2019, 9, 12, tzinfo=UTC)),
    ]
