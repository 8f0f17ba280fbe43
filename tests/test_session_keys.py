"""Tests for ``authspine.session_keys`` -- key generation and collision retry."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from itertools import count

import pytest

from authspine.errors import NoSuchSessionError, RetryExhaustedError, SessionExistsError
from authspine.memory import MemorySessionStorage
from authspine.models import SessionEntry, UserID
from authspine.session_keys import (
    SESSION_KEY_LENGTH,
    gen_session_key,
    insert_session_with_retry,
    new_session_with_key,
)

EXPIRE = datetime(2030, 1, 1, tzinfo=UTC)
URL_SAFE = re.compile(r"[A-Za-z0-9_-]+")


class CollidingStorage:
    """Raises SessionExistsError for the first ``collisions`` inserts."""

    def __init__(self, collisions: int):
        self.collisions = collisions
        self.keys: list[str] = []

    def insert_session(self, entry: SessionEntry) -> None:
        self.keys.append(entry.key)
        if len(self.keys) <= self.collisions:
            raise SessionExistsError(entry.key)


class FailingStorage:
    def __init__(self):
        self.calls = 0

    def insert_session(self, entry: SessionEntry) -> None:
        self.calls += 1
        raise RuntimeError("db down")


def _sequential_keys():
    counter = count(1)
    return lambda: f"key-{next(counter)}"


class TestGenSessionKey:
    def test_length_and_alphabet(self):
        key = gen_session_key()
        assert len(key) == SESSION_KEY_LENGTH == 39
        assert URL_SAFE.fullmatch(key)

    def test_keys_differ(self):
        keys = {gen_session_key() for _ in range(200)}
        assert len(keys) == 200

    def test_new_session_with_key(self):
        entry = new_session_with_key(UserID(7), EXPIRE)
        assert entry.user == 7
        assert entry.expire_date == EXPIRE
        assert len(entry.key) == 39


class TestInsertWithRetry:
    def test_first_attempt_uses_given_key(self):
        storage = CollidingStorage(collisions=0)
        entry = SessionEntry("original", UserID(1), EXPIRE)
        result = insert_session_with_retry(storage, entry, attempts=3)
        assert result is entry
        assert storage.keys == ["original"]

    def test_rekeys_after_collision(self):
        storage = CollidingStorage(collisions=2)
        entry = SessionEntry("original", UserID(1), EXPIRE)
        result = insert_session_with_retry(
            storage, entry, attempts=3, key_generator=_sequential_keys()
        )
        assert storage.keys == ["original", "key-1", "key-2"]
        assert result.key == "key-2"

    def test_exhaustion_keeps_every_collision(self):
        storage = CollidingStorage(collisions=10)
        entry = SessionEntry("original", UserID(1), EXPIRE)

        with pytest.raises(RetryExhaustedError) as info:
            insert_session_with_retry(storage, entry, attempts=4, key_generator=_sequential_keys())

        assert len(info.value.errors) == 4
        assert all(isinstance(e, SessionExistsError) for e in info.value.errors)
        assert [e.key for e in info.value.errors] == storage.keys
        assert len(storage.keys) == 4

    def test_other_errors_are_not_retried(self):
        storage = FailingStorage()
        with pytest.raises(RuntimeError, match="db down"):
            insert_session_with_retry(storage, SessionEntry("k", UserID(1), EXPIRE), attempts=5)
        assert storage.calls == 1

    def test_key_generation_failure_is_fatal(self):
        storage = CollidingStorage(collisions=10)

        def broken_generator() -> str:
            raise OSError("no entropy")

        with pytest.raises(OSError, match="no entropy"):
            insert_session_with_retry(
                storage,
                SessionEntry("k", UserID(1), EXPIRE),
                attempts=5,
                key_generator=broken_generator,
            )
        assert len(storage.keys) == 1

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_attempts_must_be_positive(self, attempts):
        with pytest.raises(ValueError):
            insert_session_with_retry(
                CollidingStorage(0), SessionEntry("k", UserID(1), EXPIRE), attempts=attempts
            )

    def test_with_memory_storage(self):
        storage = MemorySessionStorage()
        storage.insert_session(SessionEntry("taken", UserID(1), EXPIRE))

        entry = insert_session_with_retry(storage, SessionEntry("taken", UserID(2), EXPIRE))

        assert entry.key != "taken"
        assert storage.get_session(entry.key).user == 2
        assert storage.get_session("taken").user == 1
        with pytest.raises(NoSuchSessionError):
            storage.get_session("nope")

    def test_attempts_default_to_storage_budget(self):
        storage = CollidingStorage(5)
        storage.key_attempts = 5
        counter = count()

        with pytest.raises(RetryExhaustedError) as info:
            insert_session_with_retry(
                storage,
                SessionEntry("k0", UserID(1), EXPIRE),
                key_generator=lambda: f"k{next(counter)}",
            )
        assert len(info.value.errors) == 5
        assert len(storage.keys) == 5

    def test_explicit_attempts_override_storage_budget(self):
        storage = MemorySessionStorage(key_attempts=1)
        storage.insert_session(SessionEntry("taken", UserID(1), EXPIRE))
        keys = iter(["taken", "free"])

        entry = insert_session_with_retry(
            storage,
            SessionEntry("taken", UserID(2), EXPIRE),
            attempts=3,
            key_generator=lambda: next(keys),
        )
        assert entry.key == "free"
