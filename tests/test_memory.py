"""Tests specific to the in-memory reference store."""

from __future__ import annotations

import threading
from datetime import UTC, datetime

from authspine.memory import MemorySessionStorage, MemoryUserStorage
from authspine.models import SessionEntry, UserID, UserModel
from authspine.storage import SessionStorage, UserStorage


class TestProtocols:
    def test_implements_storage_protocols(self):
        assert isinstance(MemoryUserStorage(), UserStorage)
        assert isinstance(MemorySessionStorage(), SessionStorage)


class TestCopies:
    def test_stored_user_is_not_aliased(self):
        storage = MemoryUserStorage()
        user = UserModel(username="alice", email="a@x.org")
        user_id = storage.insert_user(user)

        user.username = "mallory"
        fetched = storage.get_user(user_id)
        fetched.email = "m@x.org"

        stored = storage.get_user(user_id)
        assert stored.username == "alice"
        assert stored.email == "a@x.org"

    def test_stored_session_is_not_aliased(self):
        storage = MemorySessionStorage()
        entry = SessionEntry("k", UserID(1), datetime(2030, 1, 1, tzinfo=UTC))
        storage.insert_session(entry)
        entry.user = UserID(2)
        assert storage.get_session("k").user == 1


class TestIds:
    def test_ids_start_at_one_and_are_not_reused(self):
        storage = MemoryUserStorage()
        first = storage.insert_user(UserModel(username="a", email="a@x.org"))
        storage.delete_user(first)
        second = storage.insert_user(UserModel(username="b", email="b@x.org"))
        assert (first, second) == (1, 2)

    def test_shared_email_lookup_returns_lowest_id(self):
        storage = MemoryUserStorage(email_unique=False)
        first = storage.insert_user(UserModel(username="a", email="same@x.org"))
        storage.insert_user(UserModel(username="b", email="same@x.org"))
        assert storage.get_user_by_email("same@x.org").id == first


class TestConcurrency:
    def test_parallel_inserts_get_distinct_ids(self):
        storage = MemoryUserStorage()
        ids: list[UserID] = []
        lock = threading.Lock()

        def worker(n: int) -> None:
            for i in range(50):
                user_id = storage.insert_user(UserModel(username=f"u{n}_{i}", email=f"{n}_{i}@x.org"))
                with lock:
                    ids.append(user_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(ids)) == 200
        assert len(storage) == 200
