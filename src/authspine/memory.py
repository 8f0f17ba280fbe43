"""
In-memory reference storage.

Implements :class:`~authspine.storage.UserStorage` and
:class:`~authspine.storage.SessionStorage` with plain dictionaries and the
same operations, errors and idempotency rules as the SQL engines.  Used as
the reference in the conformance tests and as a stand-in store for
applications' own tests.

Records are copied on the way in and on the way out; callers never alias
stored state.  A re-entrant lock guards every operation.

Examples:
    >>> users = MemoryUserStorage()
    >>> uid = users.insert_user(UserModel(username="alice", email="a@x.org"))
    >>> users.get_user_by_name("alice").id == uid
    True

Tags:
    memory, reference, storage, testing, authspine
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import UTC, datetime

from authspine.errors import (
    AmbiguousUpdateError,
    InvalidUserFieldError,
    LookupKey,
    NoSuchSessionError,
    NoSuchUserError,
    SessionExistsError,
    UserExistsError,
)
from authspine.logging import get_logger
from authspine.session_keys import DEFAULT_KEY_ATTEMPTS
from authspine.models import (
    INVALID_USER_ID,
    USER_FIELD_ORDER,
    ZERO_TIME,
    SessionEntry,
    UserField,
    UserID,
    UserModel,
)

logger = get_logger(__name__)


class MemoryUserStorage:
    """
    Users in a dict keyed by id.  Ids start at 1 and are never reused.

    Parameters:
        email_unique: Reject a second user with the same email.  When
            False, :meth:`get_user_by_email` returns the lowest matching id.
    """

    def __init__(self, email_unique: bool = True):
        self.email_unique = email_unique
        self._lock = threading.RLock()
        self._users: dict[UserID, UserModel] = {}
        self._next_id = 1

    def init_users(self) -> None:
        pass

    def get_user(self, user_id: UserID) -> UserModel:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NoSuchUserError(LookupKey.ID, user_id)
            return user.copy()

    def get_user_by_name(self, username: str) -> UserModel:
        with self._lock:
            user = self._find(lambda u: u.username == username)
            if user is None:
                raise NoSuchUserError(LookupKey.USERNAME, username)
            return user.copy()

    def get_user_by_email(self, email: str) -> UserModel:
        with self._lock:
            user = self._find(lambda u: u.email == email)
            if user is None:
                raise NoSuchUserError(LookupKey.EMAIL, email)
            return user.copy()

    def insert_user(self, user: UserModel) -> UserID:
        user.id = INVALID_USER_ID
        user.date_joined = datetime.now(UTC)
        user.last_login = ZERO_TIME
        with self._lock:
            if self._find(lambda u: u.username == user.username) is not None:
                raise UserExistsError(
                    f"user with username {user.username!r} already exists",
                    value=user.username,
                )
            if self.email_unique and self._find(lambda u: u.email == user.email) is not None:
                raise UserExistsError(
                    f"user with email {user.email!r} already exists",
                    value=user.email,
                )
            user.id = UserID(self._next_id)
            self._next_id += 1
            self._users[user.id] = user.copy()
            logger.debug("user_inserted", backend="memory", user_id=user.id)
            return user.id

    def update_user(
        self,
        user_id: UserID,
        user: UserModel,
        fields: Sequence[UserField | str] | None = None,
    ) -> None:
        resolved = UserField.parse_many(fields) if fields else USER_FIELD_ORDER
        for f in resolved:
            if f.is_time and not isinstance(getattr(user, f.attr), datetime):
                raise InvalidUserFieldError(
                    f"{f.value} must be a datetime",
                    field=f.value,
                    value=getattr(user, f.attr),
                )

        with self._lock:
            existing = self._users.get(user_id)
            if existing is None:
                return
            updated = existing.copy()
            for f in resolved:
                setattr(updated, f.attr, getattr(user, f.attr))

            others = [u for uid, u in self._users.items() if uid != user_id]
            if any(u.username == updated.username for u in others):
                raise AmbiguousUpdateError(f"username {updated.username!r} is already in use")
            if self.email_unique and any(u.email == updated.email for u in others):
                raise AmbiguousUpdateError(f"email {updated.email!r} is already in use")
            self._users[user_id] = updated

    def delete_user(self, user_id: UserID) -> None:
        with self._lock:
            self._users.pop(user_id, None)

    def _find(self, predicate) -> UserModel | None:
        for user_id in sorted(self._users):
            user = self._users[user_id]
            if predicate(user):
                return user
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


class MemorySessionStorage:
    """Sessions in a dict keyed by session key."""

    def __init__(self, key_attempts: int = DEFAULT_KEY_ATTEMPTS) -> None:
        self.key_attempts = key_attempts
        self._lock = threading.RLock()
        self._sessions: dict[str, SessionEntry] = {}

    def init_sessions(self) -> None:
        pass

    def get_session(self, key: str) -> SessionEntry:
        with self._lock:
            entry = self._sessions.get(key)
            if entry is None:
                raise NoSuchSessionError(key)
            return entry.copy()

    def insert_session(self, entry: SessionEntry) -> None:
        with self._lock:
            if entry.key in self._sessions:
                raise SessionExistsError(entry.key)
            self._sessions[entry.key] = entry.copy()

    def delete_session(self, key: str) -> None:
        with self._lock:
            self._sessions.pop(key, None)

    def clean_up(self, reference: datetime) -> int:
        """Remove sessions with ``expire_date <= reference``."""
        return self._remove_where(lambda s: s.expire_date <= reference)

    def delete_for_user(self, user_id: UserID) -> int:
        return self._remove_where(lambda s: s.user == user_id)

    def _remove_where(self, predicate) -> int:
        with self._lock:
            doomed = [key for key, entry in self._sessions.items() if predicate(entry)]
            for key in doomed:
                del self._sessions[key]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["MemoryUserStorage", "MemorySessionStorage"]
