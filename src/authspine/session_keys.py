"""
Session key generation and collision retry.

Keys are 29 bytes from :mod:`secrets` encoded as URL-safe base64 without
padding, always 39 characters.  Collisions are astronomically unlikely but
not impossible, so :func:`insert_session_with_retry` re-keys a session on
:class:`~authspine.errors.SessionExistsError` a bounded number of times.

Examples:
    >>> key = gen_session_key()
    >>> len(key)
    39
    >>> entry = new_session_with_key(UserID(7), expire)
    >>> insert_session_with_retry(storage, entry, attempts=3)

Guardrails:
    ❌ DON'T: Retry on every error
    ✅ DO: Retry only key collisions; everything else propagates at once
"""

from __future__ import annotations

import base64
import secrets
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from authspine.errors import RetryExhaustedError, SessionExistsError
from authspine.logging import get_logger
from authspine.models import SESSION_KEY_BYTES, SESSION_KEY_LENGTH, SessionEntry, UserID

logger = get_logger(__name__)

DEFAULT_KEY_ATTEMPTS = 3


class SessionInserter(Protocol):
    def insert_session(self, entry: SessionEntry) -> None:
        ...


def gen_session_key() -> str:
    """Cryptographically random 39-character URL-safe key."""
    raw = secrets.token_bytes(SESSION_KEY_BYTES)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def new_session_with_key(user: UserID, expire_date: datetime) -> SessionEntry:
    """A session for ``user`` with a freshly generated key."""
    return SessionEntry(key=gen_session_key(), user=user, expire_date=expire_date)


def insert_session_with_retry(
    storage: SessionInserter,
    entry: SessionEntry,
    attempts: int | None = None,
    key_generator: Callable[[], str] = gen_session_key,
) -> SessionEntry:
    """
    Insert ``entry``, generating a new key after every key collision.

    The first attempt uses ``entry.key`` as given.  ``entry`` is updated in
    place and returned, so the caller sees the key that was stored.
    Without ``attempts`` the storage's ``key_attempts`` is used (set from
    ``AUTHSPINE_SESSION_KEY_ATTEMPTS`` by
    :func:`~authspine.registry.create_storages`), else
    :data:`DEFAULT_KEY_ATTEMPTS`.

    Raises:
        ValueError: If ``attempts < 1``.
        RetryExhaustedError: After ``attempts`` collisions; ``errors`` holds
            each :class:`SessionExistsError` in order.
    """
    if attempts is None:
        attempts = getattr(storage, "key_attempts", DEFAULT_KEY_ATTEMPTS)
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    collisions: list[BaseException] = []
    for attempt in range(1, attempts + 1):
        try:
            storage.insert_session(entry)
        except SessionExistsError as e:
            collisions.append(e)
            logger.warning(
                "session_key_collision",
                user_id=entry.user,
                attempt=attempt,
                attempts=attempts,
            )
            if attempt < attempts:
                entry.key = key_generator()
            continue
        return entry

    raise RetryExhaustedError(collisions).with_context(
        operation="insert_session", user_id=entry.user
    )


__all__ = [
    "SESSION_KEY_BYTES",
    "SESSION_KEY_LENGTH",
    "DEFAULT_KEY_ATTEMPTS",
    "SessionInserter",
    "gen_session_key",
    "new_session_with_key",
    "insert_session_with_retry",
]
