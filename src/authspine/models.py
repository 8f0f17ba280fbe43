"""
User and session records.

Defines the two record kinds the storage engines persist, the reserved
sentinel id, the zero instant, and the explicit field identifiers used by
partial updates.

Manifesto:
    Partial updates name fields.  Resolving those names by reflection on
    arbitrary attributes lets typos and the immutable id slip through, so
    every updatable field is an enum member looked up through one fixed
    table: attribute, timestamp flag, default column.

    - **UserField:** the ten non-ID fields, in statement order
    - **Column tables:** read-only mappings handed to query providers
    - **Zero instant:** ``ZERO_TIME`` marks "never logged in"

Architecture:
    ::

        UserField.parse("EMail")  ──►  UserField.EMAIL
                                          │
                    ┌─────────────────────┼─────────────────────┐
                    ▼                     ▼                     ▼
              attr "email"        is_time False     DEFAULT_USER_COLUMNS
                                                     [EMAIL] = "email"

Examples:
    >>> UserField.parse("is_superuser")
    <UserField.IS_SUPERUSER: 'is_superuser'>
    >>> user = UserModel(username="alice")
    >>> user.get_field("Username")
    'alice'
    >>> user.never_logged_in()
    True

Tags:
    models, user, session, dataclass, authspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, NewType

from authspine.errors import InvalidUserFieldError

UserID = NewType("UserID", int)

# Reserved id meaning "no valid identifier".
INVALID_USER_ID = UserID(-1)

# Year 1 UTC; a last_login equal to this means "never logged in".
ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)

# Generated session keys: 29 random bytes, unpadded URL-safe base64.
SESSION_KEY_BYTES = 29
SESSION_KEY_LENGTH = 39


class UserField(str, Enum):
    """Updatable user fields.

    Declaration order is the fixed statement order used for inserts and
    full updates.  The value is the :class:`UserModel` attribute name.
    """

    USERNAME = "username"
    PASSWORD = "password"
    EMAIL = "email"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    IS_SUPERUSER = "is_superuser"
    IS_STAFF = "is_staff"
    IS_ACTIVE = "is_active"
    DATE_JOINED = "date_joined"
    LAST_LOGIN = "last_login"

    @property
    def attr(self) -> str:
        return self.value

    @property
    def is_time(self) -> bool:
        """Whether values must pass through the bridge's time conversion."""
        return self in _TIME_FIELDS

    @classmethod
    def parse(cls, name: UserField | str) -> UserField:
        """Resolve a field name case-insensitively.

        Underscores are ignored, so ``"EMail"``, ``"email"``,
        ``"IsSuperUser"`` and ``"is_superuser"`` all resolve.  The id is
        not updatable and never resolves.

        Raises:
            InvalidUserFieldError: If ``name`` is not one of the ten fields.
        """
        if isinstance(name, UserField):
            return name
        if not isinstance(name, str):
            raise InvalidUserFieldError(
                f"field name must be a string, got {type(name).__name__}",
                value=name,
            )
        member = _FIELDS_BY_NORMALIZED_NAME.get(_normalize(name))
        if member is None:
            raise InvalidUserFieldError(f"unknown user field {name!r}", field=name)
        return member

    @classmethod
    def parse_many(cls, names: Iterable[UserField | str]) -> tuple[UserField, ...]:
        """Resolve every name; repeats (``"email"``, ``"EMail"``) keep the first position."""
        return tuple(dict.fromkeys(cls.parse(name) for name in names))


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


_TIME_FIELDS = frozenset({UserField.DATE_JOINED, UserField.LAST_LOGIN})

_FIELDS_BY_NORMALIZED_NAME: Mapping[str, UserField] = MappingProxyType(
    {_normalize(f.value): f for f in UserField}
)

# Fixed order of the ten non-ID fields in INSERT and full UPDATE statements.
USER_FIELD_ORDER: tuple[UserField, ...] = tuple(UserField)

# Column names keyed by field; "id" is the primary key column.
DEFAULT_USER_COLUMNS: Mapping[str, str] = MappingProxyType(
    {
        "id": "id",
        UserField.USERNAME.value: "username",
        UserField.PASSWORD.value: "password",
        UserField.EMAIL.value: "email",
        UserField.FIRST_NAME.value: "first_name",
        UserField.LAST_NAME.value: "last_name",
        UserField.IS_SUPERUSER.value: "is_superuser",
        UserField.IS_STAFF.value: "is_staff",
        UserField.IS_ACTIVE.value: "is_active",
        UserField.DATE_JOINED.value: "date_joined",
        UserField.LAST_LOGIN.value: "last_login",
    }
)

DEFAULT_SESSION_COLUMNS: Mapping[str, str] = MappingProxyType(
    {
        "key": "key",
        "user": "user",
        "expire_date": "expire_date",
    }
)


@dataclass
class UserModel:
    """
    A user account.

    ``password`` is an opaque hash.  ``id``, ``date_joined`` and
    ``last_login`` are assigned by the storage on insert; callers leave
    them at their defaults when creating a user.
    """

    id: UserID = INVALID_USER_ID
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    password: str = ""
    is_active: bool = False
    is_superuser: bool = False
    is_staff: bool = False
    date_joined: datetime = ZERO_TIME
    last_login: datetime = ZERO_TIME

    def get_field(self, name: UserField | str) -> Any:
        """Return the current value of an updatable field."""
        return getattr(self, UserField.parse(name).attr)

    def never_logged_in(self) -> bool:
        return self.last_login == ZERO_TIME

    def copy(self) -> UserModel:
        return dataclasses.replace(self)


@dataclass
class SessionEntry:
    """A login session: random key, owning user, expiry instant."""

    key: str
    user: UserID
    expire_date: datetime

    def is_valid(self, reference: datetime) -> bool:
        """True iff ``reference`` is strictly before the expiry."""
        return reference < self.expire_date

    def copy(self) -> SessionEntry:
        return dataclasses.replace(self)


__all__ = [
    "UserID",
    "INVALID_USER_ID",
    "ZERO_TIME",
    "SESSION_KEY_BYTES",
    "SESSION_KEY_LENGTH",
    "UserField",
    "USER_FIELD_ORDER",
    "DEFAULT_USER_COLUMNS",
    "DEFAULT_SESSION_COLUMNS",
    "UserModel",
    "SessionEntry",
]
