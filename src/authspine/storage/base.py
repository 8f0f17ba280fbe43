"""Storage interfaces shared by the SQL engines and the in-memory store."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from authspine.models import SessionEntry, UserField, UserID, UserModel


@runtime_checkable
class UserStorage(Protocol):
    """Persistence of user accounts."""

    def init_users(self) -> None:
        ...

    def get_user(self, user_id: UserID) -> UserModel:
        ...

    def get_user_by_name(self, username: str) -> UserModel:
        ...

    def get_user_by_email(self, email: str) -> UserModel:
        ...

    def insert_user(self, user: UserModel) -> UserID:
        ...

    def update_user(
        self,
        user_id: UserID,
        user: UserModel,
        fields: Sequence[UserField | str] | None = None,
    ) -> None:
        ...

    def delete_user(self, user_id: UserID) -> None:
        ...


@runtime_checkable
class SessionStorage(Protocol):
    """Persistence of login sessions."""

    def init_sessions(self) -> None:
        ...

    def get_session(self, key: str) -> SessionEntry:
        ...

    def insert_session(self, entry: SessionEntry) -> None:
        ...

    def delete_session(self, key: str) -> None:
        ...

    def clean_up(self, reference: datetime) -> int:
        ...

    def delete_for_user(self, user_id: UserID) -> int:
        ...


__all__ = ["UserStorage", "SessionStorage"]
