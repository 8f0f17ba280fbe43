"""Deployment settings for authspine.

Table names, email uniqueness and the backing store are deployment
choices.  ``AuthSpineSettings`` reads them from ``AUTHSPINE_*`` environment
variables or a ``.env`` file and validates them once at startup.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A typo in a table name should fail when the settings load, not when
    the first login is stored.

    - **Pydantic validation:** Type-checked at startup
    - **Environment-driven:** ``AUTHSPINE_`` prefix, ``.env`` support
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> settings = AuthSpineSettings(users_table="accounts", email_unique=False)
    >>> replacer_from_settings(settings).apply("$USERS_TABLE_NAME$")
    'accounts'

Tags:
    settings, configuration, pydantic, environment, authspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from authspine.dialect import get_dialect
from authspine.errors import ConfigError

# Plain or schema-qualified SQL identifier.
_TABLE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class AuthSpineSettings(BaseSettings):
    """Settings for building storages and configuring logging.

    Fields
    ──────
    dialect              : Backend name (sqlite, postgresql, mysql)
    database             : SQLite path or PostgreSQL DSN
    users_table          : Value of ``$USERS_TABLE_NAME$``
    sessions_table       : Value of ``$SESSIONS_TABLE_NAME$``
    email_unique         : Emit ``UNIQUE`` on the email column
    session_key_attempts : Attempts of the session key retry helper
    log_level            : Structlog log level
    json_logs            : JSON logs; None auto-detects from the tty
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend ──────────────────────────────────────────────────
    dialect: str = "sqlite"
    database: str = ":memory:"

    # ── Schema ───────────────────────────────────────────────────
    users_table: str = "auth_user"
    sessions_table: str = "auth_session"
    email_unique: bool = True

    # ── Sessions ─────────────────────────────────────────────────
    session_key_attempts: int = Field(default=3, ge=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        try:
            return get_dialect(value).name
        except ConfigError as e:
            raise ValueError(str(e)) from e

    @field_validator("users_table", "sessions_table")
    @classmethod
    def _valid_table_name(cls, value: str) -> str:
        if not _TABLE_NAME_RE.fullmatch(value):
            raise ValueError(f"invalid table name {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level


__all__ = ["AuthSpineSettings"]
