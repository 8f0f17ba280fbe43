"""
authspine - user and session persistence over many SQL dialects.

One execution engine for users and one for sessions; each dialect only
supplies statement text (a query provider) and a bridge for timestamps and
duplicate-key errors.

Examples:
    >>> from authspine import SQLiteDatabase, create_storages, UserModel
    >>> users, sessions = create_storages(SQLiteDatabase(":memory:"))
    >>> users.init_users(); sessions.init_sessions()
    >>> uid = users.insert_user(UserModel(username="alice", email="a@x.org"))
"""

__version__ = "0.1.0"

from authspine.adapters import (
    Database,
    DBAPIDatabase,
    ExecResult,
    SQLiteDatabase,
    Transaction,
    mysql_database,
    postgresql_database,
)
from authspine.bridges import MySQLBridge, PostgreSQLBridge, SQLBridge, SQLiteBridge
from authspine.errors import (
    AlreadyExistsError,
    AmbiguousUpdateError,
    AuthSpineError,
    ConfigError,
    DatabaseError,
    ErrorCategory,
    InvalidUserFieldError,
    LookupKey,
    NoSuchSessionError,
    NoSuchUserError,
    NotFoundError,
    NotSupportedError,
    RetryExhaustedError,
    RollbackError,
    SessionExistsError,
    UserExistsError,
    UserValidationError,
    ValidationError,
)
from authspine.memory import MemorySessionStorage, MemoryUserStorage
from authspine.models import (
    INVALID_USER_ID,
    ZERO_TIME,
    SessionEntry,
    UserField,
    UserID,
    UserModel,
)
from authspine.registry import Backend, create_storages, get_backend, open_database, register_backend
from authspine.session_keys import gen_session_key, insert_session_with_retry, new_session_with_key
from authspine.settings import AuthSpineSettings
from authspine.storage import SessionStorage, SQLSessionStorage, SQLUserStorage, UserStorage
from authspine.templates import SQLTemplateReplacer, default_sql_replacer

__all__ = [
    "__version__",
    # Models
    "UserID",
    "INVALID_USER_ID",
    "ZERO_TIME",
    "UserField",
    "UserModel",
    "SessionEntry",
    # Storage
    "UserStorage",
    "SessionStorage",
    "SQLUserStorage",
    "SQLSessionStorage",
    "MemoryUserStorage",
    "MemorySessionStorage",
    # Backing stores
    "Database",
    "Transaction",
    "ExecResult",
    "SQLiteDatabase",
    "DBAPIDatabase",
    "postgresql_database",
    "mysql_database",
    # Bridges / templates
    "SQLBridge",
    "SQLiteBridge",
    "PostgreSQLBridge",
    "MySQLBridge",
    "SQLTemplateReplacer",
    "default_sql_replacer",
    # Sessions
    "gen_session_key",
    "new_session_with_key",
    "insert_session_with_retry",
    # Registry / settings
    "Backend",
    "get_backend",
    "register_backend",
    "create_storages",
    "open_database",
    "AuthSpineSettings",
    # Errors
    "AuthSpineError",
    "ErrorCategory",
    "LookupKey",
    "NotFoundError",
    "NoSuchUserError",
    "NoSuchSessionError",
    "AlreadyExistsError",
    "UserExistsError",
    "SessionExistsError",
    "AmbiguousUpdateError",
    "RetryExhaustedError",
    "NotSupportedError",
    "DatabaseError",
    "RollbackError",
    "ValidationError",
    "InvalidUserFieldError",
    "UserValidationError",
    "ConfigError",
]
