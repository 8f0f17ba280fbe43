"""
Structured error types for authspine.

Every condition the storage engines report is a typed exception carrying a
category, structured context and (where one exists) the chained driver
error.  Callers branch on these types and never have to inspect
backend-specific exceptions.

Manifesto:
    - **Typed taxonomy:** NotFound, AlreadyExists, AmbiguousUpdate,
      NotSupported, Rollback and RetryExhausted are distinct classes
    - **Tagged lookups:** not-found errors say which key was used
    - **Nothing lost:** compound errors keep every underlying failure
    - **Pass-through:** unclassified driver errors propagate unchanged

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       AuthSpineError                             │
        │              (category, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  NotFoundError        AlreadyExistsError     AmbiguousUpdateError│
        │  (NOT_FOUND)          (CONFLICT)             (CONFLICT)          │
        │      │                     │                                     │
        │  NoSuchUserError      UserExistsError        RetryExhaustedError │
        │  NoSuchSessionError   SessionExistsError     (CONFLICT)          │
        │                                                                  │
        │  NotSupportedError    DatabaseError          ValidationError     │
        │  (UNSUPPORTED)        (DATABASE)             (VALIDATION)        │
        │                           │                      │               │
        │                       NoRowsError            InvalidUserField    │
        │                       RollbackError          ScanTypeError       │
        │                       DatabaseConnection     UserValidationError │
        │                                                                  │
        │  ConfigError (CONFIG)                                            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> err = NoSuchUserError(LookupKey.USERNAME, "alice")
    >>> err.lookup
    <LookupKey.USERNAME: 'username'>
    >>> str(err)
    "no user with username 'alice'"

    >>> try:
    ...     storage.insert_user(user)
    ... except UserExistsError:
    ...     ...

Guardrails:
    ❌ DON'T: Catch the driver's IntegrityError in calling code
    ✅ DO: Catch UserExistsError / SessionExistsError

    ❌ DON'T: Drop the rollback failure when reporting the original error
    ✅ DO: Raise RollbackError(initial, rollback)

Tags:
    error-handling, exception-hierarchy, error-context, authspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and logging."""

    NOT_FOUND = "NOT_FOUND"       # Lookup miss
    CONFLICT = "CONFLICT"         # Uniqueness violations
    UNSUPPORTED = "UNSUPPORTED"   # Backend cannot report a result detail
    DATABASE = "DATABASE"         # Backing store failures
    VALIDATION = "VALIDATION"     # Bad input, wrong types
    CONFIG = "CONFIG"             # Settings, unknown dialects, missing drivers
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


class LookupKey(str, Enum):
    """Which key a failed user lookup used."""

    ID = "id"
    USERNAME = "username"
    EMAIL = "email"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields end up in ``to_dict()``; anything that does not
    have a dedicated field goes into ``metadata``.

    Attributes:
        operation: Storage operation that failed (e.g. ``insert_user``)
        backend: Dialect name of the backing store
        table: Table the statement targeted
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    backend: str | None = None
    table: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("operation", "backend", "table"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AuthSpineError(Exception):
    """
    Base exception for all authspine errors.

    Subclasses set ``default_category``; instances carry a message, an
    :class:`ErrorContext` and an optional chained ``cause``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AuthSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DatabaseError("insert failed").with_context(
                operation="insert_user", backend="sqlite"
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# NOT FOUND
# =============================================================================


class NotFoundError(AuthSpineError):
    """A lookup matched no record."""

    default_category = ErrorCategory.NOT_FOUND


class NoSuchUserError(NotFoundError):
    """No user matches the given id, username or email."""

    def __init__(self, lookup: LookupKey, value: Any, **kwargs: Any):
        self.lookup = lookup
        self.value = value
        super().__init__(f"no user with {lookup.value} {value!r}", **kwargs)


class NoSuchSessionError(NotFoundError):
    """No session is stored under the given key."""

    def __init__(self, key: str, **kwargs: Any):
        self.key = key
        super().__init__(f"no session with key {key!r}", **kwargs)


# =============================================================================
# CONFLICTS
# =============================================================================


class AlreadyExistsError(AuthSpineError):
    """Insert rejected because a unique value is already taken."""

    default_category = ErrorCategory.CONFLICT


class UserExistsError(AlreadyExistsError):
    """A user with the same username (or email, if unique) exists."""

    def __init__(self, message: str, *, value: Any = None, **kwargs: Any):
        self.value = value
        super().__init__(message, **kwargs)


class SessionExistsError(AlreadyExistsError):
    """A session with the same key exists."""

    def __init__(self, key: str, **kwargs: Any):
        self.key = key
        super().__init__(f"session with key {key!r} already exists", **kwargs)


class AmbiguousUpdateError(AuthSpineError):
    """Update would violate a uniqueness constraint."""

    default_category = ErrorCategory.CONFLICT


class RetryExhaustedError(AuthSpineError):
    """Every attempt of a bounded retry collided.

    ``errors`` holds each collision in the order it happened.
    """

    default_category = ErrorCategory.CONFLICT

    def __init__(self, errors: list[BaseException], **kwargs: Any):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"giving up after {len(self.errors)} attempt(s): {details}",
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [str(e) for e in self.errors]
        return result


# =============================================================================
# UNSUPPORTED
# =============================================================================


class NotSupportedError(AuthSpineError):
    """
    The backend cannot report a result detail.

    Raised when a driver cannot return the generated id of an insert or the
    affected-row count of a bulk delete.  The underlying statement DID take
    effect; only the reported value is missing.
    """

    default_category = ErrorCategory.UNSUPPORTED


# =============================================================================
# DATABASE
# =============================================================================


class DatabaseError(AuthSpineError):
    """Backing store query or transaction error."""

    default_category = ErrorCategory.DATABASE


class NoRowsError(DatabaseError):
    """A single-row query returned no rows."""

    def __init__(self, message: str = "query returned no rows", **kwargs: Any):
        super().__init__(message, **kwargs)


class DatabaseConnectionError(DatabaseError):
    """Could not open or use a connection."""


class RollbackError(DatabaseError):
    """
    A statement failed and undoing the transaction failed as well.

    Both failures are kept: ``initial`` is the error that triggered the
    rollback, ``rollback`` the error raised by the rollback itself.
    """

    def __init__(self, initial: BaseException, rollback: BaseException, **kwargs: Any):
        self.initial = initial
        self.rollback = rollback
        super().__init__(
            f"statement failed: {initial}, unable to rollback: {rollback}",
            cause=initial,
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["rollback_error"] = str(self.rollback)
        return result


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationError(AuthSpineError):
    """Invalid input.  Carries the offending field when known."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class InvalidUserFieldError(ValidationError):
    """A field name does not resolve to an updatable user field."""


class ScanTypeError(ValidationError, TypeError):
    """A scanned column value has the wrong dynamic type."""


class UserValidationError(ValidationError):
    """A user model failed a validator."""


# =============================================================================
# CONFIGURATION
# =============================================================================


class ConfigError(AuthSpineError):
    """Configuration error (unknown dialect, missing driver, bad setting)."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "LookupKey",
    "ErrorContext",
    "AuthSpineError",
    # Not found
    "NotFoundError",
    "NoSuchUserError",
    "NoSuchSessionError",
    # Conflicts
    "AlreadyExistsError",
    "UserExistsError",
    "SessionExistsError",
    "AmbiguousUpdateError",
    "RetryExhaustedError",
    # Unsupported
    "NotSupportedError",
    # Database
    "DatabaseError",
    "NoRowsError",
    "DatabaseConnectionError",
    "RollbackError",
    # Validation
    "ValidationError",
    "InvalidUserFieldError",
    "ScanTypeError",
    "UserValidationError",
    # Config
    "ConfigError",
]
