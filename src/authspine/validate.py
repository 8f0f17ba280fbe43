"""
User and password validators.

User validators check a :class:`~authspine.models.UserModel` before it is
stored and raise :class:`~authspine.errors.UserValidationError` naming the
offending field.  They test the stored form (the password is a hash), and
their length limits are the column widths of the SQL schema.

Password verifiers check a clear-text password before hashing and return
``bool``; build them with :func:`pw_len_verifier` and
:func:`pw_contains_all`.

Examples:
    >>> validate_user(UserModel(username="alice", email="a@b.org", password="h"))
    >>> strong = pw_contains_all([lower_letter_class, digit_class])
    >>> strong("abc1"), strong("abc")
    (True, False)

Tags:
    validation, user, password, authspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence

from authspine.errors import UserValidationError
from authspine.models import UserModel

USERNAME_MAX_LEN = 150
PASSWORD_HASH_MAX_LEN = 270
EMAIL_MAX_LEN = 254
FIRST_NAME_MAX_LEN = 50
LAST_NAME_MAX_LEN = 150

EMAIL_RE = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")

# A letter, then letters and digits; "_" and "." only singly and never last.
USERNAME_RE = re.compile(r"[a-zA-Z](?:[a-zA-Z0-9]|[_.][a-zA-Z0-9])*")

SPECIAL_CHARACTERS = "~!@#$%^&*()+=_-{}[]\\|:;?/<>,"

UserValidator = Callable[[UserModel], None]
PasswordVerifier = Callable[[str], bool]
RuneClass = Callable[[str], bool]


# =============================================================================
# Field checks
# =============================================================================


def _fail(message: str, field: str, value: object) -> UserValidationError:
    return UserValidationError(message, field=field, value=value)


def verify_name_exists(user: UserModel) -> None:
    if not user.username.strip():
        raise _fail("no username given", "username", user.username)


def verify_email_exists(user: UserModel) -> None:
    if not user.email.strip():
        raise _fail("no email given", "email", user.email)


def verify_password_exists(user: UserModel) -> None:
    if not user.password.strip():
        raise _fail("no password set", "password", None)


def is_email_syntax_valid(email: str) -> bool:
    """Syntax only; the length is checked by :func:`check_email_max_len`."""
    return EMAIL_RE.fullmatch(email) is not None


def verify_email_syntax(user: UserModel) -> None:
    if not is_email_syntax_valid(user.email):
        raise _fail("invalid syntax in email", "email", user.email)


def _check_max_len(value: str, limit: int, field: str, label: str) -> None:
    if len(value) > limit:
        raise _fail(f"{label} is longer than {limit} characters", field, value)


def check_username_max_len(username: str) -> None:
    _check_max_len(username, USERNAME_MAX_LEN, "username", "username")


def check_password_hash_max_len(password: str) -> None:
    if len(password) > PASSWORD_HASH_MAX_LEN:
        raise _fail(
            f"password is longer than {PASSWORD_HASH_MAX_LEN} characters", "password", None
        )


def check_email_max_len(email: str) -> None:
    _check_max_len(email, EMAIL_MAX_LEN, "email", "email")


def check_first_name_max_len(name: str) -> None:
    _check_max_len(name, FIRST_NAME_MAX_LEN, "first_name", "first name")


def check_last_name_max_len(name: str) -> None:
    _check_max_len(name, LAST_NAME_MAX_LEN, "last_name", "last name")


def verify_standard_user_max_lens(user: UserModel) -> None:
    """Check every string field against its column width; first failure wins."""
    check_username_max_len(user.username)
    check_password_hash_max_len(user.password)
    check_email_max_len(user.email)
    check_first_name_max_len(user.first_name)
    check_last_name_max_len(user.last_name)


def check_username_syntax(username: str) -> None:
    if USERNAME_RE.fullmatch(username) is None:
        raise _fail("invalid username syntax", "username", username)


def _all_letters(name: str) -> bool:
    return all(ch.isalpha() for ch in name)


def check_first_name_syntax(name: str) -> None:
    """Every character must be a letter; the empty name passes."""
    if not _all_letters(name):
        raise _fail("invalid first name", "first_name", name)


def check_last_name_syntax(name: str) -> None:
    if not _all_letters(name):
        raise _fail("invalid last name", "last_name", name)


DEFAULT_USER_VALIDATORS: tuple[UserValidator, ...] = (
    verify_name_exists,
    verify_email_exists,
    verify_password_exists,
    verify_email_syntax,
    verify_standard_user_max_lens,
)


def validate_user(
    user: UserModel,
    validators: Iterable[UserValidator] = DEFAULT_USER_VALIDATORS,
) -> None:
    """Run ``validators`` in order.

    Raises:
        UserValidationError: From the first validator that fails.
    """
    for validator in validators:
        validator(user)


# =============================================================================
# Password verifiers
# =============================================================================


def pw_len_verifier(min_len: int, max_len: int) -> PasswordVerifier:
    """Length between ``min_len`` and ``max_len`` inclusive; ``-1`` disables a bound."""

    def verify(pw: str) -> bool:
        n = len(pw)
        if min_len >= 0 and n < min_len:
            return False
        if max_len >= 0 and n > max_len:
            return False
        return True

    return verify


def class_counter(classes: Sequence[RuneClass], s: str) -> int:
    """Number of classes matched by at least one character of ``s``."""
    return sum(1 for cls in classes if any(cls(ch) for ch in s))


def pw_contains_all(classes: Sequence[RuneClass]) -> PasswordVerifier:
    """Password must contain at least one character of every class."""
    classes = tuple(classes)

    def verify(pw: str) -> bool:
        return class_counter(classes, pw) == len(classes)

    return verify


def lower_letter_class(ch: str) -> bool:
    return "a" <= ch <= "z"


def upper_letter_class(ch: str) -> bool:
    return "A" <= ch <= "Z"


def digit_class(ch: str) -> bool:
    return "0" <= ch <= "9"


def special_character_class(ch: str) -> bool:
    return ch in SPECIAL_CHARACTERS


__all__ = [
    "USERNAME_MAX_LEN",
    "PASSWORD_HASH_MAX_LEN",
    "EMAIL_MAX_LEN",
    "FIRST_NAME_MAX_LEN",
    "LAST_NAME_MAX_LEN",
    "EMAIL_RE",
    "USERNAME_RE",
    "SPECIAL_CHARACTERS",
    "UserValidator",
    "PasswordVerifier",
    "RuneClass",
    "verify_name_exists",
    "verify_email_exists",
    "verify_password_exists",
    "is_email_syntax_valid",
    "verify_email_syntax",
    "check_username_max_len",
    "check_password_hash_max_len",
    "check_email_max_len",
    "check_first_name_max_len",
    "check_last_name_max_len",
    "verify_standard_user_max_lens",
    "check_username_syntax",
    "check_first_name_syntax",
    "check_last_name_syntax",
    "DEFAULT_USER_VALIDATORS",
    "validate_user",
    "pw_len_verifier",
    "class_counter",
    "pw_contains_all",
    "lower_letter_class",
    "upper_letter_class",
    "digit_class",
    "special_character_class",
]
