"""SQL template placeholders resolved once at construction.

Query providers write their statements as templates containing meta
variables of the form ``$NAME$`` (table names, the optional ``UNIQUE``
on the email column).  A :class:`SQLTemplateReplacer` maps those
variables to their values and resolves a template in one pass.

Manifesto:
    Table names and optional constraints are deployment choices, not code.
    Templates keep them configurable while the resolved statement text
    stays a plain, immutable string for the lifetime of the engine.

    - **Single pass:** all keys are matched simultaneously; substituted
      text is never scanned again, so a value that looks like another key
      is left alone
    - **Longest key wins:** overlapping keys resolve deterministically
    - **Configure, then share:** mutation is not thread-safe, ``apply`` is

Architecture::

    set / set_many / update_dict / delete ...
                  │
                  ▼  (recompile)
    re.compile("$USERS_TABLE_NAME$|$EMAIL_UNIQUE$|...")
                  │
                  ▼
    apply(template) ── pattern.sub(lookup) ──► resolved SQL

Examples:
    >>> r = default_sql_replacer()
    >>> r.apply("SELECT * FROM $USERS_TABLE_NAME$")
    'SELECT * FROM auth_user'
    >>> r.set("$USERS_TABLE_NAME$", "accounts")
    >>> r.apply("SELECT * FROM $USERS_TABLE_NAME$")
    'SELECT * FROM accounts'

Guardrails:
    ❌ DON'T: Mutate a replacer while other threads call ``apply``
    ✅ DO: Finish configuration, then hand it to query providers

    ❌ DON'T: Return templates with unresolved ``$NAME$`` from a provider
    ✅ DO: Apply the replacer once in the provider's constructor

Tags:
    templates, sql, placeholders, configuration, authspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authspine.settings import AuthSpineSettings

USERS_TABLE_NAME = "$USERS_TABLE_NAME$"
SESSIONS_TABLE_NAME = "$SESSIONS_TABLE_NAME$"
EMAIL_UNIQUE = "$EMAIL_UNIQUE$"

DEFAULT_TEMPLATE_VALUES: Mapping[str, str] = MappingProxyType(
    {
        USERS_TABLE_NAME: "auth_user",
        EMAIL_UNIQUE: "UNIQUE",
        SESSIONS_TABLE_NAME: "auth_session",
    }
)


class SQLTemplateReplacer:
    """
    Maps ``$NAME$`` meta variables to their values.

    Mutating methods recompile the matcher and are not safe to call
    concurrently with each other or with :meth:`apply`.  :meth:`apply`
    itself only reads immutable state and may be called from any thread
    once configuration is finished.
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = {}
        self._pattern: re.Pattern[str] | None = None
        self._lookup: Mapping[str, str] = MappingProxyType({})
        if entries:
            self.update_dict(entries)
        else:
            self._compile()

    @property
    def entries(self) -> Mapping[str, str]:
        """Read-only view of the current mapping."""
        return MappingProxyType(dict(self._entries))

    def has_key(self, key: str) -> bool:
        return key in self._entries

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, key: str, value: str) -> None:
        """Set a meta variable to a new value."""
        self._check_key(key)
        self._entries[key] = value
        self._compile()

    def set_many(self, *old_new: str) -> None:
        """Set several pairs given as ``KEY_1, VALUE_1, KEY_2, VALUE_2, ...``.

        Entries not mentioned are kept.

        Raises:
            ValueError: On an odd number of arguments.
        """
        if len(old_new) % 2 != 0:
            raise ValueError("set_many: odd argument count")
        pairs = dict(zip(old_new[::2], old_new[1::2], strict=True))
        for key in pairs:
            self._check_key(key)
        self._entries.update(pairs)
        self._compile()

    def update_dict(self, mapping: Mapping[str, str]) -> None:
        """Set every pair in ``mapping``; other entries are kept."""
        for key in mapping:
            self._check_key(key)
        self._entries.update(mapping)
        self._compile()

    def update(self, other: SQLTemplateReplacer) -> None:
        """Merge the entries of another replacer into this one."""
        self.update_dict(other._entries)

    def delete(self, key: str) -> None:
        """Remove a key.  Missing keys are ignored."""
        self._entries.pop(key, None)
        self._compile()

    def delete_many(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)
        self._compile()

    def apply(self, template: str) -> str:
        """Replace every known meta variable in ``template`` in one pass."""
        pattern, lookup = self._pattern, self._lookup
        if pattern is None:
            return template
        return pattern.sub(lambda m: lookup[m.group(0)], template)

    def copy(self) -> SQLTemplateReplacer:
        return SQLTemplateReplacer(self._entries)

    def _compile(self) -> None:
        lookup = MappingProxyType(dict(self._entries))
        if not lookup:
            pattern = None
        else:
            keys = sorted(lookup, key=len, reverse=True)
            pattern = re.compile("|".join(re.escape(k) for k in keys))
        self._pattern, self._lookup = pattern, lookup

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError(f"template key must be a non-empty string, got {key!r}")

    def __repr__(self) -> str:
        return f"SQLTemplateReplacer({self._entries!r})"


def default_sql_replacer() -> SQLTemplateReplacer:
    """Replacer with every documented meta variable at its default value."""
    return SQLTemplateReplacer(DEFAULT_TEMPLATE_VALUES)


def replacer_from_settings(settings: AuthSpineSettings) -> SQLTemplateReplacer:
    """Build the default replacer with table names and email uniqueness
    taken from ``settings``."""
    replacer = default_sql_replacer()
    replacer.set_many(
        USERS_TABLE_NAME, settings.users_table,
        SESSIONS_TABLE_NAME, settings.sessions_table,
        EMAIL_UNIQUE, "UNIQUE" if settings.email_unique else "",
    )
    return replacer


__all__ = [
    "USERS_TABLE_NAME",
    "SESSIONS_TABLE_NAME",
    "EMAIL_UNIQUE",
    "DEFAULT_TEMPLATE_VALUES",
    "SQLTemplateReplacer",
    "default_sql_replacer",
    "replacer_from_settings",
]
