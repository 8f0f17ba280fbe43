"""Tests for ``authspine.templates`` -- SQL template replacer."""

from __future__ import annotations

import pytest

from authspine.settings import AuthSpineSettings
from authspine.templates import (
    EMAIL_UNIQUE,
    SESSIONS_TABLE_NAME,
    USERS_TABLE_NAME,
    SQLTemplateReplacer,
    default_sql_replacer,
    replacer_from_settings,
)


class TestDefaults:
    def test_default_values(self):
        r = default_sql_replacer()
        assert r.apply(USERS_TABLE_NAME) == "auth_user"
        assert r.apply(SESSIONS_TABLE_NAME) == "auth_session"
        assert r.apply(EMAIL_UNIQUE) == "UNIQUE"
        assert len(r) == 3

    def test_defaults_are_independent_copies(self):
        a = default_sql_replacer()
        a.set(USERS_TABLE_NAME, "accounts")
        assert default_sql_replacer().apply(USERS_TABLE_NAME) == "auth_user"


class TestMutation:
    def test_set_and_has_key(self):
        r = SQLTemplateReplacer()
        assert not r.has_key("$A$")
        r.set("$A$", "x")
        assert r.has_key("$A$")
        assert "$A$" in r

    def test_set_many(self):
        r = default_sql_replacer()
        r.set_many(USERS_TABLE_NAME, "u", SESSIONS_TABLE_NAME, "s")
        assert r.apply(f"{USERS_TABLE_NAME} {SESSIONS_TABLE_NAME} {EMAIL_UNIQUE}") == "u s UNIQUE"

    def test_set_many_odd_count(self):
        r = SQLTemplateReplacer()
        with pytest.raises(ValueError):
            r.set_many("$A$", "x", "$B$")
        assert len(r) == 0

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            SQLTemplateReplacer().set("", "x")

    def test_update_dict_and_update(self):
        r = SQLTemplateReplacer({"$A$": "a"})
        r.update_dict({"$B$": "b"})
        r.update(SQLTemplateReplacer({"$A$": "A", "$C$": "c"}))
        assert dict(r.entries) == {"$A$": "A", "$B$": "b", "$C$": "c"}

    def test_delete_and_delete_many(self):
        r = default_sql_replacer()
        r.delete(EMAIL_UNIQUE)
        r.delete("$MISSING$")
        assert r.apply(EMAIL_UNIQUE) == EMAIL_UNIQUE
        r.delete_many(USERS_TABLE_NAME, SESSIONS_TABLE_NAME, "$MISSING$")
        assert len(r) == 0
        assert r.apply("SELECT 1") == "SELECT 1"

    def test_entries_is_read_only(self):
        r = default_sql_replacer()
        with pytest.raises(TypeError):
            r.entries[USERS_TABLE_NAME] = "x"  # type: ignore[index]


class TestApply:
    def test_replaces_every_occurrence(self):
        r = default_sql_replacer()
        sql = f"DELETE FROM {USERS_TABLE_NAME} WHERE id IN (SELECT id FROM {USERS_TABLE_NAME})"
        assert r.apply(sql) == "DELETE FROM auth_user WHERE id IN (SELECT id FROM auth_user)"

    def test_substituted_text_is_not_expanded_again(self):
        r = SQLTemplateReplacer({"$A$": "$B$", "$B$": "b"})
        assert r.apply("$A$ $B$") == "$B$ b"

    def test_longest_key_wins(self):
        r = SQLTemplateReplacer({"$T$": "short", "$T$_IDX$": "long"})
        assert r.apply("$T$_IDX$") == "long"

    def test_unknown_placeholders_are_left(self):
        assert default_sql_replacer().apply("$NOPE$") == "$NOPE$"

    def test_copy_is_independent(self):
        r = default_sql_replacer()
        c = r.copy()
        c.set(USERS_TABLE_NAME, "other")
        assert r.apply(USERS_TABLE_NAME) == "auth_user"


class TestFromSettings:
    def test_settings_values(self):
        settings = AuthSpineSettings(
            users_table="accounts", sessions_table="logins", email_unique=False
        )
        r = replacer_from_settings(settings)
        assert r.apply(USERS_TABLE_NAME) == "accounts"
        assert r.apply(SESSIONS_TABLE_NAME) == "logins"
        assert r.apply(EMAIL_UNIQUE) == ""
