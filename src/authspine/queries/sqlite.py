"""SQLite query provider."""

from __future__ import annotations

from authspine.dialect import SQLiteDialect
from authspine.queries.base import SQLSessionQueries, SQLUserQueries


class SQLiteUserQueries(SQLUserQueries):
    """User statements for SQLite 3.

    Timestamps are stored as fixed-width ISO text, see
    :class:`~authspine.bridges.SQLiteBridge`.
    """

    dialect = SQLiteDialect()


class SQLiteSessionQueries(SQLSessionQueries):
    dialect = SQLiteDialect()


__all__ = ["SQLiteUserQueries", "SQLiteSessionQueries"]
