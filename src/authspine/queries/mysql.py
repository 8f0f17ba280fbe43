"""MySQL query provider.

MySQL has no ``CREATE INDEX IF NOT EXISTS``; indexes are part of the
``CREATE TABLE`` statement and the separate index statements are empty
(the init runner skips them).
"""

from __future__ import annotations

from authspine.dialect import MySQLDialect
from authspine.queries.base import SQLSessionQueries, SQLUserQueries


class MySQLUserQueries(SQLUserQueries):
    dialect = MySQLDialect()


class MySQLSessionQueries(SQLSessionQueries):
    dialect = MySQLDialect()


__all__ = ["MySQLUserQueries", "MySQLSessionQueries"]
