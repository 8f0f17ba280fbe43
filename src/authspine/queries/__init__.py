"""Query providers: resolved statement text per dialect."""

from authspine.queries.base import (
    SessionQueries,
    SQLSessionQueries,
    SQLUserQueries,
    UserQueries,
)
from authspine.queries.mysql import MySQLSessionQueries, MySQLUserQueries
from authspine.queries.postgresql import PostgreSQLSessionQueries, PostgreSQLUserQueries
from authspine.queries.sqlite import SQLiteSessionQueries, SQLiteUserQueries

__all__ = [
    "UserQueries",
    "SessionQueries",
    "SQLUserQueries",
    "SQLSessionQueries",
    "SQLiteUserQueries",
    "SQLiteSessionQueries",
    "PostgreSQLUserQueries",
    "PostgreSQLSessionQueries",
    "MySQLUserQueries",
    "MySQLSessionQueries",
]
