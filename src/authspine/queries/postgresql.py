"""PostgreSQL query provider.

Inserts end in ``RETURNING "id"`` because psycopg does not report
``cursor.lastrowid`` for BIGSERIAL keys.
"""

from __future__ import annotations

from authspine.dialect import PostgreSQLDialect
from authspine.queries.base import SQLSessionQueries, SQLUserQueries


class PostgreSQLUserQueries(SQLUserQueries):
    dialect = PostgreSQLDialect()


class PostgreSQLSessionQueries(SQLSessionQueries):
    dialect = PostgreSQLDialect()


__all__ = ["PostgreSQLUserQueries", "PostgreSQLSessionQueries"]
