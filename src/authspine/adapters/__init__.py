"""Backing-store adapters."""

from .base import Database, ExecResult, Transaction, cursor_result
from .dbapi import DBAPIDatabase, DBAPITransaction, mysql_database, postgresql_database
from .sqlite import SQLiteDatabase, SQLiteTransaction

__all__ = [
    "Database",
    "ExecResult",
    "Transaction",
    "cursor_result",
    "SQLiteDatabase",
    "SQLiteTransaction",
    "DBAPIDatabase",
    "DBAPITransaction",
    "postgresql_database",
    "mysql_database",
]
