"""Driver bridges -- timestamp and duplicate-key translation per dialect.

Architecture::

    SQLBridge (base.py)          Protocol consumed by the storage engines
        |-- BaseBridge           Type check + UTC normalisation
            |-- SQLiteBridge     ISO text timestamps, sqlite3.IntegrityError
            |-- PostgreSQLBridge aware datetimes, SQLSTATE 23505
            |-- MySQLBridge      naive UTC datetimes, errno 1062

Bridges never import optional drivers; they classify errors by attribute.

Tags:
    authspine, bridge, multi-backend
"""

from .base import BaseBridge, SQLBridge, as_utc
from .mysql import MySQLBridge
from .postgresql import PostgreSQLBridge
from .sqlite import SQLiteBridge

__all__ = [
    "SQLBridge",
    "BaseBridge",
    "as_utc",
    "SQLiteBridge",
    "PostgreSQLBridge",
    "MySQLBridge",
]
