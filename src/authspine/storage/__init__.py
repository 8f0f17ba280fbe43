"""Storage engines: one user engine and one session engine for every dialect.

Architecture::

    UserStorage / SessionStorage (base.py)   Protocols shared with memory.py
        |-- SQLUserStorage    (users.py)
        |-- SQLSessionStorage (sessions.py)

    run_init_statements (_init.py)           transactional schema setup

Tags:
    authspine, storage, engine
"""

from ._init import run_init_statements
from .base import SessionStorage, UserStorage
from .sessions import SQLSessionStorage
from .users import SQLUserStorage

__all__ = [
    "UserStorage",
    "SessionStorage",
    "SQLUserStorage",
    "SQLSessionStorage",
    "run_init_statements",
]
