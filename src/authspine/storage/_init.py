"""Transactional execution of setup statements."""

from __future__ import annotations

from collections.abc import Iterable

from authspine.adapters.base import Database
from authspine.errors import DatabaseError, RollbackError
from authspine.logging import get_logger

logger = get_logger(__name__)


def run_init_statements(
    database: Database,
    statements: Iterable[str],
    *,
    operation: str,
    table: str | None = None,
) -> int:
    """
    Run ``statements`` in order inside one transaction.

    Empty (or whitespace-only) statements are skipped.  If a statement
    fails the transaction is rolled back and the statement's error is
    re-raised unchanged; if the rollback fails too, both are reported as
    :class:`RollbackError`.  A failing commit raises :class:`DatabaseError`
    chained to the driver error.

    Returns:
        Number of statements executed.
    """
    backend = database.dialect.name
    tx = database.begin()
    executed = 0
    try:
        for statement in statements:
            if not statement.strip():
                continue
            tx.execute(statement)
            executed += 1
    except Exception as exc:
        try:
            tx.rollback()
        except Exception as rollback_exc:
            logger.warning(
                "rollback_failed",
                operation=operation,
                backend=backend,
                table=table,
                error=str(exc),
                rollback_error=str(rollback_exc),
            )
            raise RollbackError(exc, rollback_exc).with_context(
                operation=operation, backend=backend, table=table
            ) from exc
        raise

    try:
        tx.commit()
    except Exception as exc:
        raise DatabaseError(f"commit failed: {exc}", cause=exc).with_context(
            operation=operation, backend=backend, table=table
        ) from exc

    logger.debug(
        "init_statements_committed",
        operation=operation,
        backend=backend,
        table=table,
        statements=executed,
    )
    return executed


__all__ = ["run_init_statements"]
