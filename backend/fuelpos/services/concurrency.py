# Overview: Retry and row-lock helpers shared by every write path.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for read-then-write operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the write lock taken
    by the first UPDATE of the transaction serializes writers instead.
    """
    return query.with_for_update().populate_existing()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a unit of work, retrying on concurrency-related failures.

    Retries on OperationalError (database locked, deadlock) and
    StaleDataError (optimistic version conflict). Business errors
    (ServiceError) propagate immediately and are never retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying unit of work after %s (attempt %d/%d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))


def atomic(func, *, attempts: int = 3):
    """
    Run ``func`` and commit as one transaction, with retry.

    Any exception raised by ``func`` (business error or database error)
    rolls back everything it wrote.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op, attempts=attempts)
