# Overview: Transaction helpers; retry on transient store failures, translate uniqueness races.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Any other failure rolls the session back
    before propagating, so a unit of work is either committed whole or not
    at all.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc


def commit_or_conflict(conflict_factory):
    """
    Commit the current session; a uniqueness violation becomes the conflict
    produced by conflict_factory().

    The pre-checks in the services only give a better error message; the
    unique constraints are what actually reject the losing writer.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise conflict_factory() from exc
