# Overview: Retry and row-locking helpers shared by write services and routes.

"""
Transaction helpers.

A failed commit leaves nothing to retry: rolling the session back discards
every change the request staged. So:
- commit_or_conflict() commits once and turns a lock/version failure into a
  409 after rolling back.
- run_with_retry(func) re-runs a whole unit of work (service calls plus its
  commit) from scratch on a lock/version failure.
"""
from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db

logger = logging.getLogger(__name__)


class ConcurrentUpdateError(ConflictError):
    """A write lost a lock or version race and was rolled back."""


def lock_for_update(query):
    """SELECT ... FOR UPDATE on backends that support it (ignored by SQLite)."""
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func, retrying on lock timeouts and stale version_id conflicts.

    func must stage AND commit its own changes: the session is rolled back
    before each retry, so it is re-run from an empty session.

    Raises:
        ConcurrentUpdateError: still failing after `attempts` runs
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                logger.warning("Giving up after %d attempts: %s", attempts, type(exc).__name__)
                raise ConcurrentUpdateError("The request conflicted with another update, please retry") from exc
            logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))


def commit_or_conflict() -> None:
    """
    Commit the request's staged changes.

    Raises:
        ConcurrentUpdateError: the commit hit a lock or version conflict;
            the session has been rolled back and nothing was saved
    """
    try:
        db.session.commit()
    except (OperationalError, StaleDataError) as exc:
        db.session.rollback()
        logger.warning("Commit failed, changes rolled back: %s", type(exc).__name__)
        raise ConcurrentUpdateError("The request conflicted with another update, please retry") from exc
