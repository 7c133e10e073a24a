"""Transactional unit-of-work helper with retry/backoff for transient errors."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 1.0,
) -> T:
    """
    Run ``work`` and commit its writes as one transaction.

    Every multi-write operation goes through here so a failure between
    writes leaves nothing half-applied. Transient connection errors are
    retried with exponential backoff; ``work`` must therefore re-read any
    state it depends on. Any other exception rolls back and propagates.
    """
    attempt = 0
    while True:
        try:
            result = work()
            db.commit()
            return result
        except OperationalError as exc:
            db.rollback()
            attempt += 1
            if attempt >= max_attempts:
                raise
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            if delay:
                delay = delay + random.uniform(0, delay / 2)
            logger.warning("Database operation failed, retrying", exc_info=exc)
            if delay:
                time.sleep(delay)
        except Exception:
            db.rollback()
            raise
