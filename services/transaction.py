"""Transaction runner for the consistency layer.

Every counter-mutating operation is expressed as a ``work(deadline)`` callable
and executed by :func:`run_in_transaction`: the edge writes and the counter
deltas either commit together or not at all.
"""
import logging
import math
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import case, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from config import TRANSACTION_ATTEMPTS
from errors import Conflict, SocialError, Timeout

logger = logging.getLogger("together.transactions")

T = TypeVar("T")

# PostgreSQL SQLSTATE for a statement cancelled by statement_timeout
_QUERY_CANCELED = "57014"

# pysqlite waits this long for a lock unless told otherwise
SQLITE_BUSY_TIMEOUT_MS = 5000


class Deadline:
    """Wall-clock budget for one operation. ``None`` means unbounded."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + max(timeout, 0.0)

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(self._expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self) -> None:
        if self.expired():
            raise Timeout(f"Operation exceeded its {self.timeout}s time limit")


def decrement(column):
    """Server-side ``column - 1`` that never goes below zero."""
    return case((column > 0, column - 1), else_=0)


def _millis(seconds: float) -> int:
    # Rounded up so the database never gives up before the deadline does
    return max(math.ceil(seconds * 1000), 1)


def _bound_statements(db: Session, deadline: Deadline) -> None:
    """Make the database stop waiting once the deadline has passed.

    PostgreSQL cancels the statement (``SET LOCAL`` ends with the
    transaction). SQLite gives up waiting for a locked database after
    ``busy_timeout``, which belongs to the connection and is therefore reset to
    the driver default when the operation has no deadline.
    """
    remaining = deadline.remaining()
    dialect = db.get_bind().dialect.name
    # Neither statement accepts bind parameters; the values are ints computed here
    if dialect == "postgresql" and remaining is not None:
        db.execute(text(f"SET LOCAL statement_timeout = {_millis(remaining)}"))
    elif dialect == "sqlite":
        busy_ms = SQLITE_BUSY_TIMEOUT_MS if remaining is None else _millis(remaining)
        db.execute(text(f"PRAGMA busy_timeout = {busy_ms}"))


def _was_cancelled(exc: OperationalError) -> bool:
    return getattr(exc.orig, "pgcode", None) == _QUERY_CANCELED


def run_in_transaction(
    db: Session,
    work: Callable[[Deadline], T],
    timeout: Optional[float] = None,
    attempts: int = TRANSACTION_ATTEMPTS,
) -> T:
    """Run ``work`` in a single transaction and commit it.

    Domain errors roll back and propagate unchanged. A unique-constraint
    violation means another writer created the same edge first and becomes
    :class:`Conflict`. Lock/serialization failures are retried while attempts
    and time remain; a cancelled statement or an exhausted deadline becomes
    :class:`Timeout`.
    """
    deadline = Deadline(timeout)
    attempt = 0
    while True:
        attempt += 1
        try:
            deadline.check()
            _bound_statements(db, deadline)
            result = work(deadline)
            deadline.check()
            db.commit()
            return result
        except SocialError:
            db.rollback()
            raise
        except IntegrityError as exc:
            db.rollback()
            raise Conflict("Concurrent update to the same record, reload and retry") from exc
        except OperationalError as exc:
            db.rollback()
            if _was_cancelled(exc) or deadline.expired():
                raise Timeout(f"Operation exceeded its {timeout}s time limit") from exc
            if attempt >= attempts:
                raise Conflict("Could not complete the update, the record is busy") from exc
            logger.warning("Transaction attempt %s/%s failed, retrying: %s", attempt, attempts, exc)
        except Exception:
            db.rollback()
            raise
