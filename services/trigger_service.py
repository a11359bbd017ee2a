"""In-process trigger runtime for document-creation events.

Handlers are registered per collection with :func:`on_create` and run by
:func:`dispatch` after the creating transaction has committed. Each handler
gets its own session on the same engine, so a failing trigger never undoes
the write that caused it.
"""
import logging
from collections import defaultdict
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from config import TRANSACTION_ATTEMPTS
from errors import Conflict

logger = logging.getLogger("together.triggers")

_handlers: Dict[str, List[Callable]] = defaultdict(list)


def on_create(collection: str):
    """Register ``fn(db, payload)`` to run whenever a row is created in ``collection``."""
    def decorator(fn):
        _handlers[collection].append(fn)
        return fn
    return decorator


def dispatch(db: Session, collection: str, payload: dict) -> None:
    for handler in list(_handlers.get(collection, ())):
        _run(db, handler, collection, payload)


def _run(db: Session, handler, collection: str, payload: dict) -> None:
    for attempt in range(1, TRANSACTION_ATTEMPTS + 1):
        session = Session(bind=db.get_bind())
        try:
            handler(session, payload)
            return
        except Conflict as exc:
            # Handlers are idempotent, so redelivery is safe
            logger.warning("Trigger %s on %s conflicted (attempt %s): %s",
                           handler.__name__, collection, attempt, exc.detail)
        except Exception:
            logger.exception("Trigger %s on %s failed | payload=%s", handler.__name__, collection, payload)
            return
        finally:
            session.close()
    logger.error("Trigger %s on %s gave up after %s attempts | payload=%s",
                 handler.__name__, collection, TRANSACTION_ATTEMPTS, payload)
