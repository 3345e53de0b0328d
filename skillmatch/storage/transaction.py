"""Transaction coordinator - one all-or-nothing unit of relational work per request."""

import logging
import threading
from typing import Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from skillmatch.errors import StorageUnavailable, TransactionConflict

logger = logging.getLogger("skillmatch.storage.transaction")


def translate_db_error(exc: Exception) -> Exception:
    """Map a SQLAlchemy failure onto the service error taxonomy."""
    if isinstance(exc, (IntegrityError, StaleDataError)):
        return TransactionConflict(f"Concurrent modification prevented commit: {exc}")
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return StorageUnavailable(f"Database unavailable: {exc}")
    if isinstance(exc, SQLAlchemyError):
        return StorageUnavailable(f"Database error: {exc}")
    return exc


class UnitOfWork:
    """Borrowed session with begin/commit/rollback.

    Used as a context manager it commits on normal exit and rolls back on any
    exception. Exactly one of the two fires, and the session is always closed.
    """

    def __init__(self, session_factory: Callable[[], Session], guard: Optional["_NestingGuard"] = None):
        self._session_factory = session_factory
        self._guard = guard
        self.session: Optional[Session] = None
        self.outcome: Optional[str] = None  # "committed" or "rolled_back"

    @property
    def active(self) -> bool:
        return self.session is not None and self.outcome is None

    def begin(self) -> Session:
        if self.session is not None:
            raise RuntimeError("Transaction already started for this unit of work")
        if self._guard is not None:
            self._guard.acquire()
        try:
            self.session = self._session_factory()
            self.session.begin()
        except Exception as e:
            self.outcome = "rolled_back"
            self._release()
            if isinstance(e, SQLAlchemyError):
                raise translate_db_error(e) from e
            raise
        return self.session

    def commit(self):
        if not self.active:
            raise RuntimeError("No active transaction to commit")
        try:
            self.session.commit()
        except Exception as e:
            logger.error("Commit failed, rolling back: %s", e)
            self.rollback()
            if isinstance(e, SQLAlchemyError):
                raise translate_db_error(e) from e
            raise
        self.outcome = "committed"
        self._release()

    def rollback(self):
        if not self.active:
            return
        try:
            self.session.rollback()
        except Exception as e:
            # The connection is discarded on close; the transaction cannot commit either way
            logger.error("Rollback failed: %s", e)
        finally:
            self.outcome = "rolled_back"
            self._release()

    def _release(self):
        try:
            if self.session is not None:
                self.session.close()
        except Exception as e:
            logger.error("Session close failed: %s", e)
        finally:
            if self._guard is not None:
                self._guard.release()
                self._guard = None

    def __enter__(self) -> Session:
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()
            if isinstance(exc_val, SQLAlchemyError):
                raise translate_db_error(exc_val) from exc_val
            return False
        if self.active:
            self.commit()
        return False


class _NestingGuard:
    """Per-thread flag refusing a second transaction while one is open."""

    def __init__(self):
        self._local = threading.local()

    def acquire(self):
        if getattr(self._local, "active", False):
            raise RuntimeError("Nested transactions are not supported")
        self._local.active = True

    def release(self):
        self._local.active = False


class TransactionCoordinator:
    """Hands out units of work; at most one is open per thread."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self._guard = _NestingGuard()

    def transaction(self) -> UnitOfWork:
        return UnitOfWork(self.session_factory, guard=self._guard)

    def run(self, work: Callable[[Session], object]):
        """Execute work(session) inside a transaction and return its result."""
        with self.transaction() as session:
            return work(session)
