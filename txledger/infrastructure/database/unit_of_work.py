"""
SQLAlchemy Ledger Unit of Work Implementation.

One instance per step attempt: checks a connection out of the engine's
pool, pins the isolation level, and exposes the Session to user code
together with the ledger bound to the same transaction.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from txledger.domain.interfaces.unit_of_work import ILedgerUnitOfWork
from txledger.domain.models import IsolationLevel, OutputConflictError, get_isolation_option
from .repositories import SQLAlchemyOutputLedgerRepository, is_unique_violation

logger = logging.getLogger(__name__)


def raise_commit_conflict(error: IntegrityError, outputs) -> None:
    """Translate a unique violation surfacing at commit into a conflict."""
    if not is_unique_violation(error):
        return
    key = getattr(outputs, "inserted_key", None)
    if key is None:
        raise OutputConflictError() from error
    raise OutputConflictError(key.workflow_id, key.function_number) from error


class SQLAlchemyLedgerUnitOfWork(ILedgerUnitOfWork):
    """
    SQLAlchemy-based Unit of Work for one transactional step attempt.

    Usage:
        with SQLAlchemyLedgerUnitOfWork(session_factory, IsolationLevel.SERIALIZABLE) as uow:
            uow.client.execute(text("UPDATE accounts SET ..."))
            uow.outputs.insert_output(key, payload)
            uow.commit()
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        isolation_level: Optional[IsolationLevel] = None,
    ):
        """
        Initialize the Unit of Work.

        Args:
            session_factory: sessionmaker bound to the ledger engine
            isolation_level: Isolation for this attempt (None = store default)
        """
        self._session_factory = session_factory
        self._isolation_level = isolation_level
        self._session: Optional[Session] = None
        self.outputs: Optional[SQLAlchemyOutputLedgerRepository] = None

    def __enter__(self) -> "SQLAlchemyLedgerUnitOfWork":
        """Check out a connection and begin the transaction."""
        option = get_isolation_option(self._isolation_level)
        session = self._session_factory()
        try:
            # Must be the first statement so the isolation level applies
            if option:
                session.connection(execution_options={"isolation_level": option})
            else:
                session.connection()
        except BaseException:
            session.close()
            raise

        self._session = session
        self.outputs = SQLAlchemyOutputLedgerRepository(session)
        logger.debug(f"Began ledger transaction (isolation={option or 'default'})")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End transaction, rolling back on exception, always releasing."""
        try:
            if exc_type is not None:
                self._rollback_quietly()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def commit(self):
        """Commit the transaction."""
        if self._session is None:
            return
        try:
            self._session.commit()
        except IntegrityError as e:
            self.rollback()
            raise_commit_conflict(e, self.outputs)
            raise
        except Exception:
            self.rollback()
            raise

    def rollback(self):
        """Rollback the transaction."""
        if self._session is not None:
            self._session.rollback()

    def _rollback_quietly(self) -> None:
        """Best-effort rollback that never masks the in-flight exception."""
        try:
            self.rollback()
        except Exception as e:
            logger.warning(f"Rollback failed, connection will be discarded: {e}")

    @property
    def client(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    @property
    def session(self) -> Optional[Session]:
        """Get the current session (for advanced usage)."""
        return self._session
