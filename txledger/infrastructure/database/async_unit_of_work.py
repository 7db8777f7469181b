import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from txledger.domain.interfaces.async_unit_of_work import IAsyncLedgerUnitOfWork
from txledger.domain.models import IsolationLevel, get_isolation_option
from txledger.infrastructure.database.async_repositories import AsyncSQLAlchemyOutputLedgerRepository
from txledger.infrastructure.database.unit_of_work import raise_commit_conflict

logger = logging.getLogger(__name__)


class AsyncSQLAlchemyLedgerUnitOfWork(IAsyncLedgerUnitOfWork):
    """
    Async SQLAlchemy Unit of Work for one transactional step attempt.

    Uses SQLAlchemy 2.0 async support with:
    - aiosqlite for SQLite
    - asyncpg for PostgreSQL

    Cancellation (asyncio.CancelledError) reaches __aexit__ like any other
    exception, so a cancelled attempt is rolled back and its connection
    returned to the pool.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        isolation_level: Optional[IsolationLevel] = None,
    ):
        self._session_factory = session_factory
        self._isolation_level = isolation_level
        self._session: Optional[AsyncSession] = None
        self.outputs: Optional[AsyncSQLAlchemyOutputLedgerRepository] = None

    async def __aenter__(self) -> "AsyncSQLAlchemyLedgerUnitOfWork":
        option = get_isolation_option(self._isolation_level)
        session = self._session_factory()
        try:
            if option:
                await session.connection(execution_options={"isolation_level": option})
            else:
                await session.connection()
        except BaseException:
            await session.close()
            raise

        self._session = session
        self.outputs = AsyncSQLAlchemyOutputLedgerRepository(session)
        logger.debug(f"Began async ledger transaction (isolation={option or 'default'})")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """
        End transaction with guaranteed session cleanup.
        """
        try:
            if exc_type is not None:
                try:
                    await self.arollback()
                except Exception as e:
                    logger.warning(f"Rollback failed, connection will be discarded: {e}")
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None

    async def acommit(self) -> None:
        if self._session is None:
            return
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self.arollback()
            raise_commit_conflict(e, self.outputs)
            raise
        except Exception:
            await self.arollback()
            raise

    async def arollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()

    @property
    def client(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    @property
    def session(self) -> Optional[AsyncSession]:
        return self._session
