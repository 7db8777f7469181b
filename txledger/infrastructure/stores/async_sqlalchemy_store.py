"""
Async SQLAlchemy Transactional Store.

Asyncio store driver (aiosqlite / asyncpg). Sync URLs are converted to
their async driver automatically.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from txledger.domain.interfaces.transactional_store import IAsyncTransactionalStore
from txledger.domain.models import (
    DataSourceNotInitializedError,
    ExecutionKey,
    IsolationLevel,
    OutputRecord,
)
from txledger.infrastructure.database.async_repositories import AsyncSQLAlchemyOutputLedgerRepository
from txledger.infrastructure.database.async_unit_of_work import AsyncSQLAlchemyLedgerUnitOfWork
from txledger.infrastructure.database.config import DatabaseConfig, create_async_ledger_engine
from txledger.infrastructure.database.setup import create_ledger_tables

logger = logging.getLogger(__name__)


class AsyncSQLAlchemyTransactionalStore(IAsyncTransactionalStore):
    """Store driver backed by a SQLAlchemy AsyncEngine."""

    def __init__(self, db_config: DatabaseConfig):
        self._db_config = db_config
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._lock = asyncio.Lock()

    @property
    def db_config(self) -> DatabaseConfig:
        return self._db_config

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DataSourceNotInitializedError("Store is not initialized")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def ainitialize(self) -> None:
        async with self._lock:
            if self._engine is not None:
                return
            self._engine = create_async_ledger_engine(self._db_config)
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                close_resets_only=False,
            )
            logger.debug(f"Initialized async ledger engine: {self._engine.url!r}")

    async def adestroy(self) -> None:
        async with self._lock:
            engine, self._engine, self._session_factory = self._engine, None, None
        if engine is not None:
            await engine.dispose()
            logger.debug("Disposed async ledger engine")

    def unit_of_work(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> AsyncSQLAlchemyLedgerUnitOfWork:
        return AsyncSQLAlchemyLedgerUnitOfWork(self._require_session_factory(), isolation_level)

    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        async with self._require_session_factory()() as session:
            return await AsyncSQLAlchemyOutputLedgerRepository(session).aget_output(key)

    async def aconfigure_schema(self) -> None:
        async with self.engine.begin() as connection:
            await connection.run_sync(create_ledger_tables, self._db_config.effective_schema)

    def _require_session_factory(self) -> async_sessionmaker:
        factory = self._session_factory
        if factory is None:
            raise DataSourceNotInitializedError(
                "Store is not initialized; call ainitialize() first"
            )
        return factory
