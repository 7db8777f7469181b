"""
SQLAlchemy Transactional Store.

Sync store driver: owns the engine (connection pool) and hands out one
SQLAlchemyLedgerUnitOfWork per step attempt. Works with any dialect
SQLAlchemy supports (PostgreSQL via psycopg2, SQLite via pysqlite).
"""

import logging
import threading
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from txledger.domain.interfaces.transactional_store import ITransactionalStore
from txledger.domain.models import (
    DataSourceNotInitializedError,
    ExecutionKey,
    IsolationLevel,
    OutputRecord,
)
from txledger.infrastructure.database.config import DatabaseConfig, create_ledger_engine
from txledger.infrastructure.database.repositories import SQLAlchemyOutputLedgerRepository
from txledger.infrastructure.database.setup import create_ledger_schema, ensure_database
from txledger.infrastructure.database.unit_of_work import SQLAlchemyLedgerUnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyTransactionalStore(ITransactionalStore):
    """
    Store driver backed by a sync SQLAlchemy engine.

    Usage:
        store = SQLAlchemyTransactionalStore(DatabaseConfig("sqlite:///data/app.db"))
        store.initialize()
        store.configure_schema()
        with store.unit_of_work() as uow:
            ...
        store.destroy()
    """

    def __init__(self, db_config: DatabaseConfig):
        self._db_config = db_config
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def db_config(self) -> DatabaseConfig:
        return self._db_config

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DataSourceNotInitializedError("Store is not initialized")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def initialize(self) -> None:
        with self._lock:
            if self._engine is not None:
                return
            self._engine = create_ledger_engine(self._db_config)
            # Closed sessions refuse reuse, so a client cannot outlive its attempt
            self._session_factory = sessionmaker(
                bind=self._engine,
                expire_on_commit=False,
                close_resets_only=False,
            )
            logger.debug(f"Initialized ledger engine: {self._engine.url!r}")

    def destroy(self) -> None:
        with self._lock:
            engine, self._engine, self._session_factory = self._engine, None, None
        if engine is not None:
            engine.dispose()
            logger.debug("Disposed ledger engine")

    def unit_of_work(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> SQLAlchemyLedgerUnitOfWork:
        return SQLAlchemyLedgerUnitOfWork(self._require_session_factory(), isolation_level)

    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        with self._require_session_factory()() as session:
            return SQLAlchemyOutputLedgerRepository(session).get_output(key)

    def configure_schema(self) -> None:
        create_ledger_schema(self.engine, self._db_config.effective_schema)

    def ensure_database(self, name: str) -> bool:
        return ensure_database(name, self._db_config)

    def _require_session_factory(self) -> sessionmaker:
        factory = self._session_factory
        if factory is None:
            raise DataSourceNotInitializedError(
                "Store is not initialized; call initialize() first"
            )
        return factory
