"""
Application Factories.

Factory pattern for building store drivers and data sources from
TxLedgerConfig with proper dependency injection.

Usage:
    factory = DataSourceFactory(TxLedgerConfig.for_development())
    data_source = factory.create("app-db")
    data_source.initialize()
"""

from typing import Optional, Union

from txledger.config import TxLedgerConfig, get_config
from txledger.domain.interfaces.execution_identity import IExecutionIdentityProvider
from txledger.infrastructure.database.config import DatabaseConfig
from txledger.infrastructure.database.inmemory_unit_of_work import InMemoryLedgerStorage
from txledger.infrastructure.stores import (
    AsyncSQLAlchemyTransactionalStore,
    InMemoryTransactionalStore,
    SQLAlchemyTransactionalStore,
)

from .data_source import AsyncTransactionalDataSource, TransactionalDataSource
from .services import ConflictRetryPolicy


class StoreFactory:
    """Creates the store driver matching a storage mode."""

    @staticmethod
    def create(
        config: TxLedgerConfig,
        storage: Optional[InMemoryLedgerStorage] = None,
    ) -> Union[InMemoryTransactionalStore, SQLAlchemyTransactionalStore]:
        """
        Create a sync store driver.

        Raises:
            ValueError: For the async_sqlalchemy mode
        """
        if config.storage_mode == "inmemory":
            return InMemoryTransactionalStore(storage)
        if config.storage_mode == "sqlalchemy":
            return SQLAlchemyTransactionalStore(DatabaseConfig.from_config(config))
        raise ValueError(f"Storage mode {config.storage_mode!r} has no sync store")

    @staticmethod
    def create_async(
        config: TxLedgerConfig,
        storage: Optional[InMemoryLedgerStorage] = None,
    ) -> Union[InMemoryTransactionalStore, AsyncSQLAlchemyTransactionalStore]:
        """
        Create an async store driver.

        The sqlalchemy mode URL is converted to its async driver.
        """
        if config.storage_mode == "inmemory":
            return InMemoryTransactionalStore(storage)
        return AsyncSQLAlchemyTransactionalStore(DatabaseConfig.from_config(config))


class DataSourceFactory:
    """
    Factory for creating transactional data sources.

    SOLID Compliance:
    - SRP: Creates data sources only
    - OCP: New drivers via StoreFactory
    - DIP: Data sources depend on store interfaces
    """

    def __init__(self, config: Optional[TxLedgerConfig] = None):
        """
        Initialize factory with configuration.

        Args:
            config: Ledger configuration (defaults to global config)
        """
        self._config = config or get_config()

    @property
    def config(self) -> TxLedgerConfig:
        return self._config

    def retry_policy(self) -> ConflictRetryPolicy:
        return ConflictRetryPolicy(
            initial_delay=self._config.conflict_initial_delay,
            backoff_factor=self._config.conflict_backoff_factor,
            max_delay=self._config.conflict_max_delay,
        )

    def create(
        self,
        name: str,
        identity_provider: Optional[IExecutionIdentityProvider] = None,
        storage: Optional[InMemoryLedgerStorage] = None,
    ) -> TransactionalDataSource:
        """Create an uninitialized sync data source."""
        store = StoreFactory.create(self._config, storage)
        return TransactionalDataSource(
            name,
            store,
            identity_provider=identity_provider,
            retry_policy=self.retry_policy(),
        )

    def create_async(
        self,
        name: str,
        identity_provider: Optional[IExecutionIdentityProvider] = None,
        storage: Optional[InMemoryLedgerStorage] = None,
    ) -> AsyncTransactionalDataSource:
        """Create an uninitialized async data source."""
        store = StoreFactory.create_async(self._config, storage)
        return AsyncTransactionalDataSource(
            name,
            store,
            identity_provider=identity_provider,
            retry_policy=self.retry_policy(),
        )
