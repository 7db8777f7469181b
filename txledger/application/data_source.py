"""
Transactional Data Sources.

The boundary objects a workflow engine talks to. They satisfy the
engine's "transactional data source" contract:
- lifecycle: initialize / destroy (the connection pool)
- register: wrap a step function so each call runs exactly once per
  execution identity
- invoke_transaction_function: the entry point the engine calls for one step
- static provisioning helpers: ensure_database / configure_schema

The execution identity is read at call time from the engine's ambient
context (IExecutionIdentityProvider), never chosen by the data source.

Usage:
    store = SQLAlchemyTransactionalStore(DatabaseConfig("sqlite:///data/app.db"))
    data_source = TransactionalDataSource("app-db", store)
    data_source.initialize()

    def transfer(amount):
        TransactionalDataSource.client().execute(...)
        return amount

    transfer_step = data_source.register(transfer, "transfer")

    with execution_scope("wf-1", 3):
        transfer_step(10)
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from txledger.domain.interfaces.data_source import (
    ConfigLike,
    IAsyncTransactionalDataSource,
    ITransactionalDataSource,
)
from txledger.domain.interfaces.execution_identity import IExecutionIdentityProvider
from txledger.domain.interfaces.transactional_store import (
    IAsyncTransactionalStore,
    ITransactionalStore,
)
from txledger.domain.models import (
    DuplicateRegistrationError,
    ExecutionKey,
    MissingExecutionIdentity,
    TransactionConfig,
)
from txledger.infrastructure.database import setup as db_setup
from txledger.infrastructure.database.config import DatabaseConfig
from .execution_identity import get_execution_key
from .services import AsyncTransactionCoordinator, ConflictRetryPolicy, TransactionCoordinator
from .transaction_context import get_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionRegistration:
    """A registered transaction function."""

    name: str
    func: Callable[..., Any]
    config: TransactionConfig


class _DataSourceBase:
    """Registration bookkeeping, identity resolution and provisioning."""

    def __init__(
        self,
        name: str,
        identity_provider: Optional[IExecutionIdentityProvider] = None,
    ):
        self.name = name
        self._identity_provider = identity_provider or get_execution_key
        self._registrations: Dict[str, TransactionRegistration] = {}

    @property
    def ds_type(self) -> str:
        return type(self).__name__

    @property
    def registrations(self) -> Dict[str, TransactionRegistration]:
        return dict(self._registrations)

    def get_registration(self, name: str) -> Optional[TransactionRegistration]:
        return self._registrations.get(name)

    @staticmethod
    def client() -> Any:
        """
        Transactional client of the running step.

        Raises:
            MissingContextError: Outside a transactional step
        """
        return get_client()

    def _add_registration(
        self, func: Callable[..., Any], name: Optional[str], config: ConfigLike
    ) -> TransactionRegistration:
        name = name or func.__qualname__
        if name in self._registrations:
            raise DuplicateRegistrationError(
                f"Transaction {name!r} is already registered on data source {self.name!r}"
            )
        registration = TransactionRegistration(name, func, TransactionConfig.coerce(config))
        self._registrations[name] = registration
        logger.debug(f"Registered transaction {name!r} on data source {self.name!r}")
        return registration

    def _resolve_identity(self) -> ExecutionKey:
        key = self._identity_provider()
        if key is None:
            raise MissingExecutionIdentity(
                "Workflow ID is not set; transactional steps must run inside a workflow."
            )
        return key

    def _prepare(self, config: ConfigLike, target: Any, func: Callable[..., Any]):
        key = self._resolve_identity()
        transaction_config = TransactionConfig.coerce(config)
        if target is not None:
            func = functools.partial(func, target)
        return key, transaction_config, func

    # ═══════════════════════════════════════════════════════════════════════════
    # Provisioning (startup only)
    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    def ensure_database(name: str, db_config: DatabaseConfig) -> bool:
        return db_setup.ensure_database(name, db_config)

    @staticmethod
    def drop_database(name: str, db_config: DatabaseConfig) -> bool:
        return db_setup.drop_database(name, db_config)

    @staticmethod
    def configure_schema(db_config: DatabaseConfig) -> bool:
        return db_setup.configure_schema(db_config)

    @staticmethod
    def setup_database(db_config: DatabaseConfig) -> bool:
        return db_setup.setup_database(db_config)


class TransactionalDataSource(_DataSourceBase, ITransactionalDataSource):
    """Synchronous transactional data source."""

    def __init__(
        self,
        name: str,
        store: ITransactionalStore,
        identity_provider: Optional[IExecutionIdentityProvider] = None,
        retry_policy: Optional[ConflictRetryPolicy] = None,
    ):
        super().__init__(name, identity_provider)
        self._store = store
        self._coordinator = TransactionCoordinator(store, retry_policy)

    @property
    def store(self) -> ITransactionalStore:
        return self._store

    def initialize(self) -> None:
        self._store.initialize()

    def destroy(self) -> None:
        self._store.destroy()

    def register(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        config: ConfigLike = None,
    ) -> Callable[..., Any]:
        registration = self._add_registration(func, name, config)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return self.invoke_transaction_function(
                registration.config, None, registration.func, *args, **kwargs
            )

        wrapper.registration = registration
        return wrapper

    def invoke_transaction_function(
        self,
        config: ConfigLike,
        target: Any,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        key, transaction_config, func = self._prepare(config, target, func)
        return self._coordinator.invoke(key, transaction_config, func, *args, **kwargs)

    def run_tx_step(
        self,
        callback: Callable[[], Any],
        name: str,
        config: ConfigLike = None,
    ) -> Any:
        """Run an unregistered zero-argument callback as a transactional step."""
        logger.debug(f"Running transaction step {name!r} on data source {self.name!r}")
        return self.invoke_transaction_function(config, None, callback)


class AsyncTransactionalDataSource(_DataSourceBase, IAsyncTransactionalDataSource):
    """Async transactional data source. Step functions may be coroutines."""

    def __init__(
        self,
        name: str,
        store: IAsyncTransactionalStore,
        identity_provider: Optional[IExecutionIdentityProvider] = None,
        retry_policy: Optional[ConflictRetryPolicy] = None,
    ):
        super().__init__(name, identity_provider)
        self._store = store
        self._coordinator = AsyncTransactionCoordinator(store, retry_policy)

    @property
    def store(self) -> IAsyncTransactionalStore:
        return self._store

    async def ainitialize(self) -> None:
        await self._store.ainitialize()

    async def adestroy(self) -> None:
        await self._store.adestroy()

    def register(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        config: ConfigLike = None,
    ) -> Callable[..., Any]:
        registration = self._add_registration(func, name, config)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await self.invoke_transaction_function(
                registration.config, None, registration.func, *args, **kwargs
            )

        wrapper.registration = registration
        return wrapper

    async def invoke_transaction_function(
        self,
        config: ConfigLike,
        target: Any,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        key, transaction_config, func = self._prepare(config, target, func)
        return await self._coordinator.ainvoke(key, transaction_config, func, *args, **kwargs)

    async def run_tx_step(
        self,
        callback: Callable[[], Any],
        name: str,
        config: ConfigLike = None,
    ) -> Any:
        logger.debug(f"Running transaction step {name!r} on data source {self.name!r}")
        return await self.invoke_transaction_function(config, None, callback)
