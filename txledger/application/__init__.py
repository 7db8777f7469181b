"""Application Layer - coordinators, context propagation and data sources."""

from .transaction_context import (
    transaction_scope,
    in_transaction,
    get_active_transaction,
    get_client,
)
from .execution_identity import (
    execution_scope,
    get_execution_key,
    current_execution_key,
)
from .services import (
    TransactionCoordinator,
    AsyncTransactionCoordinator,
    ConflictRetryPolicy,
)
from .data_source import (
    TransactionalDataSource,
    AsyncTransactionalDataSource,
    TransactionRegistration,
)
from .factories import StoreFactory, DataSourceFactory

__all__ = [
    # Context propagation
    "transaction_scope",
    "in_transaction",
    "get_active_transaction",
    "get_client",
    # Execution identity
    "execution_scope",
    "get_execution_key",
    "current_execution_key",
    # Services
    "TransactionCoordinator",
    "AsyncTransactionCoordinator",
    "ConflictRetryPolicy",
    # Data sources
    "TransactionalDataSource",
    "AsyncTransactionalDataSource",
    "TransactionRegistration",
    # Factories
    "StoreFactory",
    "DataSourceFactory",
]
