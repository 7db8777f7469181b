"""
TXLEDGER - Exactly-once transactional steps for durable workflows

Runs a unit of work tied to a database transaction at most once per
execution identity (workflow id, function number):
- Output Ledger: durable, append-only table of committed step outputs
- Transaction Coordinator: check → execute → persist loop with conflict retry
- Context Propagation: ambient access to the active transaction
- Data Sources: the boundary objects a workflow engine calls

Architecture follows:
- Domain-Driven Design (domain / application / infrastructure)
- Repository + Unit of Work pattern
- Interface-based store drivers (SQLAlchemy sync, SQLAlchemy asyncio, in-memory)
"""

__version__ = "0.1.0"

# Domain Models
from txledger.domain.models import (
    ExecutionKey,
    OutputRecord,
    TransactionConfig,
    IsolationLevel,
    TxLedgerError,
    ConfigurationError,
    OutputConflictError,
    MissingExecutionIdentity,
    MissingContextError,
    InvalidIsolationLevel,
    DataSourceNotInitializedError,
    DuplicateRegistrationError,
)

# Application
from txledger.application import (
    TransactionalDataSource,
    AsyncTransactionalDataSource,
    TransactionCoordinator,
    AsyncTransactionCoordinator,
    ConflictRetryPolicy,
    DataSourceFactory,
    execution_scope,
    get_client,
)

# Infrastructure
from txledger.infrastructure import (
    DatabaseConfig,
    SQLAlchemyTransactionalStore,
    AsyncSQLAlchemyTransactionalStore,
    InMemoryTransactionalStore,
)

# Configuration
from txledger.config import TxLedgerConfig

__all__ = [
    # Version
    "__version__",
    # Domain Models
    "ExecutionKey",
    "OutputRecord",
    "TransactionConfig",
    "IsolationLevel",
    # Exceptions
    "TxLedgerError",
    "ConfigurationError",
    "OutputConflictError",
    "MissingExecutionIdentity",
    "MissingContextError",
    "InvalidIsolationLevel",
    "DataSourceNotInitializedError",
    "DuplicateRegistrationError",
    # Application
    "TransactionalDataSource",
    "AsyncTransactionalDataSource",
    "TransactionCoordinator",
    "AsyncTransactionCoordinator",
    "ConflictRetryPolicy",
    "DataSourceFactory",
    "execution_scope",
    "get_client",
    # Infrastructure
    "DatabaseConfig",
    "SQLAlchemyTransactionalStore",
    "AsyncSQLAlchemyTransactionalStore",
    "InMemoryTransactionalStore",
    # Configuration
    "TxLedgerConfig",
]
