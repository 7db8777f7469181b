"""
Infrastructure Layer.

Store drivers, ledger persistence and provisioning.
"""

from .database import (
    DatabaseConfig,
    SQLAlchemyLedgerUnitOfWork,
    AsyncSQLAlchemyLedgerUnitOfWork,
    InMemoryLedgerUnitOfWork,
    InMemoryLedgerStorage,
)
from .stores import (
    SQLAlchemyTransactionalStore,
    AsyncSQLAlchemyTransactionalStore,
    InMemoryTransactionalStore,
)

__all__ = [
    "DatabaseConfig",
    "SQLAlchemyLedgerUnitOfWork",
    "AsyncSQLAlchemyLedgerUnitOfWork",
    "InMemoryLedgerUnitOfWork",
    "InMemoryLedgerStorage",
    "SQLAlchemyTransactionalStore",
    "AsyncSQLAlchemyTransactionalStore",
    "InMemoryTransactionalStore",
]
