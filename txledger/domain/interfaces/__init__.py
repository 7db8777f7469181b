"""Domain Interfaces - Abstract contracts (Ports) for the domain layer."""

from .output_ledger import IOutputLedger, IAsyncOutputLedger
from .unit_of_work import ILedgerUnitOfWork
from .async_unit_of_work import IAsyncLedgerUnitOfWork
from .transactional_store import ITransactionalStore, IAsyncTransactionalStore
from .data_source import (
    ITransactionalDataSource,
    IAsyncTransactionalDataSource,
    ConfigLike,
)
from .execution_identity import IExecutionIdentityProvider

__all__ = [
    # Ledger
    "IOutputLedger",
    "IAsyncOutputLedger",
    # Unit of Work
    "ILedgerUnitOfWork",
    "IAsyncLedgerUnitOfWork",
    # Store drivers
    "ITransactionalStore",
    "IAsyncTransactionalStore",
    # Data source boundary
    "ITransactionalDataSource",
    "IAsyncTransactionalDataSource",
    "ConfigLike",
    # Engine collaboration
    "IExecutionIdentityProvider",
]
