"""
Ledger Unit of Work Interface.

One unit of work is one attempt's transaction: it owns a pooled
connection, exposes the transactional client to user code and the ledger
bound to the same transaction.
"""

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .output_ledger import IOutputLedger


class ILedgerUnitOfWork(ABC):
    """
    Unit of Work for one transactional step attempt.

    Usage:
        with store.unit_of_work(IsolationLevel.SERIALIZABLE) as uow:
            uow.client.execute(...)
            uow.outputs.insert_output(key, payload)
            uow.commit()

    Design Decisions:
    - Context manager handles the connection lifecycle
    - Automatic rollback on exception (including cancellation)
    - Explicit commit required
    """

    outputs: "IOutputLedger"

    @property
    @abstractmethod
    def client(self) -> Any:
        """Transactional client handed to user code (e.g. a Session)."""
        pass

    @abstractmethod
    def __enter__(self) -> "ILedgerUnitOfWork":
        """Acquire a connection and begin the transaction."""
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Roll back on exception and release the connection."""
        pass

    @abstractmethod
    def commit(self):
        """
        Commit the transaction.

        Raises:
            OutputConflictError: If the ledger insert conflicts at commit time
        """
        pass

    @abstractmethod
    def rollback(self):
        """Roll back the transaction."""
        pass
