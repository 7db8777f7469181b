"""
Transactional Store Interfaces.

One capability set per backing driver:
initialize / destroy / begin (unit_of_work) / query (get_output) /
insert-if-absent (unit_of_work().outputs.insert_output).

The coordinators are written once against these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Optional

from txledger.domain.models import ExecutionKey, IsolationLevel, OutputRecord
from .unit_of_work import ILedgerUnitOfWork
from .async_unit_of_work import IAsyncLedgerUnitOfWork


class ITransactionalStore(ABC):
    """Synchronous store driver."""

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @abstractmethod
    def initialize(self) -> None:
        """Acquire the connection pool. Idempotent."""
        pass

    @abstractmethod
    def destroy(self) -> None:
        """Release the connection pool. Idempotent."""
        pass

    @abstractmethod
    def unit_of_work(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> ILedgerUnitOfWork:
        """Create an unstarted unit of work at the given isolation level."""
        pass

    @abstractmethod
    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        """Committed output lookup outside any attempt transaction."""
        pass

    @abstractmethod
    def configure_schema(self) -> None:
        """Create the ledger namespace and table if absent."""
        pass


class IAsyncTransactionalStore(ABC):
    """Async store driver."""

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @abstractmethod
    async def ainitialize(self) -> None:
        pass

    @abstractmethod
    async def adestroy(self) -> None:
        pass

    @abstractmethod
    def unit_of_work(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> IAsyncLedgerUnitOfWork:
        pass

    @abstractmethod
    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        pass

    @abstractmethod
    async def aconfigure_schema(self) -> None:
        pass
