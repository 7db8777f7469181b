"""
Output Ledger Interfaces.

The ledger is the single source of truth for "has this execution already
produced a committed result". It is append-only per key: no update or
delete operations are exposed.
"""

from abc import ABC, abstractmethod
from typing import Optional

from txledger.domain.models import ExecutionKey, OutputRecord


class IOutputLedger(ABC):
    """
    Synchronous output ledger bound to one session or transaction.

    Usage:
        with store.unit_of_work() as uow:
            if uow.outputs.get_output(key) is None:
                uow.outputs.insert_output(key, '"done"')
            uow.commit()
    """

    @abstractmethod
    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        """
        Point lookup of the committed output for a key.

        Returns:
            OutputRecord if present, None otherwise
        """
        pass

    @abstractmethod
    def insert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        """
        Record the output for a key.

        Raises:
            OutputConflictError: If a record for the key already exists
        """
        pass


class IAsyncOutputLedger(ABC):
    """Async output ledger bound to one AsyncSession."""

    @abstractmethod
    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        """Point lookup of the committed output for a key."""
        pass

    @abstractmethod
    async def ainsert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        """
        Record the output for a key.

        Raises:
            OutputConflictError: If a record for the key already exists
        """
        pass
