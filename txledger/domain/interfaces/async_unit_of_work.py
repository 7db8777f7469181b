from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .output_ledger import IAsyncOutputLedger


class IAsyncLedgerUnitOfWork(ABC):
    """
    Async Unit of Work for one transactional step attempt.

    Usage:
        async with store.unit_of_work() as uow:
            await uow.client.execute(...)
            await uow.outputs.ainsert_output(key, payload)
            await uow.acommit()
    """

    outputs: "IAsyncOutputLedger"

    @property
    @abstractmethod
    def client(self) -> Any:
        """Transactional client handed to user code (e.g. an AsyncSession)."""
        pass

    @abstractmethod
    async def __aenter__(self) -> "IAsyncLedgerUnitOfWork":
        """Acquire a connection and begin the transaction."""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Roll back on exception and release the connection."""
        pass

    @abstractmethod
    async def acommit(self) -> None:
        pass

    @abstractmethod
    async def arollback(self) -> None:
        pass
