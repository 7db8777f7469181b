"""
In-Memory Transactional Store.

Process-local store driver for unit tests and the ``inmemory`` storage
mode. Implements both the sync and the async store interfaces over one
shared InMemoryLedgerStorage.
"""

from typing import Optional

from txledger.domain.interfaces.transactional_store import (
    IAsyncTransactionalStore,
    ITransactionalStore,
)
from txledger.domain.models import (
    DataSourceNotInitializedError,
    ExecutionKey,
    IsolationLevel,
    OutputRecord,
)
from txledger.infrastructure.database.inmemory_unit_of_work import (
    InMemoryLedgerStorage,
    InMemoryLedgerUnitOfWork,
)


class InMemoryTransactionalStore(ITransactionalStore, IAsyncTransactionalStore):
    """
    In-memory store driver.

    Note: committed outputs live as long as the storage object. Pass the
    same storage to several stores to simulate several processes sharing
    one database.
    """

    def __init__(self, storage: Optional[InMemoryLedgerStorage] = None):
        self.storage = storage or InMemoryLedgerStorage()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._initialized = True

    def destroy(self) -> None:
        self._initialized = False

    async def ainitialize(self) -> None:
        self.initialize()

    async def adestroy(self) -> None:
        self.destroy()

    def unit_of_work(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> InMemoryLedgerUnitOfWork:
        self._require_initialized()
        return InMemoryLedgerUnitOfWork(self.storage, isolation_level)

    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        self._require_initialized()
        with self.storage.lock:
            return self.storage.outputs.get(key)

    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        return self.get_output(key)

    def configure_schema(self) -> None:
        pass

    async def aconfigure_schema(self) -> None:
        pass

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise DataSourceNotInitializedError(
                "Store is not initialized; call initialize() first"
            )
