"""
In-Memory Ledger Unit of Work Implementation.

For unit tests and fast iteration - no database I/O.
Provides the same interface as SQLAlchemyLedgerUnitOfWork (sync and async)
but keeps committed state in a process-local, lock-protected storage.

Semantics follow a relational store closely enough for the protocol:
- Writes (user data and ledger rows) are staged per transaction
- Staged writes become visible only on commit
- A commit whose ledger row is already committed raises OutputConflictError
- Every begin/commit/rollback is appended to ``storage.statements``
"""

import logging
import threading
from copy import deepcopy
from typing import Any, Dict, List, Optional

from txledger.domain.interfaces.output_ledger import IAsyncOutputLedger, IOutputLedger
from txledger.domain.interfaces.unit_of_work import ILedgerUnitOfWork
from txledger.domain.interfaces.async_unit_of_work import IAsyncLedgerUnitOfWork
from txledger.domain.models import (
    ExecutionKey,
    IsolationLevel,
    OutputConflictError,
    OutputRecord,
    get_isolation_clause,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Shared Storage
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryLedgerStorage:
    """Committed state shared by all units of work of one store."""

    def __init__(self):
        self.lock = threading.RLock()
        self.outputs: Dict[ExecutionKey, OutputRecord] = {}
        self.data: Dict[str, Any] = {}
        self.statements: List[str] = []
        self.insert_count = 0

    def log(self, statement: str) -> None:
        with self.lock:
            self.statements.append(statement)

    def reset(self) -> None:
        with self.lock:
            self.outputs.clear()
            self.data.clear()
            self.statements.clear()
            self.insert_count = 0


class InMemoryTransaction:
    """
    Transactional client handed to user code by the in-memory store.

    Key/value reads see this transaction's own writes first, then
    committed data.
    """

    def __init__(self, storage: InMemoryLedgerStorage, isolation_level: Optional[IsolationLevel]):
        self._storage = storage
        self.isolation_level = isolation_level
        self.writes: Dict[str, Any] = {}
        self.active = True

    def get(self, key: str, default: Any = None) -> Any:
        self._check_active()
        if key in self.writes:
            return deepcopy(self.writes[key])
        with self._storage.lock:
            return deepcopy(self._storage.data.get(key, default))

    def put(self, key: str, value: Any) -> None:
        self._check_active()
        self.writes[key] = deepcopy(value)

    def _check_active(self) -> None:
        if not self.active:
            raise RuntimeError("Transaction is no longer active")


# ═══════════════════════════════════════════════════════════════════════════════
# In-Memory Ledger
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryOutputLedger(IOutputLedger, IAsyncOutputLedger):
    """In-memory ledger, optionally bound to a transaction for inserts."""

    def __init__(self, storage: InMemoryLedgerStorage):
        self._storage = storage
        self.staged: Dict[ExecutionKey, OutputRecord] = {}
        self.inserted_key: Optional[ExecutionKey] = None

    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        if key in self.staged:
            return self.staged[key]
        with self._storage.lock:
            return self._storage.outputs.get(key)

    def insert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        self.inserted_key = key
        with self._storage.lock:
            if key in self._storage.outputs or key in self.staged:
                raise OutputConflictError(key.workflow_id, key.function_number)
        record = OutputRecord(key=key, output=output)
        self.staged[key] = record
        return record

    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        return self.get_output(key)

    async def ainsert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        return self.insert_output(key, output)


# ═══════════════════════════════════════════════════════════════════════════════
# In-Memory Unit of Work
# ═══════════════════════════════════════════════════════════════════════════════


class InMemoryLedgerUnitOfWork(ILedgerUnitOfWork, IAsyncLedgerUnitOfWork):
    """
    In-memory Unit of Work for testing.

    Usage:
        storage = InMemoryLedgerStorage()
        with InMemoryLedgerUnitOfWork(storage) as uow:
            uow.client.put("balance", 10)
            uow.outputs.insert_output(key, "10")
            uow.commit()

    The same instance also works with ``async with``.
    """

    def __init__(
        self,
        storage: InMemoryLedgerStorage,
        isolation_level: Optional[IsolationLevel] = None,
    ):
        self._storage = storage
        self._isolation_level = isolation_level
        self._transaction: Optional[InMemoryTransaction] = None
        self.outputs: Optional[InMemoryOutputLedger] = None

    def __enter__(self) -> "InMemoryLedgerUnitOfWork":
        clause = get_isolation_clause(self._isolation_level)
        self._storage.log(f"BEGIN {clause}".strip())
        self._transaction = InMemoryTransaction(self._storage, self._isolation_level)
        self.outputs = InMemoryOutputLedger(self._storage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()
        self._release()

    async def __aenter__(self) -> "InMemoryLedgerUnitOfWork":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        """Apply staged writes atomically, or raise on a ledger conflict."""
        if self._transaction is None or not self._transaction.active:
            return
        with self._storage.lock:
            for key in self.outputs.staged:
                if key in self._storage.outputs:
                    self._abort()
                    raise OutputConflictError(key.workflow_id, key.function_number)
            self._storage.outputs.update(self.outputs.staged)
            self._storage.insert_count += len(self.outputs.staged)
            self._storage.data.update(self._transaction.writes)
            self._storage.statements.append("COMMIT")
        self._transaction.active = False

    def rollback(self):
        if self._transaction is None or not self._transaction.active:
            return
        self._abort()

    async def acommit(self) -> None:
        self.commit()

    async def arollback(self) -> None:
        self.rollback()

    def _abort(self) -> None:
        self._storage.log("ROLLBACK")
        self._transaction.writes.clear()
        self._transaction.active = False
        self.outputs.staged.clear()

    def _release(self) -> None:
        # Leaving the scope without commit discards the transaction
        if self._transaction is not None and self._transaction.active:
            self._abort()
        self._transaction = None

    @property
    def client(self) -> InMemoryTransaction:
        if self._transaction is None:
            raise RuntimeError("Unit of work is not active")
        return self._transaction
