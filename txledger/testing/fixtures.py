"""
TXLEDGER Testing Fixtures

Provides common helpers for testing store drivers and the step functions
that run on them.

Architecture Decision:
- These helpers are part of txledger (not just tests) because:
  1. Workflow engines embedding txledger need them for their own tests
  2. Every store driver is held to the same contract (LSP)
"""

import threading
from typing import Any, Callable, List, Optional

from txledger.domain.interfaces.transactional_store import ITransactionalStore
from txledger.domain.models import ExecutionKey, OutputConflictError


# ═══════════════════════════════════════════════════════════════════════════════
# Step Helpers
# ═══════════════════════════════════════════════════════════════════════════════


class CountingStep:
    """
    Wraps a step function and counts how often its body actually ran.

    Usage:
        double = CountingStep(lambda x: x * 2)
        data_source.register(double, "double")
        ...
        assert double.calls == 1
    """

    def __init__(self, func: Callable[..., Any], name: Optional[str] = None):
        self._func = func
        self.__name__ = name or getattr(func, "__name__", "step")
        self.__qualname__ = self.__name__
        self._lock = threading.Lock()
        self.calls = 0
        self.arguments: List[tuple] = []

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            self.calls += 1
            self.arguments.append(args)
        return self._func(*args, **kwargs)


class StaticIdentityProvider:
    """Identity provider returning a fixed key (None = outside a workflow)."""

    def __init__(self, workflow_id: Optional[str] = None, function_number: Optional[int] = None):
        self.key = (
            ExecutionKey(workflow_id, function_number) if workflow_id is not None else None
        )

    def __call__(self) -> Optional[ExecutionKey]:
        return self.key


# ═══════════════════════════════════════════════════════════════════════════════
# Store Contract Tests
# ═══════════════════════════════════════════════════════════════════════════════


class TransactionalStoreTestMixin:
    """
    Mixin providing standard tests for ITransactionalStore implementations.

    Ensures all drivers conform to the same ledger semantics.

    Usage:
        class TestMyStore(TransactionalStoreTestMixin):
            def create_store(self) -> ITransactionalStore:
                store = MyStore()
                store.initialize()
                store.configure_schema()
                return store
    """

    def create_store(self) -> ITransactionalStore:
        """Override this to create an initialized store with its schema."""
        raise NotImplementedError("Subclass must implement create_store()")

    def _commit_output(self, store: ITransactionalStore, key: ExecutionKey, output: str) -> None:
        with store.unit_of_work() as uow:
            uow.outputs.insert_output(key, output)
            uow.commit()

    def test_missing_output_returns_none(self):
        store = self.create_store()
        assert store.get_output(ExecutionKey("wf-missing", 1)) is None

    def test_committed_output_is_visible(self):
        store = self.create_store()
        key = ExecutionKey("wf-commit", 1)

        self._commit_output(store, key, '{"total": 10}')

        record = store.get_output(key)
        assert record is not None
        assert record.key == key
        assert record.value() == {"total": 10}
        assert record.created_at > 0

    def test_rolled_back_output_is_not_visible(self):
        store = self.create_store()
        key = ExecutionKey("wf-rollback", 1)

        with store.unit_of_work() as uow:
            uow.outputs.insert_output(key, "1")
            uow.rollback()

        assert store.get_output(key) is None

    def test_exit_without_commit_discards_output(self):
        store = self.create_store()
        key = ExecutionKey("wf-no-commit", 1)

        with store.unit_of_work() as uow:
            uow.outputs.insert_output(key, "1")

        assert store.get_output(key) is None

    def test_exception_rolls_back_output(self):
        store = self.create_store()
        key = ExecutionKey("wf-error", 1)

        try:
            with store.unit_of_work() as uow:
                uow.outputs.insert_output(key, "1")
                raise ValueError("boom")
        except ValueError:
            pass

        assert store.get_output(key) is None

    def test_duplicate_output_raises_conflict(self):
        store = self.create_store()
        key = ExecutionKey("wf-dup", 7)
        self._commit_output(store, key, '"first"')

        try:
            self._commit_output(store, key, '"second"')
        except OutputConflictError as e:
            assert e.workflow_id == "wf-dup"
            assert e.function_number == 7
        else:
            raise AssertionError("Expected OutputConflictError")

        assert store.get_output(key).value() == "first"

    def test_keys_differ_by_function_number(self):
        store = self.create_store()
        self._commit_output(store, ExecutionKey("wf-multi", 1), '"one"')
        self._commit_output(store, ExecutionKey("wf-multi", 2), '"two"')

        assert store.get_output(ExecutionKey("wf-multi", 1)).value() == "one"
        assert store.get_output(ExecutionKey("wf-multi", 2)).value() == "two"
