"""
Tests for the exactly-once transaction loop (sync).

Tests:
- Execute-once and replay without calling the step function
- Failure rollback (no ledger row, error unchanged)
- Conflict retry converging on the committed output
- Concurrent racers with one committed output
- Isolation level plumbing and nested joins
- ConflictRetryPolicy backoff
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import text
from sqlalchemy.exc import InvalidRequestError

from txledger.application import (
    ConflictRetryPolicy,
    TransactionCoordinator,
    get_client,
    in_transaction,
)
from txledger.domain.models import (
    ExecutionKey,
    InvalidIsolationLevel,
    IsolationLevel,
    TransactionConfig,
)
from txledger.infrastructure.stores import InMemoryTransactionalStore
from txledger.testing import CountingStep


KEY = ExecutionKey("wf-1", 3)


def _commit_peer_output(store, key, output):
    """Commit an output for key as a concurrent attempt would."""
    with store.unit_of_work() as uow:
        uow.outputs.insert_output(key, output)
        uow.commit()


# ═══════════════════════════════════════════════════════════════════════════════
# Exactly Once
# ═══════════════════════════════════════════════════════════════════════════════


class TestExactlyOnce:
    """Tests for execute-once and replay."""

    def test_first_call_executes_and_records(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        double = CountingStep(lambda x: x * 2)

        assert coordinator.invoke(KEY, None, double, 5) == 10
        assert double.calls == 1
        assert inmemory_store.get_output(KEY).output == "10"

    def test_replay_returns_recorded_output_without_calling(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        double = CountingStep(lambda x: x * 2)

        coordinator.invoke(KEY, None, double, 5)
        assert coordinator.invoke(KEY, None, double, 7) == 10
        assert double.calls == 1
        assert inmemory_store.storage.insert_count == 1

    def test_replay_returns_json_form(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        step = CountingStep(lambda: (1, 2))

        assert coordinator.invoke(KEY, None, step) == (1, 2)
        assert coordinator.invoke(KEY, None, step) == [1, 2]

    def test_none_output_is_recorded(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        step = CountingStep(lambda: None)

        assert coordinator.invoke(KEY, None, step) is None
        assert coordinator.invoke(KEY, None, step) is None
        assert step.calls == 1

    def test_distinct_keys_execute_separately(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        step = CountingStep(lambda x: x)

        coordinator.invoke(ExecutionKey("wf-1", 1), None, step, "a")
        coordinator.invoke(ExecutionKey("wf-1", 2), None, step, "b")
        coordinator.invoke(ExecutionKey("wf-2", 1), None, step, "c")

        assert step.calls == 3

    def test_step_writes_commit_with_output(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)

        def deposit(amount):
            client = get_client()
            client.put("balance", client.get("balance", 0) + amount)
            return amount

        coordinator.invoke(KEY, None, deposit, 10)
        coordinator.invoke(KEY, None, deposit, 10)

        assert inmemory_store.storage.data["balance"] == 10

    def test_scope_is_cleared_after_step(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        seen = []

        coordinator.invoke(KEY, None, lambda: seen.append(in_transaction()))

        assert seen == [True]
        assert in_transaction() is False


# ═══════════════════════════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════════════════════════


class TestFailureRollback:
    """Tests for step failures."""

    def test_error_propagates_unchanged_and_records_nothing(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        error = ValueError("insufficient funds")

        def failing():
            get_client().put("balance", -1)
            raise error

        with pytest.raises(ValueError) as exc_info:
            coordinator.invoke(KEY, None, failing)

        assert exc_info.value is error
        assert inmemory_store.get_output(KEY) is None
        assert inmemory_store.storage.data == {}
        assert inmemory_store.storage.statements[-1] == "ROLLBACK"
        assert in_transaction() is False

    def test_retry_after_failure_executes_again(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("transient")
            return "ok"

        with pytest.raises(RuntimeError):
            coordinator.invoke(KEY, None, flaky)
        assert coordinator.invoke(KEY, None, flaky) == "ok"
        assert len(attempts) == 2

    def test_non_serializable_output_rolls_back(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)

        def step():
            get_client().put("balance", 1)
            return object()

        with pytest.raises(TypeError):
            coordinator.invoke(KEY, None, step)

        assert inmemory_store.get_output(KEY) is None
        assert inmemory_store.storage.data == {}


# ═══════════════════════════════════════════════════════════════════════════════
# Conflicts
# ═══════════════════════════════════════════════════════════════════════════════


class TestConflictRetry:
    """Tests for convergence when a concurrent attempt commits first."""

    def test_conflict_returns_committed_output(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)

        def step():
            get_client().put("loser-write", True)
            _commit_peer_output(inmemory_store, KEY, '"peer"')
            return "mine"

        counted = CountingStep(step)
        assert coordinator.invoke(KEY, None, counted) == "peer"
        assert counted.calls == 1
        assert "loser-write" not in inmemory_store.storage.data
        assert inmemory_store.storage.insert_count == 1

    def test_conflict_waits_per_retry_policy(self, inmemory_store, monkeypatch):
        sleeps = []
        monkeypatch.setattr(
            "txledger.application.services.transaction_coordinator.time.sleep",
            sleeps.append,
        )
        coordinator = TransactionCoordinator(
            inmemory_store, ConflictRetryPolicy(initial_delay=0.01)
        )

        coordinator.invoke(KEY, None, lambda: _commit_peer_output(inmemory_store, KEY, "1"))

        assert sleeps == [0.01]

    def test_zero_delay_does_not_sleep(self, inmemory_store, monkeypatch):
        sleeps = []
        monkeypatch.setattr(
            "txledger.application.services.transaction_coordinator.time.sleep",
            sleeps.append,
        )
        coordinator = TransactionCoordinator(inmemory_store)

        coordinator.invoke(KEY, None, lambda: _commit_peer_output(inmemory_store, KEY, "1"))

        assert sleeps == []

    def test_concurrent_racers_converge(self, storage):
        racers = 8
        barrier = threading.Barrier(racers)
        counter = iter(range(1000))
        lock = threading.Lock()

        def step():
            with lock:
                value = next(counter)
            time.sleep(0.01)
            return value

        def race():
            store = InMemoryTransactionalStore(storage)
            store.initialize()
            barrier.wait(timeout=5)
            return TransactionCoordinator(store).invoke(KEY, None, step)

        with ThreadPoolExecutor(max_workers=racers) as pool:
            results = list(pool.map(lambda _: race(), range(racers)))

        assert len(set(results)) == 1
        assert storage.outputs[KEY].value() == results[0]
        assert storage.insert_count == 1


class TestSQLiteConflict:
    """Conflict handling against a real database."""

    def test_unique_violation_replays_peer_output(self, sqlite_store):
        coordinator = TransactionCoordinator(sqlite_store)

        def step():
            _commit_peer_output(sqlite_store, KEY, '{"winner": "peer"}')
            return {"winner": "me"}

        counted = CountingStep(step)
        assert coordinator.invoke(KEY, None, counted) == {"winner": "peer"}
        assert counted.calls == 1

    def test_step_writes_are_atomic_with_output(self, sqlite_store):
        with sqlite_store.engine.begin() as connection:
            connection.execute(text("CREATE TABLE accounts (id TEXT PRIMARY KEY, balance INTEGER)"))
        coordinator = TransactionCoordinator(sqlite_store)

        def open_account(balance):
            get_client().execute(
                text("INSERT INTO accounts VALUES ('alice', :balance)"), {"balance": balance}
            )
            return balance

        assert coordinator.invoke(KEY, None, open_account, 10) == 10
        assert coordinator.invoke(KEY, None, open_account, 99) == 10

        with sqlite_store.engine.connect() as connection:
            rows = connection.execute(text("SELECT balance FROM accounts")).scalars().all()
        assert rows == [10]


# ═══════════════════════════════════════════════════════════════════════════════
# Isolation and Nesting
# ═══════════════════════════════════════════════════════════════════════════════


class TestIsolationAndNesting:
    """Tests for isolation level plumbing and nested invocations."""

    def test_isolation_level_begins_transaction(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        config = TransactionConfig(IsolationLevel.SERIALIZABLE)

        coordinator.invoke(KEY, config, lambda: 1)

        assert inmemory_store.storage.statements[0] == "BEGIN ISOLATION LEVEL SERIALIZABLE"

    def test_default_isolation(self, inmemory_store):
        TransactionCoordinator(inmemory_store).invoke(KEY, None, lambda: 1)
        assert inmemory_store.storage.statements == ["BEGIN", "COMMIT"]

    def test_invalid_isolation_fails_before_begin(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        step = CountingStep(lambda: 1)
        with pytest.raises(InvalidIsolationLevel):
            coordinator.invoke(KEY, {"isolation_level": "SNAPSHOT"}, step)

        assert step.calls == 0
        assert inmemory_store.storage.statements == []

    def test_nested_call_joins_outer_transaction(self, inmemory_store):
        coordinator = TransactionCoordinator(inmemory_store)
        inner_key = ExecutionKey("wf-1", 4)

        def inner():
            get_client().put("inner", True)
            return "inner"

        def outer():
            return coordinator.invoke(inner_key, None, inner) + "+outer"

        assert coordinator.invoke(KEY, None, outer) == "inner+outer"
        assert inmemory_store.get_output(inner_key) is None
        assert inmemory_store.storage.data == {"inner": True}
        assert inmemory_store.storage.statements == ["BEGIN", "COMMIT"]


class TestConflictRetryPolicy:
    """Tests for ConflictRetryPolicy."""

    def test_default_retries_immediately(self):
        delays = ConflictRetryPolicy().delays()
        assert [next(delays) for _ in range(3)] == [0.0, 0.0, 0.0]

    def test_backoff_is_capped(self):
        delays = ConflictRetryPolicy(initial_delay=1.0, backoff_factor=2.0, max_delay=3.0).delays()
        assert [next(delays) for _ in range(4)] == [1.0, 2.0, 3.0, 3.0]


class TestSQLiteConcurrency:
    """Concurrent attempts against a real database."""

    def test_concurrent_racers_converge(self, sqlite_store):
        racers = 8
        barrier = threading.Barrier(racers)
        counter = iter(range(1000))
        lock = threading.Lock()

        def step():
            with lock:
                value = next(counter)
            time.sleep(0.01)
            return value

        def race(_):
            barrier.wait(timeout=5)
            return TransactionCoordinator(sqlite_store).invoke(KEY, None, step)

        with ThreadPoolExecutor(max_workers=racers) as pool:
            results = list(pool.map(race, range(racers)))

        assert len(set(results)) == 1
        assert sqlite_store.get_output(KEY).value() == results[0]
        with sqlite_store.engine.connect() as connection:
            rows = connection.execute(text("SELECT COUNT(*) FROM transaction_outputs")).scalar()
        assert rows == 1

    def test_client_unusable_after_step(self, sqlite_store):
        with sqlite_store.engine.begin() as connection:
            connection.execute(text("CREATE TABLE audit (id INTEGER)"))
        coordinator = TransactionCoordinator(sqlite_store)
        clients = []

        coordinator.invoke(KEY, None, lambda: clients.append(get_client()))

        session = clients[0]
        with pytest.raises(InvalidRequestError):
            session.execute(text("INSERT INTO audit VALUES (1)"))
        with sqlite_store.engine.connect() as connection:
            assert connection.execute(text("SELECT COUNT(*) FROM audit")).scalar() == 0
