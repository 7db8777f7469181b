"""
Pytest fixtures for txledger tests.

Stores are built per test:
- In-memory store over a fresh InMemoryLedgerStorage
- SQLite file database under tmp_path (sync and aiosqlite)

Run with: pytest tests/test_txledger/ -v
"""

import pytest
import pytest_asyncio

from txledger.application import (
    AsyncTransactionalDataSource,
    ConflictRetryPolicy,
    TransactionalDataSource,
)
from txledger.config import reset_config
from txledger.infrastructure.database import DatabaseConfig, InMemoryLedgerStorage
from txledger.infrastructure.stores import (
    AsyncSQLAlchemyTransactionalStore,
    InMemoryTransactionalStore,
    SQLAlchemyTransactionalStore,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture(autouse=True)
def clean_global_config():
    """Keep the global config from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sqlite_config(tmp_path) -> DatabaseConfig:
    """SQLite database config (the ledger schema is ignored on SQLite)."""
    return DatabaseConfig(db_url=f"sqlite:///{tmp_path / 'ledger.db'}")


# ═══════════════════════════════════════════════════════════════════════════════
# Stores
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def inmemory_store(storage) -> InMemoryTransactionalStore:
    store = InMemoryTransactionalStore(storage)
    store.initialize()
    return store


@pytest.fixture
def sqlite_store(sqlite_config):
    store = SQLAlchemyTransactionalStore(sqlite_config)
    store.initialize()
    store.configure_schema()
    yield store
    store.destroy()


@pytest_asyncio.fixture
async def async_sqlite_store(sqlite_config):
    store = AsyncSQLAlchemyTransactionalStore(sqlite_config)
    await store.ainitialize()
    await store.aconfigure_schema()
    yield store
    await store.adestroy()


# ═══════════════════════════════════════════════════════════════════════════════
# Data Sources
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def retry_policy() -> ConflictRetryPolicy:
    return ConflictRetryPolicy()


@pytest.fixture
def inmemory_data_source(inmemory_store, retry_policy) -> TransactionalDataSource:
    return TransactionalDataSource("test-db", inmemory_store, retry_policy=retry_policy)


@pytest.fixture
def sqlite_data_source(sqlite_store, retry_policy) -> TransactionalDataSource:
    return TransactionalDataSource("test-db", sqlite_store, retry_policy=retry_policy)


@pytest.fixture
def async_inmemory_data_source(inmemory_store, retry_policy) -> AsyncTransactionalDataSource:
    return AsyncTransactionalDataSource("test-db", inmemory_store, retry_policy=retry_policy)


@pytest.fixture
def async_sqlite_data_source(async_sqlite_store, retry_policy) -> AsyncTransactionalDataSource:
    return AsyncTransactionalDataSource("test-db", async_sqlite_store, retry_policy=retry_policy)
