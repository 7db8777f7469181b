"""Database infrastructure - ORM model, ledger repositories, units of work and provisioning."""

from .models import (
    Base,
    TransactionOutputORM,
    LEDGER_TABLE_NAME,
)
from .unit_of_work import SQLAlchemyLedgerUnitOfWork
from .async_unit_of_work import AsyncSQLAlchemyLedgerUnitOfWork
from .inmemory_unit_of_work import (
    InMemoryLedgerStorage,
    InMemoryLedgerUnitOfWork,
    InMemoryOutputLedger,
    InMemoryTransaction,
)
from .config import (
    DEFAULT_LEDGER_SCHEMA,
    DatabaseConfig,
    get_database_config,
    create_ledger_engine,
    create_async_ledger_engine,
    to_async_url,
    to_sync_url,
)
from .setup import (
    ensure_database,
    drop_database,
    configure_schema,
    setup_database,
    create_ledger_tables,
)

__all__ = [
    # Models
    "Base",
    "TransactionOutputORM",
    "LEDGER_TABLE_NAME",
    # UoW
    "SQLAlchemyLedgerUnitOfWork",
    "AsyncSQLAlchemyLedgerUnitOfWork",
    "InMemoryLedgerStorage",
    "InMemoryLedgerUnitOfWork",
    "InMemoryOutputLedger",
    "InMemoryTransaction",
    # Config
    "DEFAULT_LEDGER_SCHEMA",
    "DatabaseConfig",
    "get_database_config",
    "create_ledger_engine",
    "create_async_ledger_engine",
    "to_async_url",
    "to_sync_url",
    # Setup
    "ensure_database",
    "drop_database",
    "configure_schema",
    "setup_database",
    "create_ledger_tables",
]
