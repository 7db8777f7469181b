"""
Database Configuration for the transaction ledger.

This module holds connection URLs and pool settings only.
Following the layered architecture:
- Config: URLs and pool settings (this file)
- Models: SQLAlchemy ORM definitions (models.py)
- Repositories: Ledger access (repositories/, async_repositories/)
- UoW: Per-attempt transaction management (unit_of_work.py)

Usage:
    from txledger.infrastructure.database.config import get_database_config

    db_config = get_database_config()
    engine = create_ledger_engine(db_config)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from txledger.config import TxLedgerConfig


DEFAULT_LEDGER_SCHEMA = "txledger"

_ASYNC_DRIVERS = {
    "sqlite": "sqlite+aiosqlite",
    "sqlite+pysqlite": "sqlite+aiosqlite",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
}

_SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql",
}


def to_async_url(db_url: str) -> str:
    """Convert a sync URL to its asyncio driver (aiosqlite / asyncpg)."""
    url = make_url(db_url)
    driver = _ASYNC_DRIVERS.get(url.drivername)
    if driver is None:
        return db_url
    return url.set(drivername=driver).render_as_string(hide_password=False)


def to_sync_url(db_url: str) -> str:
    """Convert an asyncio URL back to the default sync driver."""
    url = make_url(db_url)
    driver = _SYNC_DRIVERS.get(url.drivername)
    if driver is None:
        return db_url
    return url.set(drivername=driver).render_as_string(hide_password=False)


@dataclass
class DatabaseConfig:
    """
    Ledger database settings (URLs and pool options only).

    Attributes:
        db_url: Database URL, sync or async form
        ledger_schema: Namespace owning the ledger table (ignored on SQLite)
        pool_size: Connection pool size (non-SQLite)
        max_overflow: Extra connections above pool_size (non-SQLite)
        pool_recycle: Seconds before a pooled connection is recycled
        echo: Log SQL statements
    """

    db_url: str
    ledger_schema: Optional[str] = DEFAULT_LEDGER_SCHEMA
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 3600
    echo: bool = False

    @property
    def sync_url(self) -> str:
        return to_sync_url(self.db_url)

    @property
    def async_url(self) -> str:
        return to_async_url(self.db_url)

    @property
    def dialect(self) -> str:
        """Backend name, e.g. 'postgresql' or 'sqlite'."""
        return make_url(self.db_url).get_backend_name()

    @property
    def is_sqlite(self) -> bool:
        return self.dialect == "sqlite"

    @property
    def supports_schemas(self) -> bool:
        return not self.is_sqlite

    @property
    def effective_schema(self) -> Optional[str]:
        """Schema actually used for the ledger table on this backend."""
        if not self.ledger_schema or not self.supports_schemas:
            return None
        return self.ledger_schema

    @property
    def database_name(self) -> Optional[str]:
        """Target database name (SQLite: file path)."""
        return make_url(self.db_url).database

    @property
    def admin_url(self) -> str:
        """
        Maintenance URL for provisioning.

        PostgreSQL connects to the 'postgres' database since the target
        database may not exist yet.
        """
        url = make_url(self.sync_url)
        if self.is_sqlite:
            return self.sync_url
        return url.set(database="postgres").render_as_string(hide_password=False)

    def engine_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments shared by the sync and async engine factories."""
        kwargs: Dict[str, Any] = {"echo": self.echo}
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_recycle=self.pool_recycle,
                pool_pre_ping=True,
            )
        if self.effective_schema:
            kwargs["execution_options"] = {
                "schema_translate_map": {None: self.effective_schema}
            }
        return kwargs

    @classmethod
    def from_config(cls, config: "TxLedgerConfig") -> "DatabaseConfig":
        """Build from the package configuration."""
        if not config.db_url:
            raise ValueError("db_url is required for sqlalchemy storage modes")
        return cls(
            db_url=config.db_url,
            ledger_schema=config.ledger_schema,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            echo=config.log_sql,
        )


def get_database_config(config: Optional["TxLedgerConfig"] = None) -> DatabaseConfig:
    """
    Database configuration derived from the package configuration.

    Args:
        config: Package configuration (defaults to the global one)
    """
    if config is None:
        from txledger.config import get_config
        config = get_config()
    return DatabaseConfig.from_config(config)


def create_ledger_engine(db_config: DatabaseConfig) -> Engine:
    """
    Create the sync SQLAlchemy engine (connection pool) for the ledger.

    The configured schema is applied through ``schema_translate_map`` so the
    ORM model stays schema-agnostic.
    """
    return create_engine(db_config.sync_url, **db_config.engine_kwargs())


def create_async_ledger_engine(db_config: DatabaseConfig) -> AsyncEngine:
    """Create the asyncio SQLAlchemy engine (aiosqlite / asyncpg)."""
    return create_async_engine(db_config.async_url, **db_config.engine_kwargs())
