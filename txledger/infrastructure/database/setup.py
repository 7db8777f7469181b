"""
Database Setup and Provisioning.

Administrative helpers run once at application startup, outside the hot
execution path:
- ensure_database / drop_database: create-if-absent / drop-if-present
  against the system catalog (PostgreSQL) or the file system (SQLite)
- configure_schema: namespace + ledger table, via SQLAlchemy ORM metadata
- setup_database: both of the above

Usage:
    from txledger.infrastructure.database.setup import setup_database

    setup_database(DatabaseConfig("postgresql://postgres@localhost/app_db"))
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.schema import CreateSchema

from .config import DatabaseConfig, create_ledger_engine
from .models import Base, LEDGER_TABLE_NAME

logger = logging.getLogger(__name__)


def _quote_identifier(connection: Connection, name: str) -> str:
    return connection.dialect.identifier_preparer.quote_identifier(name)


def _sqlite_path(name: Optional[str]) -> Optional[Path]:
    if not name or name == ":memory:":
        return None
    return Path(name)


def database_exists(connection: Connection, name: str) -> bool:
    """Check the PostgreSQL catalog for a database."""
    result = connection.execute(
        text("SELECT 1 FROM pg_database WHERE datname = :name"),
        {"name": name},
    )
    return result.first() is not None


def ensure_database(name: str, db_config: DatabaseConfig) -> bool:
    """
    Create the database if it does not exist.

    Args:
        name: Database name (SQLite: file path)
        db_config: Configuration used to reach the server

    Returns:
        True if the database was created, False if it already existed
    """
    if db_config.is_sqlite:
        path = _sqlite_path(name)
        if path is None or path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{path}")
        try:
            with engine.connect():
                pass
        finally:
            engine.dispose()
        logger.info(f"Created SQLite database: {path}")
        return True

    engine = create_engine(db_config.admin_url, isolation_level="AUTOCOMMIT")
    try:
        with engine.connect() as connection:
            if database_exists(connection, name):
                return False
            # CREATE DATABASE cannot run inside a transaction block
            connection.execute(text(f"CREATE DATABASE {_quote_identifier(connection, name)}"))
    finally:
        engine.dispose()
    logger.info(f"Created database: {name}")
    return True


def drop_database(name: str, db_config: DatabaseConfig) -> bool:
    """
    Drop the database if it exists.

    Returns:
        True if the database was dropped
    """
    if db_config.is_sqlite:
        path = _sqlite_path(name)
        if path is None or not path.exists():
            return False
        path.unlink()
        logger.info(f"Dropped SQLite database: {path}")
        return True

    engine = create_engine(db_config.admin_url, isolation_level="AUTOCOMMIT")
    try:
        with engine.connect() as connection:
            if not database_exists(connection, name):
                return False
            connection.execute(text(f"DROP DATABASE {_quote_identifier(connection, name)}"))
    finally:
        engine.dispose()
    logger.info(f"Dropped database: {name}")
    return True


def create_ledger_tables(connection: Connection, schema: Optional[str]) -> None:
    """
    Create the namespace (if any) and the ledger table on a connection.

    Idempotent: existing objects are left untouched. Async engines run it
    through ``AsyncConnection.run_sync``.
    """
    if schema:
        connection.execute(CreateSchema(schema, if_not_exists=True))
    Base.metadata.create_all(connection, checkfirst=True)


def create_ledger_schema(engine: Engine, schema: Optional[str]) -> None:
    """Create the namespace and ledger table in one transaction."""
    with engine.begin() as connection:
        create_ledger_tables(connection, schema)


def configure_schema(db_config: DatabaseConfig) -> bool:
    """
    Create the ledger namespace and table if absent.

    Returns:
        True if the ledger table exists afterwards
    """
    engine = create_ledger_engine(db_config)
    schema = db_config.effective_schema
    try:
        create_ledger_schema(engine, schema)
        exists = inspect(engine).has_table(LEDGER_TABLE_NAME, schema=schema)
    finally:
        engine.dispose()

    location = f"{schema}.{LEDGER_TABLE_NAME}" if schema else LEDGER_TABLE_NAME
    logger.info(f"Ledger schema configured: {location}")
    return exists


def setup_database(db_config: DatabaseConfig) -> bool:
    """
    Startup bootstrap: ensure the configured database, then its schema.

    Returns:
        True if the ledger table is ready
    """
    name = db_config.database_name
    if not name:
        raise ValueError(f"Database name is required: {db_config.db_url}")
    ensure_database(name, db_config)
    return configure_schema(db_config)
