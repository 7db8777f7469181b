"""Transactional store drivers - one variant per backing driver."""

from .sqlalchemy_store import SQLAlchemyTransactionalStore
from .async_sqlalchemy_store import AsyncSQLAlchemyTransactionalStore
from .inmemory_store import InMemoryTransactionalStore

__all__ = [
    "SQLAlchemyTransactionalStore",
    "AsyncSQLAlchemyTransactionalStore",
    "InMemoryTransactionalStore",
]
