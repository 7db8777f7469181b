"""
Transaction Context Propagation.

Exposes the active transaction of a step attempt to arbitrarily nested
code without passing it as an argument.

Uses ``contextvars`` so the binding is per thread and per asyncio task:
concurrent attempts never observe each other's transaction, and the
binding is restored through ``ContextVar.reset`` however the scope exits.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

from txledger.domain.models import MissingContextError


_active_transaction: ContextVar[Optional[Any]] = ContextVar(
    "txledger_active_transaction", default=None
)


@contextmanager
def transaction_scope(unit_of_work: Any) -> Iterator[Any]:
    """
    Bind a unit of work as the active transaction for the enclosed block.

    Usage:
        with transaction_scope(uow):
            result = func(*args)
    """
    token = _active_transaction.set(unit_of_work)
    try:
        yield unit_of_work
    finally:
        _active_transaction.reset(token)


def in_transaction() -> bool:
    """True when called inside an active transaction scope."""
    return _active_transaction.get() is not None


def get_active_transaction() -> Any:
    """
    The unit of work bound for the current attempt.

    Raises:
        MissingContextError: Outside any transaction scope
    """
    unit_of_work = _active_transaction.get()
    if unit_of_work is None:
        raise MissingContextError(
            "Invalid use of the transactional client outside of a transaction step."
        )
    return unit_of_work


def get_client() -> Any:
    """
    The transactional client (Session, AsyncSession, ...) of the current attempt.

    Raises:
        MissingContextError: Outside any transaction scope
    """
    return get_active_transaction().client
