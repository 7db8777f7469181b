"""Application Services."""

from .transaction_coordinator import TransactionCoordinator, ConflictRetryPolicy
from .async_transaction_coordinator import AsyncTransactionCoordinator

__all__ = [
    "TransactionCoordinator",
    "AsyncTransactionCoordinator",
    "ConflictRetryPolicy",
]
