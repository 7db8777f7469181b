"""Sync ledger repositories."""

from .base import is_unique_violation, UNIQUE_VIOLATION_SQLSTATE
from .output_ledger_repository import SQLAlchemyOutputLedgerRepository

__all__ = [
    "is_unique_violation",
    "UNIQUE_VIOLATION_SQLSTATE",
    "SQLAlchemyOutputLedgerRepository",
]
