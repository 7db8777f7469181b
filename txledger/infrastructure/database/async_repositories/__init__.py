"""Async ledger repositories."""

from .async_output_ledger_repository import AsyncSQLAlchemyOutputLedgerRepository

__all__ = ["AsyncSQLAlchemyOutputLedgerRepository"]
