"""
TXLEDGER Testing Utilities

Provides common fixtures and helpers for testing txledger components.

Usage:
    from txledger.testing import CountingStep, TransactionalStoreTestMixin
"""

from txledger.testing.fixtures import (
    CountingStep,
    StaticIdentityProvider,
    TransactionalStoreTestMixin,
)

__all__ = [
    "CountingStep",
    "StaticIdentityProvider",
    "TransactionalStoreTestMixin",
]
