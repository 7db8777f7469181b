"""Domain Models - Value Objects and Exceptions."""

from .execution import (
    ExecutionKey,
    OutputRecord,
    TransactionConfig,
    serialize_output,
    deserialize_output,
    now_ms,
)
from .isolation import (
    IsolationLevel,
    parse_isolation_level,
    get_isolation_clause,
    get_isolation_option,
)
from .exceptions import (
    TxLedgerError,
    ConfigurationError,
    OutputConflictError,
    MissingExecutionIdentity,
    MissingContextError,
    InvalidIsolationLevel,
    DataSourceNotInitializedError,
    DuplicateRegistrationError,
)

__all__ = [
    # Execution models
    "ExecutionKey",
    "OutputRecord",
    "TransactionConfig",
    "serialize_output",
    "deserialize_output",
    "now_ms",
    # Isolation policy
    "IsolationLevel",
    "parse_isolation_level",
    "get_isolation_clause",
    "get_isolation_option",
    # Exceptions
    "TxLedgerError",
    "ConfigurationError",
    "OutputConflictError",
    "MissingExecutionIdentity",
    "MissingContextError",
    "InvalidIsolationLevel",
    "DataSourceNotInitializedError",
    "DuplicateRegistrationError",
]
