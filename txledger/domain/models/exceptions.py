"""
Transactional Ledger Exceptions.

Exception hierarchy for the exactly-once transaction protocol.

Only OutputConflictError is handled inside the package (the coordinator
retries on it). Everything else crosses the coordinator boundary unchanged
so the workflow engine can apply its own retry bookkeeping.
"""

from typing import Optional


class TxLedgerError(Exception):
    """
    Base exception for transactional ledger errors.

    All package exceptions inherit from this.
    """
    pass


class ConfigurationError(TxLedgerError):
    """
    Invalid or missing configuration detected at invocation time.

    Never retried.
    """
    pass


class OutputConflictError(TxLedgerError):
    """
    A ledger record for the execution key already exists.

    Raised when the insert (or the commit) violates the primary key on
    (workflow_id, function_num), meaning another attempt for the same key
    has already committed its output.
    """

    def __init__(self, workflow_id: Optional[str] = None, function_number: Optional[int] = None):
        self.workflow_id = workflow_id
        self.function_number = function_number
        if workflow_id is None:
            message = "Output already recorded for this execution"
        else:
            message = (
                f"Output already recorded for workflow {workflow_id!r}, "
                f"function {function_number}"
            )
        super().__init__(message)


class MissingExecutionIdentity(ConfigurationError):
    """
    Workflow id or function number is not available.

    Raised when a transactional step is invoked outside a workflow attempt.
    """
    pass


class MissingContextError(TxLedgerError):
    """Transactional client accessed outside an active transaction scope."""
    pass


class InvalidIsolationLevel(ConfigurationError):
    """Unrecognized isolation level supplied."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid isolation level: {value!r}")


class DataSourceNotInitializedError(TxLedgerError):
    """Data source used before initialize() or after destroy()."""
    pass


class DuplicateRegistrationError(ConfigurationError):
    """A transaction function with the same name is already registered."""
    pass
