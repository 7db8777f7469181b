"""
Ambient Execution Identity.

Default IExecutionIdentityProvider: the workflow engine binds the
(workflow id, function number) of the running step with
``execution_scope`` and data sources read it at call time.

Usage (engine side):
    with execution_scope(workflow_id, step_id):
        registered_step(5)
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from txledger.domain.models import ExecutionKey, MissingExecutionIdentity


_current_execution: ContextVar[Optional[ExecutionKey]] = ContextVar(
    "txledger_current_execution", default=None
)


@contextmanager
def execution_scope(workflow_id: str, function_number: int) -> Iterator[ExecutionKey]:
    """Bind the execution identity for the enclosed block."""
    key = ExecutionKey(workflow_id, function_number)
    token = _current_execution.set(key)
    try:
        yield key
    finally:
        _current_execution.reset(token)


def get_execution_key() -> Optional[ExecutionKey]:
    """Current identity, or None outside an execution scope."""
    return _current_execution.get()


def current_execution_key() -> ExecutionKey:
    """
    Current identity.

    Raises:
        MissingExecutionIdentity: Outside an execution scope
    """
    key = _current_execution.get()
    if key is None:
        raise MissingExecutionIdentity("Workflow ID is not set.")
    return key
