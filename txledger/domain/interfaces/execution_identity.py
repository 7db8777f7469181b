"""
Execution Identity Provider.

The workflow engine owns attempt identity. Data sources read it at call
time through a zero-argument callable returning the current ExecutionKey,
or None when called outside a workflow attempt.
"""

from typing import Callable, Optional

from txledger.domain.models import ExecutionKey


IExecutionIdentityProvider = Callable[[], Optional[ExecutionKey]]
