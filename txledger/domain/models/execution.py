"""
Execution Domain Models.

Value objects for the exactly-once transaction protocol:
- ExecutionKey: identity of one step within one workflow run
- OutputRecord: durable, committed result of a step
- TransactionConfig: per-step transaction options
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
import json
import time

from .exceptions import InvalidIsolationLevel, MissingExecutionIdentity
from .isolation import IsolationLevel, parse_isolation_level


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def serialize_output(value: Any) -> str:
    """Serialize a step return value to ledger text."""
    return json.dumps(value)


def deserialize_output(output: Optional[str]) -> Any:
    """Deserialize ledger text back to the step return value."""
    if output is None:
        return None
    return json.loads(output)


@dataclass(frozen=True)
class ExecutionKey:
    """
    Execution identity: (workflow id, function number).

    Supplied by the workflow engine for every transactional call,
    never generated by this package.
    """

    workflow_id: str
    function_number: int

    def __post_init__(self):
        if not isinstance(self.workflow_id, str) or not self.workflow_id:
            raise MissingExecutionIdentity("Workflow ID is not set.")
        if isinstance(self.function_number, bool) or not isinstance(self.function_number, int):
            raise MissingExecutionIdentity("Function Number is not set.")

    def __str__(self) -> str:
        return f"{self.workflow_id}:{self.function_number}"


@dataclass(frozen=True)
class OutputRecord:
    """
    Committed output of one execution.

    Attributes:
        key: Execution identity the output belongs to
        output: JSON text of the return value
        created_at: Commit time in epoch milliseconds
    """

    key: ExecutionKey
    output: Optional[str]
    created_at: int = field(default_factory=now_ms)

    def value(self) -> Any:
        """Deserialized return value."""
        return deserialize_output(self.output)


@dataclass(frozen=True)
class TransactionConfig:
    """Options for one transactional step."""

    isolation_level: Optional[IsolationLevel] = None

    def __post_init__(self):
        object.__setattr__(
            self, "isolation_level", parse_isolation_level(self.isolation_level)
        )

    @classmethod
    def coerce(
        cls, config: Union["TransactionConfig", Dict[str, Any], IsolationLevel, str, None]
    ) -> "TransactionConfig":
        """
        Accept a TransactionConfig, a mapping, a bare isolation level or None.

        Raises:
            InvalidIsolationLevel: For any other value
        """
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        if isinstance(config, (IsolationLevel, str)):
            return cls(isolation_level=config)
        if isinstance(config, Mapping):
            return cls.from_dict(config)
        raise InvalidIsolationLevel(config)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isolation_level": self.isolation_level.value if self.isolation_level else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionConfig":
        return cls(isolation_level=data.get("isolation_level"))
