"""
Transactional Data Source Interfaces.

The boundary contract a workflow engine expects from a transactional data
source: lifecycle, registration of step functions, and the entry point the
engine calls to run one transactional step.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Union

from txledger.domain.models import IsolationLevel, TransactionConfig


ConfigLike = Union[TransactionConfig, Dict[str, Any], IsolationLevel, str, None]


class ITransactionalDataSource(ABC):
    """Synchronous transactional data source."""

    name: str

    @property
    @abstractmethod
    def ds_type(self) -> str:
        pass

    @abstractmethod
    def initialize(self) -> None:
        pass

    @abstractmethod
    def destroy(self) -> None:
        pass

    @abstractmethod
    def register(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        config: ConfigLike = None,
    ) -> Callable[..., Any]:
        """Wrap func so every call runs as an exactly-once transactional step."""
        pass

    @abstractmethod
    def invoke_transaction_function(
        self,
        config: ConfigLike,
        target: Any,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Run one transactional step under the engine's current identity."""
        pass


class IAsyncTransactionalDataSource(ABC):
    """Async transactional data source."""

    name: str

    @property
    @abstractmethod
    def ds_type(self) -> str:
        pass

    @abstractmethod
    async def ainitialize(self) -> None:
        pass

    @abstractmethod
    async def adestroy(self) -> None:
        pass

    @abstractmethod
    def register(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        config: ConfigLike = None,
    ) -> Callable[..., Any]:
        pass

    @abstractmethod
    async def invoke_transaction_function(
        self,
        config: ConfigLike,
        target: Any,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        pass
