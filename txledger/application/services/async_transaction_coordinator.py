"""
Async Transaction Coordinator Implementation.

Asyncio counterpart of TransactionCoordinator. The step function may be a
coroutine function or a plain callable.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from txledger.domain.interfaces.transactional_store import IAsyncTransactionalStore
from txledger.domain.models import (
    ExecutionKey,
    IsolationLevel,
    OutputConflictError,
    TransactionConfig,
    get_isolation_option,
    serialize_output,
)
from txledger.application.transaction_context import in_transaction, transaction_scope
from .transaction_coordinator import ConflictRetryPolicy

logger = logging.getLogger(__name__)


async def _call(func: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class AsyncTransactionCoordinator:
    """
    Orchestrates the exactly-once loop over an async store driver.

    Concurrent tasks invoking the same key converge on a single committed
    output; each task owns its own connection and transaction.
    """

    def __init__(
        self,
        store: IAsyncTransactionalStore,
        retry_policy: Optional[ConflictRetryPolicy] = None,
    ):
        self._store = store
        self._retry_policy = retry_policy or ConflictRetryPolicy()

    @property
    def store(self) -> IAsyncTransactionalStore:
        return self._store

    async def ainvoke(
        self,
        key: ExecutionKey,
        config: Optional[TransactionConfig],
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Async version of TransactionCoordinator.invoke."""
        isolation_level = TransactionConfig.coerce(config).isolation_level
        get_isolation_option(isolation_level)

        if in_transaction():
            logger.debug(f"Joining active transaction for {key}")
            return await _call(func, args, kwargs)

        delays = self._retry_policy.delays()
        attempt = 0
        while True:
            record = await self._store.aget_output(key)
            if record is not None:
                logger.debug(f"Replaying transaction output for {key}")
                return record.value()

            attempt += 1
            try:
                return await self._run_attempt(key, isolation_level, func, args, kwargs)
            except OutputConflictError:
                delay = next(delays)
                logger.debug(
                    f"Output conflict for {key} on attempt {attempt}, "
                    f"re-checking ledger in {delay:.3f}s"
                )
                # Yields to the loop even with zero delay
                await asyncio.sleep(delay)

    async def _run_attempt(
        self,
        key: ExecutionKey,
        isolation_level: Optional[IsolationLevel],
        func: Callable[..., Any],
        args: tuple,
        kwargs: dict,
    ) -> Any:
        async with self._store.unit_of_work(isolation_level) as uow:
            with transaction_scope(uow):
                output = await _call(func, args, kwargs)
            await uow.outputs.ainsert_output(key, serialize_output(output))
            await uow.acommit()
        logger.debug(f"Committed transaction output for {key}")
        return output
