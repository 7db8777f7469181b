"""
Transaction Coordinator Implementation.

Runs one transactional step exactly once per execution key:

    check → begin → execute → persist → commit

- Check: a committed output for the key is replayed without calling the
  step function.
- Conflict: the ledger insert (or commit) found a committed output from a
  concurrent attempt; the transaction is rolled back and the loop restarts
  at the check, which now returns the winner's output.
- Any other error rolls back and propagates unchanged.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from txledger.domain.interfaces.transactional_store import ITransactionalStore
from txledger.domain.models import (
    ExecutionKey,
    IsolationLevel,
    OutputConflictError,
    TransactionConfig,
    get_isolation_option,
    serialize_output,
)
from txledger.application.transaction_context import in_transaction, transaction_scope

logger = logging.getLogger(__name__)


@dataclass
class ConflictRetryPolicy:
    """
    Wait between a ledger conflict and the next check.

    The attempt count is never capped: a conflict means a peer committed,
    so the next check is expected to hit. The default (zero delay) retries
    immediately.

    Attributes:
        initial_delay: Seconds to wait after the first conflict
        backoff_factor: Multiplier applied after each further conflict
        max_delay: Upper bound for a single wait
    """

    initial_delay: float = 0.0
    backoff_factor: float = 1.5
    max_delay: float = 2.0

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay
        while True:
            yield delay
            delay = min(delay * self.backoff_factor, self.max_delay)


class TransactionCoordinator:
    """
    Orchestrates the exactly-once loop over a sync store driver.

    Usage:
        coordinator = TransactionCoordinator(store)
        value = coordinator.invoke(ExecutionKey("wf-1", 3), None, double, 5)
    """

    def __init__(
        self,
        store: ITransactionalStore,
        retry_policy: Optional[ConflictRetryPolicy] = None,
    ):
        self._store = store
        self._retry_policy = retry_policy or ConflictRetryPolicy()

    @property
    def store(self) -> ITransactionalStore:
        return self._store

    def invoke(
        self,
        key: ExecutionKey,
        config: Optional[TransactionConfig],
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Run func as the transactional step identified by key.

        Nested calls made while a transaction is already bound join it:
        they run inside the outer transaction and record no output of
        their own.

        Returns:
            The step's return value, or the committed value on replay

        Raises:
            InvalidIsolationLevel: Unknown isolation level in config
            Exception: Whatever func or the store raised, unchanged
        """
        isolation_level = TransactionConfig.coerce(config).isolation_level
        get_isolation_option(isolation_level)

        if in_transaction():
            logger.debug(f"Joining active transaction for {key}")
            return func(*args, **kwargs)

        delays = self._retry_policy.delays()
        attempt = 0
        while True:
            record = self._store.get_output(key)
            if record is not None:
                logger.debug(f"Replaying transaction output for {key}")
                return record.value()

            attempt += 1
            try:
                return self._run_attempt(key, isolation_level, func, args, kwargs)
            except OutputConflictError:
                delay = next(delays)
                logger.debug(
                    f"Output conflict for {key} on attempt {attempt}, "
                    f"re-checking ledger in {delay:.3f}s"
                )
                if delay > 0:
                    time.sleep(delay)

    def _run_attempt(
        self,
        key: ExecutionKey,
        isolation_level: Optional[IsolationLevel],
        func: Callable[..., Any],
        args: tuple,
        kwargs: dict,
    ) -> Any:
        with self._store.unit_of_work(isolation_level) as uow:
            with transaction_scope(uow):
                output = func(*args, **kwargs)
            uow.outputs.insert_output(key, serialize_output(output))
            uow.commit()
        logger.debug(f"Committed transaction output for {key}")
        return output
