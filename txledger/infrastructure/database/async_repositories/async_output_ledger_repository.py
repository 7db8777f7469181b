"""
Async SQLAlchemy Output Ledger Repository.

Same semantics as SQLAlchemyOutputLedgerRepository on an AsyncSession
(aiosqlite / asyncpg).
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from txledger.domain.interfaces.output_ledger import IAsyncOutputLedger
from txledger.domain.models import ExecutionKey, OutputConflictError, OutputRecord
from txledger.infrastructure.database.models import TransactionOutputORM, to_domain, to_orm
from txledger.infrastructure.database.repositories.base import is_unique_violation

logger = logging.getLogger(__name__)


class AsyncSQLAlchemyOutputLedgerRepository(IAsyncOutputLedger):
    """Async SQLAlchemy implementation of IAsyncOutputLedger."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self.inserted_key: Optional[ExecutionKey] = None

    async def aget_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        stmt = select(TransactionOutputORM).where(
            TransactionOutputORM.workflow_id == key.workflow_id,
            TransactionOutputORM.function_num == key.function_number,
        )
        result = await self._session.execute(stmt)
        orm = result.scalars().first()
        return to_domain(orm) if orm else None

    async def ainsert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        orm = to_orm(OutputRecord(key=key, output=output))
        self.inserted_key = key
        self._session.add(orm)
        try:
            await self._session.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.debug(f"Ledger insert conflict for {key}")
                raise OutputConflictError(key.workflow_id, key.function_number) from e
            raise
        return to_domain(orm)
