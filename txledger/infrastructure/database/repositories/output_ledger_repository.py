"""
SQLAlchemy Output Ledger Repository.

Implements IOutputLedger on top of a Session. The session decides the
transaction: a short-lived session for lookups, the attempt's session
for the insert.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from txledger.domain.interfaces.output_ledger import IOutputLedger
from txledger.domain.models import ExecutionKey, OutputConflictError, OutputRecord
from txledger.infrastructure.database.models import TransactionOutputORM, to_domain, to_orm
from .base import is_unique_violation

logger = logging.getLogger(__name__)


class SQLAlchemyOutputLedgerRepository(IOutputLedger):
    """
    SQLAlchemy implementation of IOutputLedger.

    Append-only: rows are inserted once and never updated or deleted.
    """

    def __init__(self, session: Session):
        self._session = session
        self.inserted_key: Optional[ExecutionKey] = None

    def get_output(self, key: ExecutionKey) -> Optional[OutputRecord]:
        orm = (
            self._session.query(TransactionOutputORM)
            .filter(
                TransactionOutputORM.workflow_id == key.workflow_id,
                TransactionOutputORM.function_num == key.function_number,
            )
            .first()
        )
        return to_domain(orm) if orm else None

    def insert_output(self, key: ExecutionKey, output: Optional[str]) -> OutputRecord:
        orm = to_orm(OutputRecord(key=key, output=output))
        self.inserted_key = key
        self._session.add(orm)
        try:
            self._session.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.debug(f"Ledger insert conflict for {key}")
                raise OutputConflictError(key.workflow_id, key.function_number) from e
            raise
        return to_domain(orm)
