"""
SQLAlchemy ORM Models for the transaction ledger.

The table is declared without a schema; the configured namespace is
applied per engine through ``schema_translate_map`` (see config.py).
"""

from sqlalchemy import BigInteger, Column, Integer, Text
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.expression import FunctionElement

from txledger.domain.models import ExecutionKey, OutputRecord, now_ms

Base = declarative_base()


LEDGER_TABLE_NAME = "transaction_outputs"


class epoch_ms_now(FunctionElement):
    """Current time in epoch milliseconds, rendered per dialect for DDL defaults."""

    type = BigInteger()
    name = "epoch_ms_now"
    inherit_cache = True


@compiles(epoch_ms_now)
def _epoch_ms_now_default(element, compiler, **kw):
    return "(CAST(EXTRACT(EPOCH FROM CURRENT_TIMESTAMP) * 1000 AS BIGINT))"


@compiles(epoch_ms_now, "postgresql")
def _epoch_ms_now_postgresql(element, compiler, **kw):
    return "((EXTRACT(EPOCH FROM now()) * 1000)::bigint)"


@compiles(epoch_ms_now, "sqlite")
def _epoch_ms_now_sqlite(element, compiler, **kw):
    return "(CAST((julianday('now') - 2440587.5) * 86400000 AS INTEGER))"


class TransactionOutputORM(Base):
    """ORM model for the transaction_outputs ledger table."""

    __tablename__ = LEDGER_TABLE_NAME

    workflow_id = Column(Text, primary_key=True, nullable=False)
    function_num = Column(Integer, primary_key=True, nullable=False, autoincrement=False)
    output = Column(Text, nullable=True)  # JSON: serialized return value
    created_at = Column(
        BigInteger, nullable=False, default=now_ms, server_default=epoch_ms_now()
    )  # epoch ms

    def __repr__(self) -> str:
        return (
            f"<TransactionOutputORM workflow_id={self.workflow_id!r} "
            f"function_num={self.function_num}>"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Domain ↔ ORM mapping
# ═══════════════════════════════════════════════════════════════════════════════


def to_domain(orm: TransactionOutputORM) -> OutputRecord:
    """Convert a ledger row to an OutputRecord."""
    return OutputRecord(
        key=ExecutionKey(orm.workflow_id, orm.function_num),
        output=orm.output,
        created_at=orm.created_at,
    )


def to_orm(record: OutputRecord) -> TransactionOutputORM:
    """Convert an OutputRecord to a ledger row."""
    return TransactionOutputORM(
        workflow_id=record.key.workflow_id,
        function_num=record.key.function_number,
        output=record.output,
        created_at=record.created_at,
    )
