"""Shared helpers for ledger repositories."""

from sqlalchemy.exc import IntegrityError


UNIQUE_VIOLATION_SQLSTATE = "23505"

_SQLITE_UNIQUE_ERRORS = ("SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE")


def is_unique_violation(error: IntegrityError) -> bool:
    """
    True if the integrity error is a primary-key / unique violation.

    PostgreSQL drivers expose the SQLSTATE (psycopg2/asyncpg: ``pgcode``,
    psycopg 3: ``sqlstate``); SQLite only reports it through the error name
    (Python 3.11+) or message.
    """
    orig = getattr(error, "orig", None)
    if orig is None:
        return False

    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE

    if getattr(orig, "sqlite_errorname", None) in _SQLITE_UNIQUE_ERRORS:
        return True
    return "UNIQUE constraint failed" in str(orig)
