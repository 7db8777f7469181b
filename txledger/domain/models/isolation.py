"""
Isolation Policy.

Closed set of transaction isolation levels and their translation to the
clauses a relational store understands.
"""

import re
from enum import Enum
from typing import Optional, Union

from .exceptions import InvalidIsolationLevel


class IsolationLevel(Enum):
    """Transaction isolation levels. ``None`` means the store default."""

    SERIALIZABLE = "serializable"
    REPEATABLE_READ = "repeatable_read"
    READ_COMMITTED = "read_committed"
    READ_UNCOMMITTED = "read_uncommitted"


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])")

_SQL_NAMES = {
    IsolationLevel.SERIALIZABLE: "SERIALIZABLE",
    IsolationLevel.REPEATABLE_READ: "REPEATABLE READ",
    IsolationLevel.READ_COMMITTED: "READ COMMITTED",
    IsolationLevel.READ_UNCOMMITTED: "READ UNCOMMITTED",
}


def parse_isolation_level(
    value: Union[IsolationLevel, str, None]
) -> Optional[IsolationLevel]:
    """
    Normalize a configured isolation level.

    Accepts enum members, their values ("serializable", ...), the SQL
    spelling ("REPEATABLE READ", ...) or camelCase ("repeatableRead", ...).

    Raises:
        InvalidIsolationLevel: For anything else
    """
    if value is None or isinstance(value, IsolationLevel):
        return value
    if isinstance(value, str):
        normalized = _CAMEL_BOUNDARY.sub("_", value.strip()).lower().replace(" ", "_")
        for level in IsolationLevel:
            if level.value == normalized:
                return level
    raise InvalidIsolationLevel(value)


def get_isolation_option(level: Optional[IsolationLevel]) -> Optional[str]:
    """
    SQL name of the level, as SQLAlchemy's ``isolation_level`` option expects.

    Returns None when the store default should be used.
    """
    if level is None:
        return None
    try:
        return _SQL_NAMES[level]
    except (KeyError, TypeError):
        raise InvalidIsolationLevel(level) from None


def get_isolation_clause(level: Optional[IsolationLevel]) -> str:
    """
    Clause appended to ``BEGIN`` / ``SET TRANSACTION``.

    Example:
        >>> get_isolation_clause(IsolationLevel.SERIALIZABLE)
        'ISOLATION LEVEL SERIALIZABLE'
        >>> get_isolation_clause(None)
        ''
    """
    option = get_isolation_option(level)
    return f"ISOLATION LEVEL {option}" if option else ""
