"""
Query event kinds reported around execution.
"""

from __future__ import annotations

import re
from enum import Enum

_COMMAND_RE = re.compile(r"^\s*(?:\(\s*)*(SELECT|INSERT|REPLACE|UPDATE|DELETE)\b", re.IGNORECASE)


class QueryEvent(Enum):
    CONNECT = "connect"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    QUERY = "query"
    BEGIN = "begin"
    COMMIT = "commit"
    ROLLBACK = "rollback"

    @classmethod
    def from_sql(cls, sql: str) -> "QueryEvent":
        """
        Classify a statement by its leading command; anything else is QUERY.
        """
        match = _COMMAND_RE.match(sql)
        if not match:
            return cls.QUERY
        command = match.group(1).upper()
        if command == "REPLACE":
            return cls.INSERT
        return cls[command]
