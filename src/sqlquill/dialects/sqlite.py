"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import BaseDialect, Dialect, DialectCapabilities


class SQLiteDialect(BaseDialect):
    """
    SQLite dialect: double-quoted identifiers, integer booleans, hex blobs.
    """

    name: Final[str] = "sqlite"
    quote_char: Final[str] = '"'
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=False,
        supports_savepoints=True,
        native_boolean=False,
        like_escape_clause=True,
    )

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            if limit is None:
                parts.append("LIMIT -1")
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


def get_sqlite_dialect() -> Dialect:
    return SQLiteDialect()
