"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import BaseDialect, Dialect, DialectCapabilities


class PostgresDialect(BaseDialect):
    """
    PostgreSQL dialect with native booleans and bytea literals.

    Text literals assume ``standard_conforming_strings`` (the default since
    PostgreSQL 9.1), so backslashes need no escaping.
    """

    name: Final[str] = "postgresql"
    quote_char: Final[str] = '"'
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=True,
        supports_savepoints=True,
        native_boolean=True,
        like_escape_clause=True,
    )

    def escape_text(self, value: str) -> str:
        if "\x00" in value:
            raise ValueError("PostgreSQL text cannot contain NUL characters.")
        return "'" + value.replace("'", "''") + "'"

    def escape_binary(self, value: bytes) -> str:
        return f"'\\x{value.hex()}'::bytea"

    def escape_bool(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"


def get_postgres_dialect() -> Dialect:
    return PostgresDialect()
