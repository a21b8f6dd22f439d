"""
MySQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import BaseDialect, Dialect, DialectCapabilities

# Same table as mysql_real_escape_string.
_TEXT_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        "\x00": "\\0",
        "\n": "\\n",
        "\r": "\\r",
        "\x1a": "\\Z",
        "'": "\\'",
        '"': '\\"',
    }
)


class MySQLDialect(BaseDialect):
    """
    MySQL dialect: backtick identifiers and backslash-escaped strings.
    """

    name: Final[str] = "mysql"
    quote_char: Final[str] = "`"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=False,
        supports_savepoints=True,
        native_boolean=False,
        like_escape_clause=False,
    )

    def escape_text(self, value: str) -> str:
        return "'" + value.translate(_TEXT_ESCAPES) + "'"

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            if limit is None:
                parts.append("LIMIT 18446744073709551615")
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


def get_mysql_dialect() -> Dialect:
    return MySQLDialect()
