"""
Dialect strategy interfaces describing backend escaping and formatting rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_returning: bool = False
    supports_savepoints: bool = True
    native_boolean: bool = False
    like_escape_clause: bool = True


class Dialect(Protocol):
    """
    Strategy interface consumed by the escaper, translator and adapters.
    """

    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    @property
    def null_literal(self) -> str: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_identifier(self, name: str) -> str: ...

    def escape_text(self, value: str) -> str: ...

    def escape_binary(self, value: bytes) -> str: ...

    def escape_bool(self, value: bool) -> str: ...

    def escape_like(self, value: str, position: int) -> str: ...

    def format_date(self, value: date) -> str: ...

    def format_datetime(self, value: datetime) -> str: ...

    def format_time(self, value: time) -> str: ...

    def limit_clause(self, limit: int | None, offset: int | None) -> str: ...

    def apply_limit(self, sql: str, limit: int | None, offset: int | None) -> str: ...


LIKE_ESCAPE = "\\"


class BaseDialect:
    """
    Behaviour shared by the bundled dialects.

    Subclasses set ``quote_char`` and the temporal formats and override the
    literal hooks that differ per backend.
    """

    name = "generic"
    quote_char = '"'
    null_literal = "NULL"
    capabilities = DialectCapabilities()
    date_format = "%Y-%m-%d"
    datetime_format = "%Y-%m-%d %H:%M:%S"
    time_format = "%H:%M:%S"

    # Identifiers ----------------------------------------------------------
    def quote_identifier(self, identifier: str) -> str:
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def format_identifier(self, name: str) -> str:
        """
        Quote every dotted segment of ``name`` independently.

        ``*`` stays bare so ``table.*`` keeps its meaning.
        """
        if name == "*":
            return name
        segments = name.split(".")
        return ".".join(
            segment if segment == "*" and index == len(segments) - 1 else self.quote_identifier(segment)
            for index, segment in enumerate(segments)
        )

    # Literals -------------------------------------------------------------
    def escape_text(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def escape_binary(self, value: bytes) -> str:
        return f"X'{value.hex()}'"

    def escape_bool(self, value: bool) -> str:
        return "1" if value else "0"

    def escape_like(self, value: str, position: int) -> str:
        """
        Build a LIKE pattern literal.

        ``position`` is ``1`` for "starts with", ``-1`` for "ends with" and
        ``0`` for "contains".
        """
        pattern = (
            value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
            .replace("%", LIKE_ESCAPE + "%")
            .replace("_", LIKE_ESCAPE + "_")
        )
        if position <= 0:
            pattern = "%" + pattern
        if position >= 0:
            pattern = pattern + "%"
        literal = self.escape_text(pattern)
        if self.capabilities.like_escape_clause:
            literal += f" ESCAPE '{LIKE_ESCAPE}'"
        return literal

    def format_date(self, value: date) -> str:
        return "'" + value.strftime(self.date_format) + "'"

    def format_datetime(self, value: datetime) -> str:
        """
        Quote a timestamp. Aware values are converted to UTC first; naive ones
        are written as given.
        """
        if value.utcoffset() is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        fmt = self.datetime_format
        if value.microsecond:
            fmt += ".%f"
        return "'" + value.strftime(fmt) + "'"

    def format_time(self, value: time) -> str:
        fmt = self.time_format
        if value.microsecond:
            fmt += ".%f"
        return "'" + value.strftime(fmt) + "'"

    # Limits ---------------------------------------------------------------
    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)

    def apply_limit(self, sql: str, limit: int | None, offset: int | None) -> str:
        clause = self.limit_clause(limit, offset)
        if not clause:
            return sql
        return f"{sql} {clause}" if sql else clause

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
