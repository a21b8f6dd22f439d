"""
Fluent clause builder rendering through the translator.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..utils.logging import get_logger
from .errors import FluentStateError, TranslatorError
from .translator import Translator, is_condition_triple

if TYPE_CHECKING:
    from ..connection import Connection
    from ..datasource import DataSource

logger = get_logger("query.fluent")


class FluentState(Enum):
    BUILDING = "building"
    FINALIZING = "finalizing"
    RENDERED = "rendered"


# Canonical clause order per command.
MASKS: Dict[str, tuple[str, ...]] = {
    "SELECT": ("SELECT", "FROM", "JOIN", "WHERE", "GROUP BY", "HAVING", "ORDER BY"),
    "UPDATE": ("UPDATE", "SET", "WHERE", "ORDER BY"),
    "INSERT": ("INSERT", "INTO", "VALUES", "SELECT"),
    "DELETE": ("DELETE", "FROM", "JOIN", "USING", "WHERE", "ORDER BY"),
}

# Modifier applied when a clause method receives a single non-template argument.
MODIFIERS: Dict[str, str] = {
    "SELECT": "%n",
    "FROM": "%n",
    "JOIN": "%n",
    "USING": "%n",
    "UPDATE": "%n",
    "INTO": "%n",
    "WHERE": "%and",
    "HAVING": "%and",
    "SET": "%a",
    "VALUES": "%l",
    "GROUP BY": "%by",
    "ORDER BY": "%by",
}

SEPARATORS: Dict[str, str] = {
    "SELECT": ", ",
    "FROM": " ",
    "JOIN": " ",
    "USING": ", ",
    "WHERE": " AND ",
    "HAVING": " AND ",
    "SET": ", ",
    "VALUES": ", ",
    "GROUP BY": ", ",
    "ORDER BY": ", ",
}

# Clauses where a later call replaces the earlier records.
OVERWRITE = frozenset({"UPDATE", "FROM", "INTO", "VALUES"})

PARENTHESISED = frozenset({"WHERE", "HAVING"})

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*(?:\.\*)?$")


class Fluent:
    """
    Chainable clause recorder.

    Clause methods record ``(keyword, template, args...)`` and return the
    builder; :meth:`render` puts the records in canonical order and
    translates them. Once rendered the builder is read-only; use
    :meth:`clone` to keep building from the same clauses.

    ``from_``, ``into``, ``update``, ``values``, ``limit`` and ``offset``
    overwrite earlier calls; every other clause accumulates. Joins are kept
    apart from the ``from_`` target and render after it in call order.
    """

    def __init__(self, target: "Connection | Translator") -> None:
        translator = getattr(target, "translator", None)
        if isinstance(target, Translator):
            self.connection: Optional["Connection"] = None
            self.translator = target
        elif isinstance(translator, Translator):
            self.connection = target  # type: ignore[assignment]
            self.translator = translator
        else:
            raise TypeError(f"Fluent requires a Connection or Translator, got {type(target).__name__}")
        self.state = FluentState.BUILDING
        self._command: str | None = None
        self._distinct = False
        self._clauses: Dict[str, List[List[Any]]] = {}
        self._limit: int | None = None
        self._offset: int | None = None
        self._sql: str | None = None

    # Commands ----------------------------------------------------------
    def select(self, *args: Any) -> "Fluent":
        self._set_command("SELECT")
        if args:
            self._add("SELECT", args)
        return self

    def distinct(self) -> "Fluent":
        self._ensure_building()
        self._distinct = True
        return self

    def update(self, *args: Any) -> "Fluent":
        self._set_command("UPDATE")
        return self._add("UPDATE", args)

    def insert(self) -> "Fluent":
        self._set_command("INSERT")
        return self

    def delete(self) -> "Fluent":
        self._set_command("DELETE")
        return self

    # Clauses -----------------------------------------------------------
    def from_(self, *args: Any) -> "Fluent":
        return self._add("FROM", args)

    def join(self, *args: Any) -> "Fluent":
        return self._add("JOIN", args, prefix="JOIN")

    def inner_join(self, *args: Any) -> "Fluent":
        return self._add("JOIN", args, prefix="INNER JOIN")

    def left_join(self, *args: Any) -> "Fluent":
        return self._add("JOIN", args, prefix="LEFT JOIN")

    def right_join(self, *args: Any) -> "Fluent":
        return self._add("JOIN", args, prefix="RIGHT JOIN")

    def cross_join(self, *args: Any) -> "Fluent":
        return self._add("JOIN", args, prefix="CROSS JOIN")

    def on(self, *args: Any) -> "Fluent":
        return self._add("JOIN", self._shorthand("WHERE", args), prefix="ON")

    def using(self, *args: Any) -> "Fluent":
        if self._command == "DELETE":
            return self._add("USING", args)
        return self._add("JOIN", self._shorthand("USING", args), prefix="USING", wrap=True)

    def where(self, *args: Any) -> "Fluent":
        return self._add("WHERE", args)

    def group_by(self, *args: Any) -> "Fluent":
        return self._add("GROUP BY", args)

    def having(self, *args: Any) -> "Fluent":
        return self._add("HAVING", args)

    def order_by(self, *args: Any) -> "Fluent":
        return self._add("ORDER BY", args)

    def asc(self) -> "Fluent":
        return self._direction("ASC")

    def desc(self) -> "Fluent":
        return self._direction("DESC")

    def set(self, *args: Any) -> "Fluent":
        return self._add("SET", args)

    def into(self, *args: Any) -> "Fluent":
        return self._add("INTO", args)

    def values(self, *args: Any) -> "Fluent":
        return self._add("VALUES", args)

    def limit(self, value: int | None) -> "Fluent":
        self._ensure_building()
        self._limit = self._validate_bound("limit", value)
        return self

    def offset(self, value: int | None) -> "Fluent":
        self._ensure_building()
        self._offset = self._validate_bound("offset", value)
        return self

    # Rendering ---------------------------------------------------------
    @property
    def command(self) -> str:
        return self._command or "SELECT"

    def render(self) -> str:
        if self.state is FluentState.RENDERED:
            assert self._sql is not None
            return self._sql
        self.state = FluentState.FINALIZING
        try:
            sql = self._build(self._limit, self._offset)
        except Exception:
            self.state = FluentState.BUILDING
            raise
        self._sql = sql
        self.state = FluentState.RENDERED
        return sql

    def clone(self) -> "Fluent":
        copy = Fluent.__new__(Fluent)
        copy.connection = self.connection
        copy.translator = self.translator
        copy.state = FluentState.BUILDING
        copy._command = self._command
        copy._distinct = self._distinct
        copy._clauses = {clause: [list(record) for record in records] for clause, records in self._clauses.items()}
        copy._limit = self._limit
        copy._offset = self._offset
        copy._sql = None
        return copy

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<Fluent {self.command} state={self.state.value}>"

    # Execution ---------------------------------------------------------
    def execute(self):
        return self._require_connection().query("%sql", self.render())

    def fetch(self):
        """
        First row, adding ``LIMIT 1`` to SELECT commands without a limit.
        """
        connection = self._require_connection()
        if self.command == "SELECT" and self._limit is None:
            return connection.fetch("%sql", self._build(1, self._offset))
        return connection.fetch("%sql", self.render())

    def fetch_all(self, offset: int | None = None, limit: int | None = None) -> list:
        connection = self._require_connection()
        if offset is None and limit is None:
            return connection.fetch_all("%sql", self.render())
        return connection.fetch_all("%sql", self._build(
            limit if limit is not None else self._limit,
            offset if offset is not None else self._offset,
        ))

    def fetch_single(self):
        connection = self._require_connection()
        if self.command == "SELECT" and self._limit is None:
            return connection.fetch_single("%sql", self._build(1, self._offset))
        return connection.fetch_single("%sql", self.render())

    def fetch_pairs(self, key: str | None = None, value: str | None = None) -> dict:
        return self._require_connection().fetch_pairs("%sql", self.render(), key=key, value=value)

    def test(self) -> bool:
        """
        Log the rendered SQL; return ``False`` when it cannot be rendered.
        """
        try:
            sql = self.render()
        except TranslatorError:
            logger.exception("Fluent query could not be rendered")
            return False
        if self.connection is not None:
            return self.connection.test("%sql", sql)
        logger.info("%s", sql)
        return True

    def to_data_source(self) -> "DataSource":
        from ..datasource import DataSource

        return DataSource(self.render(), self._require_connection())

    # Internal helpers --------------------------------------------------
    def _ensure_building(self) -> None:
        if self.state is not FluentState.BUILDING:
            raise FluentStateError(
                f"Cannot modify a {self.state.value} query; call clone() to continue building."
            )

    def _require_connection(self) -> "Connection":
        if self.connection is None:
            raise FluentStateError("This query is not bound to a connection.")
        return self.connection

    def _set_command(self, command: str) -> None:
        self._ensure_building()
        if self._command is None:
            self._command = command

    def _shorthand(self, clause: str, args: tuple[Any, ...]) -> tuple[Any, ...]:
        if len(args) != 1:
            return args
        arg = args[0]
        if isinstance(arg, Fluent):
            return ("(%sql)", arg.render())
        modifier = MODIFIERS.get(clause)
        if modifier is None:
            return args
        if isinstance(arg, str):
            if _IDENTIFIER_RE.match(arg):
                return ("%n", arg)
            return args
        if arg is None:
            return args
        if modifier == "%and" and is_condition_triple(arg):
            return (modifier, [arg])
        return (modifier, arg)

    def _add(
        self,
        clause: str,
        args: tuple[Any, ...],
        *,
        prefix: str | None = None,
        wrap: bool = False,
    ) -> "Fluent":
        self._ensure_building()
        if not args:
            raise TypeError(f"{clause} requires at least one argument.")
        record = list(args if prefix in ("ON", "USING") else self._shorthand(clause, args))
        record = [f"({item.render()})" if isinstance(item, Fluent) else item for item in record]
        if not isinstance(record[0], str):
            raise TypeError(f"{clause} expects a template string first, got {type(record[0]).__name__}")
        if prefix:
            template = f"({record[0]})" if wrap else record[0]
            record[0] = f"{prefix} {template}"
        if clause in OVERWRITE:
            self._clauses[clause] = [record]
        else:
            self._clauses.setdefault(clause, []).append(record)
        return self

    def _direction(self, direction: str) -> "Fluent":
        self._ensure_building()
        records = self._clauses.get("ORDER BY")
        if not records:
            raise ValueError(f"{direction.lower()}() requires a preceding order_by().")
        last = records[-1]
        if len(last) != 2 or last[0] != "%n" or not isinstance(last[1], str):
            raise ValueError(f"{direction.lower()}() only applies to an order_by() on a single column.")
        last[0] = f"%n {direction}"
        return self

    @staticmethod
    def _validate_bound(name: str, value: int | None) -> int | None:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"{name} must not be negative, got {value}")
        return value

    def _build(self, limit: int | None, offset: int | None) -> str:
        command = self.command
        mask = MASKS[command]
        stray = [clause for clause in self._clauses if clause not in mask]
        if stray:
            raise ValueError(f"{', '.join(stray)} cannot be used in a {command} command.")
        parts: List[str] = []
        for clause in mask:
            records = self._clauses.get(clause)
            if clause == command:
                keyword = f"{clause} DISTINCT" if clause == "SELECT" and self._distinct else clause
                parts.append(keyword)
                if clause == "SELECT" and not records:
                    parts.append("*")
            elif not records:
                continue
            elif clause == "JOIN":
                if not self._clauses.get("FROM"):
                    raise ValueError("Joins require a from_() clause.")
            else:
                parts.append(clause)
            if records:
                parts.append(self._render_clause(clause, records))
        sql = " ".join(parts)
        if limit is not None or offset is not None:
            sql = self.translator.dialect.apply_limit(sql, limit, offset)
        return sql

    def _render_clause(self, clause: str, records: List[List[Any]]) -> str:
        rendered = [self.translator.translate_args(*record) for record in records]
        if clause in PARENTHESISED and len(rendered) > 1:
            rendered = [f"({text})" for text in rendered]
        return SEPARATORS.get(clause, " ").join(rendered)
