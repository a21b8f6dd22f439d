"""
Template translation: fragments plus arguments into escaped SQL text.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Dict, List, Tuple

from ..dialects.base import Dialect
from ..utils.logging import get_logger
from .errors import (
    ArgumentCountError,
    MalformedConditionalError,
    RecursionDepthError,
    TranslatorError,
    TypeMismatchError,
)
from .escaper import escape
from .modifiers import CONDITIONAL_KINDS, SCALAR_KINDS, ModifierKind, Token, TokenType, arity, split_key, tokenize
from .substitutions import SubstitutionFallback, SubstitutionTable, resolve
from .substitutions import substitutions as default_substitutions

DEFAULT_MAX_DEPTH = 32

CONDITION_OPERATORS = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "IN", "NOT IN", "IS", "IS NOT"}
)

_COLUMN_RE = re.compile(r"[^\s'\"`\[\]%?:()]+")


def is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def collect(items: Sequence[Any]) -> Tuple[List[str], List[Any]]:
    """
    Split an interleaved ``(fragment, arg, arg, fragment, ...)`` sequence.

    Each fragment claims as many following items as it has value-consuming
    tokens; the item after those must be the next fragment.
    """
    fragments: List[str] = []
    args: List[Any] = []
    index = 0
    while index < len(items):
        item = items[index]
        if not isinstance(item, str):
            raise ArgumentCountError(
                f"Argument {item!r} at index {index} has no matching modifier"
            )
        fragments.append(item)
        count = arity(item)
        args.extend(items[index + 1 : index + 1 + count])
        index += 1 + count
    return fragments, args


def _normalize_operator(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    operator = " ".join(value.split()).upper()
    return operator if operator in CONDITION_OPERATORS else None


def is_condition_triple(item: Any) -> bool:
    """
    ``(column, operator, value)`` with a bare column name and a known operator.
    """
    return (
        is_sequence(item)
        and len(item) == 3
        and isinstance(item[0], str)
        and _COLUMN_RE.fullmatch(item[0]) is not None
        and _normalize_operator(item[1]) is not None
    )


class _SQLBuffer:
    """
    Output accumulator collapsing whitespace at fragment and section boundaries.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._pending_boundary = False
        self._pending_collapse = False

    def write(self, text: str) -> None:
        if not text:
            return
        if self._pending_collapse:
            self._pending_collapse = False
            if self._parts and self._parts[-1][-1:].isspace():
                text = text.lstrip()
                if not text:
                    return
        if self._pending_boundary:
            text = text.lstrip()
            if not text:
                return
            self._rstrip()
            if self._parts:
                self._parts.append(" ")
            self._pending_boundary = False
        self._parts.append(text)

    def boundary(self) -> None:
        self._pending_boundary = True

    def collapse(self) -> None:
        """Drop leading whitespace of the next write if the output already ends in it."""
        self._pending_collapse = True

    def getvalue(self) -> str:
        return "".join(self._parts).strip()

    def _rstrip(self) -> None:
        while self._parts and not self._parts[-1].strip():
            self._parts.pop()
        if self._parts:
            self._parts[-1] = self._parts[-1].rstrip()


class Translator:
    """
    Translate template fragments and arguments into a single SQL string.

    Translators are cheap; the dialect supplies every backend-specific rule and
    the substitution table is read through a snapshot taken per call.
    """

    def __init__(
        self,
        dialect: Dialect,
        *,
        substitutions: SubstitutionTable | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.dialect = dialect
        self.substitutions = substitutions if substitutions is not None else default_substitutions
        self.max_depth = max_depth
        self.logger = get_logger("query.translator")

    def translate(self, fragments: str | Sequence[str], args: Sequence[Any] = ()) -> str:
        """
        Translate ``fragments`` consuming ``args`` left to right.

        Every value-consuming token takes exactly one argument; too few or too
        many arguments raise :class:`ArgumentCountError`.
        """
        if isinstance(fragments, str):
            fragments = [fragments]
        entries, fallback = self.substitutions.snapshot()
        translation = _Translation(self, entries, fallback, depth=0)
        sql = translation.run(list(fragments), list(args))
        self.logger.debug("Translated SQL", extra={"sql": sql})
        return sql

    def translate_args(self, *items: Any) -> str:
        """
        Translate an interleaved ``fragment, args..., fragment, args...`` list.
        """
        fragments, args = collect(items)
        return self.translate(fragments, args)


class _Translation:
    """
    State of one translation pass (one per call and per sub-template).
    """

    def __init__(
        self,
        translator: Translator,
        entries: Dict[str, str],
        fallback: SubstitutionFallback,
        *,
        depth: int,
    ) -> None:
        self.translator = translator
        self.dialect = translator.dialect
        self.entries = entries
        self.fallback = fallback
        self.depth = depth
        self.out = _SQLBuffer()
        self.args: List[Any] = []
        self.cursor = 0
        self.in_if = False
        self.seen_else = False
        self.suppressed = False
        self.if_token: Token | None = None
        self.limit: int | None = None
        self.offset: int | None = None
        self._containers: Dict[ModifierKind, Callable[[Any], str]] = {
            ModifierKind.LIST: lambda value: self._list(value, ModifierKind.LIST),
            ModifierKind.IN_LIST: lambda value: self._list(value, ModifierKind.IN_LIST),
            ModifierKind.ASSIGNMENTS: self._assignments,
            ModifierKind.VALUES: self._values,
            ModifierKind.MULTI_VALUES: self._multi_values,
            ModifierKind.AND: lambda value: self._conjunction(value, "AND"),
            ModifierKind.OR: lambda value: self._conjunction(value, "OR"),
            ModifierKind.ORDER_BY: self._order_by,
            ModifierKind.EXPAND: self._expand,
            ModifierKind.LIMIT: lambda value: self._limit(value, ModifierKind.LIMIT),
            ModifierKind.OFFSET: lambda value: self._limit(value, ModifierKind.OFFSET),
        }

    def run(self, fragments: List[str], args: List[Any]) -> str:
        self.args = args
        for fragment in fragments:
            if not isinstance(fragment, str):
                raise TypeMismatchError(f"Template fragment must be str, got {type(fragment).__name__}")
            self.out.boundary()
            self._process(fragment)
        if self.cursor < len(self.args):
            leftover = len(self.args) - self.cursor
            raise ArgumentCountError(
                f"{leftover} argument(s) left over after all modifiers were consumed"
            )
        if self.in_if:
            token = self.if_token
            raise MalformedConditionalError(
                "Unclosed %if section",
                token=token.raw if token else "%if",
                position=token.position if token else None,
            )
        sql = self.out.getvalue()
        if self.depth == 0 and (self.limit is not None or self.offset is not None):
            sql = self.dialect.apply_limit(sql, self.limit, self.offset)
        return sql

    # Token processing -------------------------------------------------
    def _process(self, fragment: str) -> None:
        for token in tokenize(fragment):
            try:
                self._emit(token)
            except TranslatorError as exc:
                exc.locate(token.raw, token.position)
                raise

    def _emit(self, token: Token) -> None:
        if token.type is TokenType.MODIFIER:
            kind = token.modifier
            assert kind is not None
            if kind in CONDITIONAL_KINDS:
                self._conditional(token, kind)
                return
            value = self._next(token)
            if not self.suppressed:
                rendered = self._format(value, kind)
                if rendered:
                    self.out.write(rendered)
                else:
                    self.out.collapse()
            return
        if self.suppressed:
            return
        if token.type is TokenType.LITERAL:
            self.out.write(token.text)
        elif token.type is TokenType.IDENTIFIER:
            self.out.write(self.dialect.format_identifier(token.text))
        elif token.type is TokenType.STRING:
            self.out.write(escape(token.text, ModifierKind.TEXT, self.dialect))
        elif token.type is TokenType.SUBSTITUTION:
            self.out.write(self._substitute(token))

    def _next(self, token: Token) -> Any:
        if self.cursor >= len(self.args):
            raise ArgumentCountError(f"Not enough arguments for modifier {token.raw}")
        value = self.args[self.cursor]
        self.cursor += 1
        return value

    def _substitute(self, token: Token) -> str:
        return resolve(token.text, self.entries, self.fallback)

    def _conditional(self, token: Token, kind: ModifierKind) -> None:
        if kind is ModifierKind.IF:
            if self.in_if:
                raise MalformedConditionalError("Nested %if sections are not supported")
            test = self._next(token)
            self.in_if = True
            self.seen_else = False
            self.if_token = token
            self.suppressed = not test
        elif kind is ModifierKind.ELSE:
            if not self.in_if or self.seen_else:
                raise MalformedConditionalError("%else without a matching %if")
            self.seen_else = True
            self.suppressed = not self.suppressed
        else:
            if not self.in_if:
                raise MalformedConditionalError("%end without a matching %if")
            self.in_if = False
            self.suppressed = False
        self.out.boundary()

    # Formatting -------------------------------------------------------
    def _format(self, value: Any, kind: ModifierKind) -> str:
        if kind in SCALAR_KINDS:
            if kind is ModifierKind.AUTO and is_sequence(value):
                return self._list(value, ModifierKind.LIST)
            if kind is ModifierKind.IDENTIFIER and value is not None and not isinstance(value, str):
                return self._identifiers(value)
            return escape(value, kind, self.dialect)
        handler = self._containers[kind]
        if value is None and kind not in (ModifierKind.EXPAND, ModifierKind.LIMIT, ModifierKind.OFFSET):
            return self.dialect.null_literal
        return handler(value)

    def _value(self, value: Any, kind: ModifierKind | None) -> str:
        if kind is None:
            if is_sequence(value):
                return self._list(value, ModifierKind.LIST)
            return escape(value, ModifierKind.AUTO, self.dialect)
        return self._format(value, kind)

    def _column(self, name: Any) -> str:
        return escape(name, ModifierKind.IDENTIFIER, self.dialect)

    def _identifiers(self, value: Any) -> str:
        if isinstance(value, Mapping):
            parts = [
                self._column(name) + (f" AS {self._column(alias)}" if alias else "")
                for name, alias in value.items()
            ]
        elif is_sequence(value):
            parts = [self._column(name) for name in value]
        else:
            raise TypeMismatchError(f"Cannot use {type(value).__name__} as identifier list")
        if not parts:
            raise TypeMismatchError("Identifier list is empty")
        return ", ".join(parts)

    def _list(self, value: Any, kind: ModifierKind) -> str:
        if isinstance(value, Mapping):
            items = [self._value(item, split_key(key)[1]) for key, item in value.items()]
        elif is_sequence(value):
            items = [self._value(item, None) for item in value]
        else:
            raise TypeMismatchError(f"%{kind.value} expects a sequence, got {type(value).__name__}")
        if not items and kind is ModifierKind.IN_LIST:
            return f"({self.dialect.null_literal})"
        return "(" + ", ".join(items) + ")"

    def _pairs(self, value: Any, kind: ModifierKind) -> List[Tuple[str, str]]:
        if not isinstance(value, Mapping):
            raise TypeMismatchError(f"%{kind.value} expects a mapping, got {type(value).__name__}")
        if not value:
            raise TypeMismatchError(f"%{kind.value} mapping is empty")
        pairs = []
        for key, item in value.items():
            name, item_kind = split_key(key)
            pairs.append((self._column(name), self._value(item, item_kind)))
        return pairs

    def _assignments(self, value: Any) -> str:
        return ", ".join(f"{column} = {rendered}" for column, rendered in self._pairs(value, ModifierKind.ASSIGNMENTS))

    def _values(self, value: Any) -> str:
        pairs = self._pairs(value, ModifierKind.VALUES)
        columns = ", ".join(column for column, _ in pairs)
        values = ", ".join(rendered for _, rendered in pairs)
        return f"({columns}) VALUES ({values})"

    def _multi_values(self, value: Any) -> str:
        if is_sequence(value):
            rows = list(value)
            if not rows or not all(isinstance(row, Mapping) for row in rows):
                raise TypeMismatchError("%m expects a non-empty sequence of mappings")
            keys = list(rows[0].keys())
            if any(list(row.keys()) != keys for row in rows):
                raise TypeMismatchError("%m rows must share the same keys")
            columns = {key: [row[key] for row in rows] for key in keys}
        elif isinstance(value, Mapping) and value:
            columns = dict(value)
        else:
            raise TypeMismatchError("%m expects a mapping of columns or a sequence of rows")
        lengths = {len(items) if is_sequence(items) else -1 for items in columns.values()}
        if len(lengths) != 1 or -1 in lengths or 0 in lengths:
            raise TypeMismatchError("%m columns must be non-empty sequences of equal length")
        names: List[str] = []
        kinds: List[ModifierKind | None] = []
        for key in columns:
            name, kind = split_key(key)
            names.append(self._column(name))
            kinds.append(kind)
        rows_sql = []
        for row in zip(*columns.values()):
            rows_sql.append("(" + ", ".join(self._value(item, kind) for item, kind in zip(row, kinds)) + ")")
        return f"({', '.join(names)}) VALUES " + ", ".join(rows_sql)

    # Conjunctions -----------------------------------------------------
    def _conjunction(self, value: Any, operator: str) -> str:
        if isinstance(value, Mapping):
            parts = self._mapping_conditions(value)
        elif isinstance(value, str):
            parts = [self._expand(value)]
        elif is_sequence(value):
            parts = [self._condition(item) for item in value]
        else:
            raise TypeMismatchError(f"%{operator.lower()} expects conditions, got {type(value).__name__}")
        if not parts:
            return "1=1"
        return "(" + f") {operator} (".join(parts) + ")"

    def _condition(self, item: Any) -> str:
        if isinstance(item, Mapping):
            conditions = self._mapping_conditions(item)
            return " AND ".join(conditions) if conditions else "1=1"
        if isinstance(item, str):
            return self._expand(item)
        if is_condition_triple(item):
            return self._triple(item[0], _normalize_operator(item[1]) or "", item[2])
        if is_sequence(item):
            return self._expand(item)
        raise TypeMismatchError(f"Cannot use {type(item).__name__} as a condition")

    def _mapping_conditions(self, value: Mapping) -> List[str]:
        conditions = []
        for key, item in value.items():
            name, kind = split_key(key)
            column = self._column(name)
            if kind is ModifierKind.EXPAND:
                conditions.append(f"{column} {self._expand(item)}")
            elif kind in (ModifierKind.LIST, ModifierKind.IN_LIST) or (kind is None and is_sequence(item)):
                conditions.append(f"{column} IN {self._list(item, ModifierKind.IN_LIST)}")
            else:
                rendered = self._value(item, kind)
                if rendered == self.dialect.null_literal:
                    conditions.append(f"{column} IS NULL")
                else:
                    conditions.append(f"{column} = {rendered}")
        return conditions

    def _triple(self, name: str, operator: str, value: Any) -> str:
        column = self._column(name)
        if operator in ("IN", "NOT IN"):
            return f"{column} {operator} {self._list(value, ModifierKind.IN_LIST)}"
        if value is None:
            if operator in ("=", "IS"):
                return f"{column} IS NULL"
            if operator in ("!=", "<>", "IS NOT"):
                return f"{column} IS NOT NULL"
            raise TypeMismatchError(f"Operator {operator} cannot compare with NULL")
        if operator in ("IS", "IS NOT"):
            raise TypeMismatchError(f"Operator {operator} only accepts NULL")
        if operator in ("LIKE", "NOT LIKE"):
            return f"{column} {operator} {escape(value, ModifierKind.TEXT, self.dialect)}"
        return f"{column} {operator} {self._value(value, None)}"

    # Ordering and limits ----------------------------------------------
    def _order_by(self, value: Any) -> str:
        if isinstance(value, str):
            return self._column(value)
        if isinstance(value, Mapping):
            parts = [f"{self._column(name)} {self._direction(direction)}" for name, direction in value.items()]
        elif is_sequence(value):
            parts = []
            for item in value:
                if isinstance(item, str):
                    parts.append(self._column(item))
                elif is_sequence(item) and len(item) == 2:
                    parts.append(f"{self._column(item[0])} {self._direction(item[1])}")
                else:
                    raise TypeMismatchError(f"Cannot order by {item!r}")
        else:
            raise TypeMismatchError(f"%by expects columns, got {type(value).__name__}")
        if not parts:
            raise TypeMismatchError("%by column list is empty")
        return ", ".join(parts)

    @staticmethod
    def _direction(value: Any) -> str:
        if isinstance(value, str) and value.strip().upper() in ("ASC", "DESC"):
            return value.strip().upper()
        if isinstance(value, int) and not isinstance(value, bool) and value != 0:
            return "ASC" if value > 0 else "DESC"
        raise TypeMismatchError(f"Invalid sort direction {value!r}")

    def _limit(self, value: Any, kind: ModifierKind) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            raise TypeMismatchError(f"%{kind.value} expects an integer, got bool")
        number = int(escape(value, ModifierKind.INTEGER, self.dialect))
        if number < 0:
            raise TypeMismatchError(f"%{kind.value} must not be negative, got {value!r}")
        if kind is ModifierKind.LIMIT:
            self.limit = number
        else:
            self.offset = number
        return ""

    # Sub-templates ----------------------------------------------------
    def _expand(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            items: List[Any] = [value]
        elif is_sequence(value) and value and isinstance(value[0], str):
            items = list(value)
        else:
            raise TypeMismatchError("%ex expects a (template, *args) sequence")
        if self.depth + 1 > self.translator.max_depth:
            raise RecursionDepthError(
                f"Sub-template expansion exceeded maximum depth of {self.translator.max_depth}"
            )
        fragments, args = collect(items)
        child = _Translation(self.translator, self.entries, self.fallback, depth=self.depth + 1)
        sql = child.run(fragments, args)
        # Bounds set inside a sub-template apply to the whole statement.
        if child.limit is not None:
            self.limit = child.limit
        if child.offset is not None:
            self.offset = child.offset
        return sql
