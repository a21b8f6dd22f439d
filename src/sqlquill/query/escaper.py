"""
Value escaping: typed Python values to dialect-specific SQL literals.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from ..dialects.base import Dialect
from .errors import TypeMismatchError, UnknownModifierError
from .modifiers import ModifierKind

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_BYTES_TYPES = (bytes, bytearray, memoryview)


def _mismatch(value: Any, kind: ModifierKind) -> TypeMismatchError:
    return TypeMismatchError(
        f"Cannot escape {type(value).__name__} value {value!r} as %{kind.value}"
    )


def _identifier(value: Any, dialect: Dialect) -> str:
    if not isinstance(value, str) or not value:
        raise _mismatch(value, ModifierKind.IDENTIFIER)
    return dialect.format_identifier(value)


def _text(value: Any, dialect: Dialect) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise _mismatch(value, ModifierKind.TEXT)
    return dialect.escape_text(str(value))


def _text_or_null(value: Any, dialect: Dialect) -> str:
    if value == "":
        return dialect.null_literal
    return _text(value, dialect)


def _bool(value: Any, dialect: Dialect) -> str:
    if not isinstance(value, int):
        raise _mismatch(value, ModifierKind.BOOL)
    return dialect.escape_bool(bool(value))


def _integer(value: Any, dialect: Dialect) -> str:
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return str(int(value))
    if isinstance(value, str) and _INTEGER_RE.match(value):
        return str(int(value))
    raise _mismatch(value, ModifierKind.INTEGER)


def _float(value: Any, dialect: Dialect) -> str:
    if isinstance(value, bool):
        raise _mismatch(value, ModifierKind.FLOAT)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _mismatch(value, ModifierKind.FLOAT)
        return repr(value)
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise _mismatch(value, ModifierKind.FLOAT) from None
    if isinstance(value, Decimal) and value.is_finite():
        return format(value, "f")
    raise _mismatch(value, ModifierKind.FLOAT)


def _from_timestamp(value: Any, kind: ModifierKind) -> datetime:
    try:
        return datetime.fromtimestamp(value)
    except (OverflowError, OSError, ValueError):
        raise _mismatch(value, kind) from None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _date(value: Any, dialect: Dialect) -> str:
    if isinstance(value, datetime):
        return dialect.format_date(value.date())
    if isinstance(value, date):
        return dialect.format_date(value)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise _mismatch(value, ModifierKind.DATE) from None
        return dialect.format_date(parsed.date())
    if _is_number(value):
        return dialect.format_date(_from_timestamp(float(value), ModifierKind.DATE).date())
    raise _mismatch(value, ModifierKind.DATE)


def _datetime(value: Any, dialect: Dialect) -> str:
    if isinstance(value, datetime):
        return dialect.format_datetime(value)
    if isinstance(value, date):
        return dialect.format_datetime(datetime.combine(value, time()))
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise _mismatch(value, ModifierKind.DATETIME) from None
        return dialect.format_datetime(parsed)
    if _is_number(value):
        return dialect.format_datetime(_from_timestamp(float(value), ModifierKind.DATETIME))
    raise _mismatch(value, ModifierKind.DATETIME)


def _time(value: Any, dialect: Dialect) -> str:
    if isinstance(value, datetime):
        return dialect.format_time(value.time())
    if isinstance(value, time):
        return dialect.format_time(value)
    if isinstance(value, str):
        try:
            parsed = time.fromisoformat(value.strip())
        except ValueError:
            raise _mismatch(value, ModifierKind.TIME) from None
        return dialect.format_time(parsed)
    raise _mismatch(value, ModifierKind.TIME)


def _binary(value: Any, dialect: Dialect) -> str:
    if isinstance(value, _BYTES_TYPES):
        return dialect.escape_binary(bytes(value))
    if isinstance(value, str):
        return dialect.escape_binary(value.encode("utf-8"))
    raise _mismatch(value, ModifierKind.BINARY)


def _raw(value: Any, dialect: Dialect) -> str:
    if not isinstance(value, str):
        raise _mismatch(value, ModifierKind.RAW)
    return value


def _like(position: int, kind: ModifierKind) -> Callable[[Any, Dialect], str]:
    def escape_like(value: Any, dialect: Dialect) -> str:
        if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
            raise _mismatch(value, kind)
        return dialect.escape_like(str(value), position)

    return escape_like


def infer_kind(value: Any) -> ModifierKind:
    """
    Pick the modifier kind for a value formatted without an explicit modifier.
    """
    if isinstance(value, bool):
        return ModifierKind.BOOL
    if isinstance(value, int):
        return ModifierKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ModifierKind.FLOAT
    if isinstance(value, datetime):
        return ModifierKind.DATETIME
    if isinstance(value, date):
        return ModifierKind.DATE
    if isinstance(value, time):
        return ModifierKind.TIME
    if isinstance(value, _BYTES_TYPES):
        return ModifierKind.BINARY
    if isinstance(value, str):
        return ModifierKind.TEXT
    raise TypeMismatchError(f"Cannot infer SQL type for {type(value).__name__} value {value!r}")


def _auto(value: Any, dialect: Dialect) -> str:
    return _ESCAPERS[infer_kind(value)](value, dialect)


_ESCAPERS: dict[ModifierKind, Callable[[Any, Dialect], str]] = {
    ModifierKind.AUTO: _auto,
    ModifierKind.IDENTIFIER: _identifier,
    ModifierKind.TEXT: _text,
    ModifierKind.TEXT_OR_NULL: _text_or_null,
    ModifierKind.BOOL: _bool,
    ModifierKind.INTEGER: _integer,
    ModifierKind.FLOAT: _float,
    ModifierKind.DATE: _date,
    ModifierKind.DATETIME: _datetime,
    ModifierKind.TIME: _time,
    ModifierKind.BINARY: _binary,
    ModifierKind.RAW: _raw,
    ModifierKind.LIKE_STARTS: _like(1, ModifierKind.LIKE_STARTS),
    ModifierKind.LIKE_ENDS: _like(-1, ModifierKind.LIKE_ENDS),
    ModifierKind.LIKE_CONTAINS: _like(0, ModifierKind.LIKE_CONTAINS),
}


def escape(value: Any, kind: ModifierKind | str, dialect: Dialect) -> str:
    """
    Escape ``value`` as a literal of ``kind`` for ``dialect``.

    ``kind`` may be a :class:`ModifierKind` or a modifier token without the
    leading ``%`` (``"i"``, ``"s"``, ...). ``None`` becomes the dialect NULL
    literal, except for raw SQL where it renders as empty text.
    """
    if isinstance(kind, str):
        kind = ModifierKind.from_token(kind)
    handler = _ESCAPERS.get(kind)
    if handler is None:
        raise UnknownModifierError(f"%{kind.value} is not a value modifier", token=f"%{kind.value}")
    if value is None:
        return "" if kind is ModifierKind.RAW else dialect.null_literal
    try:
        return handler(value, dialect)
    except ValueError as exc:
        raise TypeMismatchError(f"Cannot escape value as %{kind.value}: {exc}") from exc


def escape_identifier(value: Any, dialect: Dialect) -> str:
    return escape(value, ModifierKind.IDENTIFIER, dialect)
