"""
sqlquill public package initialization.

Template-driven SQL translation with typed ``%`` modifiers, a fluent clause
builder, and thin connection helpers for SQLite, PostgreSQL and MySQL.
"""

from .adapters import ConnectionConfig  # noqa: F401
from .connection import Connection  # noqa: F401
from .datasource import DataSource  # noqa: F401
from .dialects import MySQLDialect, PostgresDialect, SQLiteDialect  # noqa: F401
from .hooks import QueryEvent, hooks  # noqa: F401
from .query import (  # noqa: F401
    ALL,
    Fluent,
    SubstitutionTable,
    Translator,
    TranslatorError,
    add_substitution,
    remove_substitution,
    set_substitution_fallback,
)
from .registry import activate, command, connect, disconnect, get_connection, is_connected, translate  # noqa: F401

__all__ = [
    "ALL",
    "Connection",
    "ConnectionConfig",
    "DataSource",
    "Fluent",
    "MySQLDialect",
    "PostgresDialect",
    "QueryEvent",
    "SQLiteDialect",
    "SubstitutionTable",
    "Translator",
    "TranslatorError",
    "activate",
    "add_substitution",
    "command",
    "connect",
    "disconnect",
    "get_connection",
    "hooks",
    "is_connected",
    "remove_substitution",
    "set_substitution_fallback",
    "translate",
]
