"""
Database adapter interfaces and implementations.
"""

from typing import Any

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    SSLConfig,
)
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

ADAPTERS: dict[str, type] = {
    "sqlite": SQLiteAdapter,
    "sqlite3": SQLiteAdapter,
    "postgres": PostgresAdapter,
    "postgresql": PostgresAdapter,
    "postgres+psycopg": PostgresAdapter,
    "mysql": MySQLAdapter,
    "mysqli": MySQLAdapter,
}


def create_adapter(driver: str, **kwargs: Any) -> DatabaseAdapter:
    """
    Instantiate the adapter registered for ``driver`` (a DSN scheme).
    """
    try:
        adapter_cls = ADAPTERS[driver.lower()]
    except KeyError:
        raise AdapterConfigurationError(
            f"Unsupported driver '{driver}'. Expected one of {', '.join(sorted(ADAPTERS))}."
        ) from None
    return adapter_cls(**kwargs)


__all__ = [
    "ADAPTERS",
    "ConnectionConfig",
    "DatabaseAdapter",
    "SSLConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "SQLiteAdapter",
    "PostgresAdapter",
    "MySQLAdapter",
    "create_adapter",
]
