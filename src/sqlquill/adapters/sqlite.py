"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
    rowcount,
)


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = SQLiteDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    @property
    def is_connected(self) -> bool:
        return self._state is not None

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0

        self.logger.info("Connecting to SQLite %s", path)
        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None if config.autocommit else (config.isolation_level or ""),
                timeout=timeout,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database {path!r}.") from exc
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")

        self._state = SQLiteConnectionState(connection)
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        cursor = connection.cursor()
        with time_call(
            "sqlite.execute",
            self.logger,
            sql=sql,
            params=redact_params(params or ()),
            threshold_ms=self.slow_query_ms,
        ):
            try:
                if params is None:
                    cursor.execute(sql)
                else:
                    cursor.execute(sql, params)
            except sqlite3.Error as exc:
                raise AdapterExecutionError(f"SQLite error: {exc}") from exc
        return cursor

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        connection = self._ensure_connection()
        # Legacy isolation mode may already have opened one implicitly.
        if connection.in_transaction:
            return
        connection.execute("BEGIN")

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    # ------------------------------------------------------------------ #
    def affected_rows(self, cursor: sqlite3.Cursor) -> int | None:
        return rowcount(cursor)

    def last_insert_id(self, cursor: sqlite3.Cursor, sequence: str | None = None) -> Any:
        return cursor.lastrowid

    @staticmethod
    def _normalize_path(url: str) -> str:
        for prefix in ("sqlite:///", "sqlite://"):
            if url.startswith(prefix):
                return url[len(prefix) :] or ":memory:"
        return url
