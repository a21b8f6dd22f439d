"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.postgres import PostgresDialect
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
    rowcount,
)


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


@dataclass
class PostgresConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class PostgresAdapter(DatabaseAdapter):
    """
    Adapter wrapping the psycopg PostgreSQL driver.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._state: PostgresConnectionState | None = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def is_connected(self) -> bool:
        return self._state is not None

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("psycopg is required to use PostgresAdapter.")

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.postgres_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        url = config.url.replace("postgres+psycopg://", "postgresql://", 1)
        try:
            connection = driver.connect(url, **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = bool(config.autocommit)
        if config.isolation_level:
            setattr(connection, "isolation_level", config.isolation_level)

        self._state = PostgresConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_connection(self):
        if not self._state:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        conn = self._state.connection
        if getattr(conn, "closed", False):
            self.logger.warning("PostgreSQL connection closed; reconnecting.")
            conn = self.connect(self._state.config)
        return conn

    def execute(self, sql: str, params: Sequence[Any] | None = None):
        connection = self._ensure_connection()
        cursor = connection.cursor()
        with time_call(
            "postgres.execute",
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
            except self._state.driver.Error as exc:
                raise AdapterExecutionError(f"PostgreSQL error: {exc}") from exc
        return cursor

    def begin(self) -> None:
        connection = self._ensure_connection()
        # Without autocommit psycopg opens transactions implicitly.
        if not getattr(connection, "autocommit", False):
            return
        connection.cursor().execute("BEGIN")

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    def affected_rows(self, cursor: Any) -> int | None:
        return rowcount(cursor)

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        if sequence:
            row = self.execute("SELECT CURRVAL(%s)", (sequence,)).fetchone()
        else:
            row = self.execute("SELECT LASTVAL()").fetchone()
        if not row:
            raise AdapterExecutionError("No value available for last insert id.")
        return row[0]
