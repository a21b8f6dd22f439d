"""
MySQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.mysql import MySQLDialect
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
        import pymysql  # type: ignore[import-untyped]

        return pymysql
    except ImportError:
        try:
            import MySQLdb

            return MySQLdb
        except ImportError:
            return None


@dataclass
class MySQLConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class MySQLAdapter(DatabaseAdapter):
    """
    Adapter wrapping a MySQL DB-API driver (PyMySQL or mysqlclient).
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = MySQLDialect()
        self._state: MySQLConnectionState | None = None
        self.logger = get_logger("adapters.mysql")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def is_connected(self) -> bool:
        return self._state is not None

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError(
                "PyMySQL or mysqlclient is required to use MySQLAdapter."
            )
        if not config.dsn:
            raise AdapterConfigurationError(
                "ConnectionConfig must be built from a DSN for MySQL connections."
            )

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.mysql_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)
        options.setdefault("charset", "utf8mb4")

        self.logger.info(
            "Connecting to MySQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        dsn = config.dsn
        connect_kwargs = {
            "host": dsn.host or "localhost",
            "user": dsn.username,
            "password": dsn.password or "",
            "database": dsn.database,
            **options,
        }
        if dsn.port:
            connect_kwargs["port"] = dsn.port

        try:
            connection = driver.connect(**connect_kwargs)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to MySQL.") from exc
        connection.autocommit(bool(config.autocommit))
        if config.isolation_level:
            cursor = connection.cursor()
            cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {config.isolation_level}")

        self._state = MySQLConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_connection(self):
        if not self._state:
            raise AdapterConnectionError("MySQLAdapter is not connected.")
        return self._state.connection

    def execute(self, sql: str, params: Sequence[Any] | None = None):
        connection = self._ensure_connection()
        cursor = connection.cursor()
        with time_call(
            "mysql.execute",
            self.logger,
            sql=sql,
            params=redact_params(params or ()),
            threshold_ms=self.slow_query_ms,
        ):
            try:
                # Without params the driver leaves '%' in the SQL untouched.
                if params is None:
                    cursor.execute(sql)
                else:
                    cursor.execute(sql, params)
            except self._state.driver.Error as exc:
                raise AdapterExecutionError(f"MySQL error: {exc}") from exc
        return cursor

    def begin(self) -> None:
        connection = self._ensure_connection()
        connection.cursor().execute("START TRANSACTION")

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    def affected_rows(self, cursor: Any) -> int | None:
        return rowcount(cursor)

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        return cursor.lastrowid
