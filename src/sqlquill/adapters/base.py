"""
Adapter protocol and connection configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, build_dsn, parse_dsn


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution fails."""


class AdapterTransactionError(AdapterError):
    """Raised when transaction operations fail."""


@dataclass
class SSLConfig:
    mode: str | None = None
    rootcert: str | None = None
    cert: str | None = None
    key: str | None = None
    ca: str | None = None
    check_hostname: bool | None = None

    def postgres_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.mode:
            options["sslmode"] = self.mode
        if self.rootcert:
            options["sslrootcert"] = self.rootcert
        if self.cert:
            options["sslcert"] = self.cert
        if self.key:
            options["sslkey"] = self.key
        return options

    def mysql_options(self) -> dict[str, Any]:
        ssl: dict[str, Any] = {}
        if self.ca:
            ssl["ca"] = self.ca
        if self.cert:
            ssl["cert"] = self.cert
        if self.key:
            ssl["key"] = self.key
        if self.check_hostname is not None:
            ssl["check_hostname"] = self.check_hostname
        if not ssl:
            return {}
        return {"ssl": ssl}


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_SSL_KEYS = {
    "sslmode": "mode",
    "sslrootcert": "rootcert",
    "sslcert": "cert",
    "sslkey": "key",
    "ssl_ca": "ca",
    "ssl_cert": "cert",
    "ssl_key": "key",
}


def parse_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: Any, *, key: str, kind: type) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise AdapterConfigurationError(f"Invalid {kind.__name__} value for '{key}': {value!r}") from exc


def _parse_ssl(query: dict[str, str]) -> SSLConfig | None:
    ssl = SSLConfig()
    found = False
    for key, attribute in _SSL_KEYS.items():
        if key in query:
            setattr(ssl, attribute, query.pop(key))
            found = True
    if "ssl_check_hostname" in query:
        ssl.check_hostname = parse_bool(query.pop("ssl_check_hostname"), key="ssl_check_hostname")
        found = True
    return ssl if found else None


def _parse_option_values(query: dict[str, str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for key, value in query.items():
        if key == "connect_timeout":
            options[key] = _parse_number(value, key=key, kind=int)
        else:
            options[key] = value
    return options


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.

    Statements run in autocommit mode unless ``autocommit=False`` is given;
    :meth:`Connection.begin` opens explicit transactions either way.
    """

    url: str
    autocommit: bool = True
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] | None = None
    ssl: SSLConfig | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a connection config by parsing the DSN string.
        """

        try:
            parsed = parse_dsn(dsn)
        except ValueError as exc:
            raise AdapterConfigurationError(str(exc)) from exc
        query = dict(parsed.query)

        parsed_autocommit = parse_bool(query.pop("autocommit"), key="autocommit") if "autocommit" in query else None
        parsed_timeout = _parse_number(query.pop("timeout"), key="timeout", kind=float) if "timeout" in query else None
        parsed_isolation_level = query.pop("isolation_level", None)
        parsed_ssl = _parse_ssl(query)

        options = _parse_option_values(query)
        options.update(kwargs.pop("options", None) or {})

        autocommit = kwargs.pop("autocommit", parsed_autocommit)
        if autocommit is None:
            autocommit = True

        return cls(
            url=dsn,
            dsn=parsed,
            autocommit=autocommit,
            isolation_level=kwargs.pop("isolation_level", parsed_isolation_level),
            timeout=kwargs.pop("timeout", parsed_timeout),
            options=options or None,
            ssl=kwargs.pop("ssl", parsed_ssl),
            **kwargs,
        )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ConnectionConfig":
        """
        Build a config from discrete settings (``driver``, ``host``,
        ``username``, ``password``, ``database``, ``port`` and extra options).
        """

        settings = dict(options)
        driver = settings.pop("driver", None)
        if not driver:
            raise AdapterConfigurationError("Connection options must include a 'driver'.")
        known = {key: settings.pop(key) for key in ("autocommit", "timeout", "isolation_level") if key in settings}
        url = build_dsn(
            driver,
            username=settings.pop("username", settings.pop("user", None)),
            password=settings.pop("password", None),
            host=settings.pop("host", None),
            port=settings.pop("port", None),
            database=settings.pop("database", settings.pop("file", None)),
            query=settings,
        )
        return cls.from_dsn(url, **known)

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    @property
    def driver(self) -> str:
        return self.dsn.driver if self.dsn else self.url.partition(":")[0]

    def redacted_dsn(self) -> str:
        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class DatabaseAdapter(Protocol):
    """
    Adapter interface executing translated SQL text.
    """

    dialect: Dialect
    slow_query_ms: int

    @property
    def is_connected(self) -> bool:
        """
        True while a driver connection is open.
        """

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute a single SQL statement returning a DB-API cursor.

        ``params`` are handed to the driver only when given, so translated
        SQL containing literal ``%`` characters is never re-formatted.
        """

    def begin(self) -> None:
        """
        Start a transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """

    def affected_rows(self, cursor: Any) -> int | None:
        """
        Rows changed by the statement behind ``cursor``; ``None`` when unknown.
        """

    def last_insert_id(self, cursor: Any, sequence: str | None = None) -> Any:
        """
        Retrieve the key generated by the previous insert.
        """


def rowcount(cursor: Any) -> int | None:
    count = getattr(cursor, "rowcount", -1)
    if count is None or count < 0:
        return None
    return count
