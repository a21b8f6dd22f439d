"""DSN parsing, building and redaction."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse

from .redaction import REDACTED_VALUE, redact_query_params


@dataclass
class DSNConfig:
    driver: str
    username: Optional[str] = None
    password: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    path: str = ""
    query: dict[str, str] = field(default_factory=dict)

    def to_url(self, *, redact: bool = False) -> str:
        """
        Render the DSN; ``redact=True`` masks the password and sensitive options.
        """
        netloc = ""
        if self.username:
            netloc += quote(self.username, safe="")
            if self.password:
                netloc += ":" + (REDACTED_VALUE if redact else quote(self.password, safe=""))
            netloc += "@"
        if self.host:
            netloc += self.host
        if self.port:
            netloc += f":{self.port}"

        query = redact_query_params(self.query) if redact else self.query
        # An empty netloc still keeps "//", so sqlite:///path round-trips.
        url = f"{self.driver}://{netloc}{self.path}"
        if query:
            url += "?" + urlencode(query)
        return url

    def redacted(self) -> str:
        return self.to_url(redact=True)


def parse_dsn(dsn: str) -> DSNConfig:
    parsed = urlparse(dsn)
    if not parsed.scheme:
        raise ValueError(f"DSN {dsn!r} has no driver scheme")
    return DSNConfig(
        driver=parsed.scheme,
        username=unquote(parsed.username) if parsed.username else None,
        password=unquote(parsed.password) if parsed.password else None,
        host=parsed.hostname,
        port=parsed.port,
        database=parsed.path.lstrip("/") or None,
        path=parsed.path or "",
        query={key: values[0] for key, values in parse_qs(parsed.query).items()},
    )


def build_dsn(
    driver: str,
    *,
    username: str | None = None,
    password: str | None = None,
    host: str | None = None,
    port: int | str | None = None,
    database: str | None = None,
    query: Mapping[str, Any] | None = None,
) -> str:
    """
    Assemble a DSN from discrete settings, quoting credentials.

    ``database`` becomes the path, so an absolute SQLite file name yields
    ``sqlite:////var/data.db``.
    """
    config = DSNConfig(
        driver=driver,
        username=str(username) if username else None,
        password=str(password) if password else None,
        host=str(host) if host else None,
        port=int(port) if port else None,
        path="/" + (database or ""),
        query={key: str(value) for key, value in (query or {}).items()},
    )
    return config.to_url()


def dsn_from_env(env_var: str) -> DSNConfig:
    value = os.getenv(env_var)
    if not value:
        raise ValueError(f"Environment variable {env_var} is not set")
    return parse_dsn(value)
