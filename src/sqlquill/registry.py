"""
Named connection registry with an active default connection.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping

from .adapters import ConnectionConfig
from .connection import Connection
from .query.fluent import Fluent
from .utils import get_logger

DEFAULT_NAME = "default"


class RegistryError(LookupError):
    """Raised when a requested connection is missing or none is active."""


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._connections: Dict[str, Connection] = {}
        self._active: Connection | None = None
        self.logger = get_logger("registry")

    def connect(
        self,
        config: ConnectionConfig | str | Mapping[str, Any],
        name: str = DEFAULT_NAME,
        **options: Any,
    ) -> Connection:
        """
        Create a connection, register it under ``name`` and make it active.
        """
        connection = Connection(config, name=name, **options)
        with self._lock:
            previous = self._connections.get(name)
            if previous is not None and previous is not connection:
                self.logger.info("Replacing registered connection '%s'", name)
            self._connections[name] = connection
            self._active = connection
        return connection

    def get_connection(self, name: str | None = None) -> Connection:
        with self._lock:
            if name is None:
                if self._active is None:
                    raise RegistryError("No connection is active; call connect() first.")
                return self._active
            try:
                return self._connections[name]
            except KeyError:
                raise RegistryError(f"There is no connection named '{name}'.") from None

    def set_connection(self, connection: Connection, name: str | None = None) -> Connection:
        with self._lock:
            self._connections[name or connection.name or DEFAULT_NAME] = connection
            self._active = connection
        return connection

    def activate(self, name: str) -> Connection:
        with self._lock:
            self._active = self.get_connection(name)
            return self._active

    def is_connected(self) -> bool:
        with self._lock:
            return self._active is not None and self._active.is_connected()

    def disconnect(self) -> None:
        with self._lock:
            if self._active is not None:
                self._active.disconnect()

    def names(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def clear(self) -> None:
        with self._lock:
            for connection in self._connections.values():
                connection.disconnect()
            self._connections.clear()
            self._active = None


registry = ConnectionRegistry()


def connect(config: ConnectionConfig | str | Mapping[str, Any], name: str = DEFAULT_NAME, **options: Any) -> Connection:
    return registry.connect(config, name, **options)


def get_connection(name: str | None = None) -> Connection:
    return registry.get_connection(name)


def activate(name: str) -> Connection:
    return registry.activate(name)


def is_connected() -> bool:
    return registry.is_connected()


def disconnect() -> None:
    registry.disconnect()


def query(*args: Any) -> Any:
    return registry.get_connection().query(*args)


def translate(*args: Any) -> str:
    return registry.get_connection().translate(*args)


def command() -> Fluent:
    return registry.get_connection().command()
