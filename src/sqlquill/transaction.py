"""
Transaction manager handling nested transactions and named savepoints.
"""

from __future__ import annotations

import itertools
from typing import List

from .adapters.base import AdapterTransactionError, DatabaseAdapter
from .dialects.base import Dialect


class TransactionError(AdapterTransactionError):
    pass


class TransactionManager:
    """
    Coordinates begin/commit/rollback with savepoint support.

    The outermost ``begin()`` opens a real transaction; nested calls (or any
    call naming a savepoint) create ``SAVEPOINT`` markers instead.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._stack: List[str | None] = []
        self._savepoint_counter = itertools.count(1)

    @property
    def depth(self) -> int:
        return len(self._stack)

    def begin(self, savepoint: str | None = None) -> None:
        if self.depth == 0:
            if savepoint is not None:
                raise TransactionError(f"Savepoint '{savepoint}' requires an active transaction.")
            self.adapter.begin()
            self._stack.append(None)
            return

        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError("Nested transactions not supported by current dialect.")

        name = savepoint or self._next_savepoint_name()
        if name in self._stack:
            raise TransactionError(f"Savepoint '{name}' is already active.")
        self.adapter.execute(f"SAVEPOINT {self.dialect.quote_identifier(name)}")
        self._stack.append(name)

    def commit(self, savepoint: str | None = None) -> None:
        name = self._unwind(savepoint, "commit")
        if name is None:
            self.adapter.commit()
            return
        self.adapter.execute(f"RELEASE SAVEPOINT {self.dialect.quote_identifier(name)}")

    def rollback(self, savepoint: str | None = None) -> None:
        name = self._unwind(savepoint, "roll back")
        if name is None:
            self.adapter.rollback()
            return
        quoted = self.dialect.quote_identifier(name)
        self.adapter.execute(f"ROLLBACK TO SAVEPOINT {quoted}")
        self.adapter.execute(f"RELEASE SAVEPOINT {quoted}")

    def reset(self) -> None:
        self._stack.clear()

    def _unwind(self, savepoint: str | None, action: str) -> str | None:
        if self.depth == 0:
            raise TransactionError(f"No active transaction to {action}.")
        if savepoint is None:
            return self._stack.pop()
        if savepoint not in self._stack:
            raise TransactionError(f"Unknown savepoint '{savepoint}'.")
        # Savepoints opened after the named one end with it.
        while self._stack[-1] != savepoint:
            self._stack.pop()
        return self._stack.pop()

    def _next_savepoint_name(self) -> str:
        return f"sp_{next(self._savepoint_counter)}"
