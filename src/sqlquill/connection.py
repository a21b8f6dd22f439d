"""
Connection facade: translate templates, execute them, and build fluent queries.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional

from .adapters import AdapterError, ConnectionConfig, DatabaseAdapter, create_adapter
from .hooks import HookDispatcher, QueryEvent, hooks as default_hooks
from .query.errors import TranslatorError
from .query.fluent import Fluent
from .query.modifiers import split_key
from .query.substitutions import SubstitutionTable
from .query.translator import DEFAULT_MAX_DEPTH, Translator
from .security.redaction import redact_params
from .transaction import TransactionManager
from .utils import format_sql, get_logger, time_call
from .utils.performance import QueryProfiler

if TYPE_CHECKING:
    from .datasource import DataSource

_DELIMITER_RE = re.compile(r"^\s*DELIMITER\s+(\S+)\s*$", re.IGNORECASE)


def normalize_config(config: ConnectionConfig | str | Mapping[str, Any]) -> ConnectionConfig:
    if isinstance(config, ConnectionConfig):
        return config
    if isinstance(config, str):
        return ConnectionConfig.from_dsn(config)
    if isinstance(config, Mapping):
        return ConnectionConfig.from_options(config)
    raise TypeError(f"Unsupported connection configuration {type(config).__name__}")


def _column_index(cursor: Any, column: str | None, default: int) -> int:
    if column is None:
        return default
    names = [description[0] for description in (cursor.description or ())]
    try:
        return names.index(column)
    except ValueError:
        raise KeyError(f"Column '{column}' is not in the result set ({', '.join(names)})") from None


class Connection:
    """
    A database connection that speaks template SQL.

    Every method taking ``*args`` accepts the interleaved template form
    understood by :meth:`Translator.translate_args`::

        connection.query("SELECT * FROM %n WHERE %and", "users", {"id": 5})
    """

    def __init__(
        self,
        config: ConnectionConfig | str | Mapping[str, Any],
        *,
        adapter: DatabaseAdapter | None = None,
        lazy: bool = False,
        profiler: bool | QueryProfiler = False,
        substitutes: Mapping[str, str] | None = None,
        substitutions: SubstitutionTable | None = None,
        hooks: HookDispatcher | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        name: str | None = None,
    ) -> None:
        self.config = normalize_config(config)
        self.name = name
        self.adapter = adapter or create_adapter(self.config.driver)
        self.dialect = self.adapter.dialect
        if substitutions is None and substitutes is not None:
            substitutions = SubstitutionTable(substitutes)
        elif substitutions is not None and substitutes:
            substitutions.update(substitutes)
        self.translator = Translator(self.dialect, substitutions=substitutions, max_depth=max_depth)
        self.hooks = hooks or default_hooks
        self.logger = get_logger("connection")
        if profiler is True:
            self.profiler: Optional[QueryProfiler] = QueryProfiler(get_logger("profiler"))
        else:
            self.profiler = profiler or None
        self.transactions = TransactionManager(self.adapter, self.dialect)
        self._last_cursor: Any = None
        self._affected_rows: int | None = None
        if not lazy:
            self.connect()

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self) -> None:
        if self.adapter.is_connected:
            return
        self._lifecycle(QueryEvent.CONNECT, lambda: self.adapter.connect(self.config))

    def disconnect(self) -> None:
        self.adapter.close()
        self.transactions.reset()
        self._last_cursor = None

    def is_connected(self) -> bool:
        return self.adapter.is_connected

    def get_config(self, key: str | None = None, default: Any = None) -> Any:
        if key is None:
            return self.config
        return getattr(self.config, key, default)

    @property
    def substitutions(self) -> SubstitutionTable:
        return self.translator.substitutions

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"<Connection {self.config.redacted_dsn()} connected={self.is_connected()}>"

    # ------------------------------------------------------------------ #
    # Translation and execution
    # ------------------------------------------------------------------ #
    def translate(self, *args: Any) -> str:
        return self.translator.translate_args(*args)

    sql = translate

    def test(self, *args: Any) -> bool:
        """
        Translate without executing, logging the formatted SQL.

        Returns ``False`` (and logs the error) when translation fails.
        """
        try:
            sql = self.translate(*args)
        except TranslatorError:
            self.logger.exception("Query could not be translated", extra={"query_args": redact_params(args)})
            return False
        self.logger.info("%s", format_sql(sql), extra={"sql": sql})
        return True

    def query(self, *args: Any) -> Any:
        self.logger.debug("Translating query", extra={"query_args": redact_params(args)})
        return self.native_query(self.translate(*args))

    def native_query(self, sql: str) -> Any:
        """
        Execute SQL text as-is and return the driver cursor.
        """
        self.connect()
        event = QueryEvent.from_sql(sql)
        self.hooks.fire("before_query", event, sql=sql, connection=self)
        try:
            with time_call("connection.query", self.logger, sql=sql, threshold_ms=self.adapter.slow_query_ms) as timer:
                cursor = self.adapter.execute(sql)
        except AdapterError as exc:
            self.hooks.fire("query_failed", event, sql=sql, connection=self, error=exc)
            raise
        self._last_cursor = cursor
        self._affected_rows = self.adapter.affected_rows(cursor)
        if self.profiler is not None:
            self.profiler.record(event.value, sql, timer.elapsed_ms)
        self.hooks.fire(
            "after_query",
            event,
            sql=sql,
            connection=self,
            elapsed_ms=timer.elapsed_ms,
            affected_rows=self._affected_rows,
        )
        return cursor

    def affected_rows(self) -> int | None:
        return self._affected_rows

    def insert_id(self, sequence: str | None = None) -> Any:
        if self._last_cursor is None:
            raise AdapterError("No statement has been executed on this connection.")
        return self.adapter.last_insert_id(self._last_cursor, sequence)

    # ------------------------------------------------------------------ #
    # Fetch shortcuts
    # ------------------------------------------------------------------ #
    def fetch(self, *args: Any) -> Any:
        return self.query(*args).fetchone()

    def fetch_all(self, *args: Any) -> List[Any]:
        return list(self.query(*args).fetchall())

    def fetch_single(self, *args: Any) -> Any:
        row = self.query(*args).fetchone()
        if row is None:
            return None
        return row[0]

    def fetch_pairs(self, *args: Any, key: str | None = None, value: str | None = None) -> Dict[Any, Any]:
        """
        Map one column to another; the first two columns unless named.
        """
        cursor = self.query(*args)
        key_index = _column_index(cursor, key, 0)
        value_index = _column_index(cursor, value, 1)
        return {row[key_index]: row[value_index] for row in cursor.fetchall()}

    def data_source(self, *args: Any) -> "DataSource":
        from .datasource import DataSource

        return DataSource(self.translate(*args), self)

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self, savepoint: str | None = None) -> None:
        self.connect()
        self._lifecycle(QueryEvent.BEGIN, lambda: self.transactions.begin(savepoint), savepoint=savepoint)

    def commit(self, savepoint: str | None = None) -> None:
        self._lifecycle(QueryEvent.COMMIT, lambda: self.transactions.commit(savepoint), savepoint=savepoint)

    def rollback(self, savepoint: str | None = None) -> None:
        self._lifecycle(QueryEvent.ROLLBACK, lambda: self.transactions.rollback(savepoint), savepoint=savepoint)

    @contextmanager
    def transaction(self) -> Iterator["Connection"]:
        """
        Provide nested transaction context with savepoint support.
        """
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        else:
            self.commit()

    # ------------------------------------------------------------------ #
    # Fluent shortcuts
    # ------------------------------------------------------------------ #
    def command(self) -> Fluent:
        return Fluent(self)

    def select(self, *args: Any) -> Fluent:
        return self.command().select(*args)

    def update(self, table: str, values: Mapping[str, Any]) -> Fluent:
        return self.command().update("%n", table).set("%a", values)

    def insert(self, table: str, values: Mapping[str, Any]) -> Fluent:
        columns = [split_key(key)[0] for key in values]
        return self.command().insert().into("%n", table, "(%n)", columns).values("%l", values)

    def delete(self, table: str) -> Fluent:
        return self.command().delete().from_("%n", table)

    # ------------------------------------------------------------------ #
    def load_file(self, path: str | Path, on_progress: Callable[[int, float], None] | None = None) -> int:
        """
        Execute every statement of a SQL dump; returns the statement count.

        Statements end with ``;`` (or the current ``DELIMITER``) at the end of
        a line. ``on_progress(count, percent)`` is called after each one.
        """
        text = Path(path).read_text(encoding="utf-8")
        total = len(text) or 1
        delimiter = ";"
        buffer: List[str] = []
        consumed = 0
        count = 0
        for line in text.splitlines(keepends=True):
            consumed += len(line)
            match = _DELIMITER_RE.match(line)
            if match:
                delimiter = match.group(1)
                continue
            stripped = line.rstrip()
            if stripped.endswith(delimiter):
                buffer.append(stripped[: -len(delimiter)])
                statement = "".join(buffer).strip()
                buffer = []
                if statement:
                    self.native_query(statement)
                    count += 1
                    if on_progress is not None:
                        on_progress(count, consumed * 100 / total)
            else:
                buffer.append(line)
        trailing = "".join(buffer).strip()
        if trailing:
            self.native_query(trailing)
            count += 1
            if on_progress is not None:
                on_progress(count, 100.0)
        self.logger.info("Loaded %s statement(s) from %s", count, path)
        return count

    # ------------------------------------------------------------------ #
    def _lifecycle(self, event: QueryEvent, action: Callable[[], Any], **context: Any) -> None:
        self.hooks.fire("before_query", event, sql=None, connection=self, **context)
        try:
            with time_call(f"connection.{event.value}", self.logger, threshold_ms=self.adapter.slow_query_ms) as timer:
                action()
        except AdapterError as exc:
            self.hooks.fire("query_failed", event, sql=None, connection=self, error=exc, **context)
            raise
        if self.profiler is not None:
            self.profiler.record(event.value, None, timer.elapsed_ms)
        self.hooks.fire("after_query", event, sql=None, connection=self, elapsed_ms=timer.elapsed_ms, **context)
