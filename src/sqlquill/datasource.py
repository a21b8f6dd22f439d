"""
Data source: a table or sub-select narrowed by columns, conditions and paging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping

from .query.fluent import Fluent

if TYPE_CHECKING:
    from .connection import Connection


class DataSource:
    """
    Wrap ``sql`` (a table name or a SELECT statement) for incremental narrowing.

    Changing columns, conditions, ordering or limits drops the cached result
    and counts; the next fetch re-runs the query.
    """

    def __init__(self, sql: str, connection: "Connection") -> None:
        self.connection = connection
        if any(ch.isspace() for ch in sql.strip()):
            self._source = f"({sql}) t"
        else:
            self._source = connection.dialect.format_identifier(sql)
        self._columns: Dict[str, str | None] = {}
        self._conditions: List[Any] = []
        self._sorting: Dict[str, str] = {}
        self._limit: int | None = None
        self._offset: int | None = None
        self._cursor: Any = None
        self._count: int | None = None
        self._total_count: int | None = None

    # Narrowing ---------------------------------------------------------
    def select(self, columns: str | List[str] | Mapping[str, str], alias: str | None = None) -> "DataSource":
        if isinstance(columns, Mapping):
            self._columns.update(columns)
        elif isinstance(columns, str):
            self._columns[columns] = alias
        else:
            self._columns.update(dict.fromkeys(columns))
        self._reset()
        return self

    def where(self, condition: Any, *args: Any) -> "DataSource":
        """
        Add a condition: a mapping of column values or a template with arguments.
        """
        if isinstance(condition, Mapping):
            self._conditions.append(dict(condition))
        else:
            self._conditions.append([condition, *args])
        self._reset()
        return self

    def order_by(self, column: str | Mapping[str, str], direction: str = "ASC") -> "DataSource":
        if isinstance(column, Mapping):
            self._sorting.update(column)
        else:
            self._sorting[column] = direction
        self._reset()
        return self

    def apply_limit(self, limit: int | None, offset: int | None = None) -> "DataSource":
        self._limit = limit
        self._offset = offset
        self._cursor = None
        self._count = None
        return self

    def release(self) -> None:
        self._cursor = None
        self._count = None
        self._total_count = None

    # Execution ---------------------------------------------------------
    def get_result(self) -> Any:
        if self._cursor is None:
            self._cursor = self.connection.native_query(str(self))
        return self._cursor

    def __iter__(self) -> Iterator[Any]:
        return iter(self.fetch_all())

    def fetch(self) -> Any:
        return self.get_result().fetchone()

    def fetch_all(self) -> List[Any]:
        return list(self.connection.native_query(str(self)).fetchall())

    def fetch_single(self) -> Any:
        row = self.fetch()
        if row is None:
            return None
        return row[0]

    def fetch_pairs(self, key: str | None = None, value: str | None = None) -> Dict[Any, Any]:
        return self.connection.fetch_pairs("%sql", str(self), key=key, value=value)

    def count(self) -> int:
        """
        Rows matching the current conditions and limits.
        """
        if self._count is None:
            self._count = int(self.connection.fetch_single("SELECT COUNT(*) FROM (%sql) t", str(self)))
        return self._count

    def total_count(self) -> int:
        """
        Rows in the underlying source, ignoring conditions and limits.
        """
        if self._total_count is None:
            self._total_count = int(self.connection.fetch_single("SELECT COUNT(*) FROM %sql", self._source))
        return self._total_count

    # Conversion --------------------------------------------------------
    def to_fluent(self) -> Fluent:
        return self.connection.select("*").from_("(%sql) t", str(self))

    def to_data_source(self) -> "DataSource":
        return DataSource(str(self), self.connection)

    def __str__(self) -> str:
        return self.connection.translate(
            "SELECT %n", self._columns or "*",
            "FROM %sql", self._source,
            "%ex", ["WHERE %and", self._conditions] if self._conditions else None,
            "%ex", ["ORDER BY %by", self._sorting] if self._sorting else None,
            "%ofs %lmt", self._offset, self._limit,
        )

    def __repr__(self) -> str:
        return f"<DataSource {self._source}>"

    def _reset(self) -> None:
        self._cursor = None
        self._count = None
