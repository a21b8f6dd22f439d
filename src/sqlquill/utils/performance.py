"""
Query profiling: per-event counts and timings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

SLOW_QUERY_ENV = "SQLQUILL_SLOW_QUERY_MS"


def resolve_slow_query_ms(*, default: int = 100, override: int | None = None) -> int:
    """
    Slow query threshold: explicit override, then environment, then default.
    """
    if override is not None:
        return int(override)
    value = os.getenv(SLOW_QUERY_ENV)
    if value:
        try:
            return int(value)
        except ValueError:
            logging.getLogger("sqlquill.performance").warning(
                "Ignoring invalid %s value %r", SLOW_QUERY_ENV, value
            )
    return default


@dataclass
class EventStat:
    event: str
    count: int = 0
    total_ms: float = 0.0
    samples: List[str] = field(default_factory=list)

    def record(self, sql: str | None, elapsed_ms: float, *, sample_limit: int) -> None:
        self.count += 1
        self.total_ms += elapsed_ms
        if sql and len(self.samples) < sample_limit and sql not in self.samples:
            self.samples.append(sql)

    @property
    def average_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count


class QueryProfiler:
    """
    Collects executed queries grouped by event kind.

    Register it on a hook dispatcher with :meth:`attach`, or pass
    ``profiler=True`` when creating a connection.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        slow_query_ms: int | None = None,
        sample_size: int = 5,
    ) -> None:
        self.logger = logger
        self.slow_query_ms = resolve_slow_query_ms(override=slow_query_ms)
        self.sample_size = sample_size
        self.stats: Dict[str, EventStat] = {}
        self.last_sql: str | None = None

    def attach(self, dispatcher) -> "QueryProfiler":
        dispatcher.register("after_query", self._on_after_query)
        return self

    def record(self, event: str, sql: str | None, elapsed_ms: float) -> None:
        stat = self.stats.setdefault(event, EventStat(event=event))
        stat.record(sql, elapsed_ms, sample_limit=self.sample_size)
        if sql is not None:
            self.last_sql = sql
        if elapsed_ms >= self.slow_query_ms:
            self.logger.warning(
                "Slow %s (%.2fms): %s",
                event,
                elapsed_ms,
                self._abbreviate(sql or ""),
                extra={"sql": sql, "elapsed_ms": elapsed_ms, "event": event},
            )

    @property
    def count(self) -> int:
        return sum(stat.count for stat in self.stats.values())

    @property
    def total_ms(self) -> float:
        return sum(stat.total_ms for stat in self.stats.values())

    def summary(self) -> List[dict[str, object]]:
        return [
            {
                "event": stat.event,
                "count": stat.count,
                "total_ms": stat.total_ms,
                "average_ms": stat.average_ms,
                "samples": list(stat.samples),
            }
            for stat in self.stats.values()
        ]

    def colophon(self) -> str:
        return f"{self.count} queries, {self.total_ms:.2f}ms"

    def reset(self) -> None:
        self.stats.clear()
        self.last_sql = None

    def _on_after_query(self, event, *, sql: str | None = None, elapsed_ms: float = 0.0, **context) -> None:
        self.record(event.value, sql, elapsed_ms)

    @staticmethod
    def _abbreviate(sql: str, max_length: int = 80) -> str:
        if len(sql) <= max_length:
            return sql
        return sql[: max_length - 3] + "..."
