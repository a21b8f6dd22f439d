"""
Utility helpers shared across sqlquill packages.
"""

from .formatting import format_sql
from .logging import configure_logging, get_logger, time_call
from .performance import QueryProfiler, resolve_slow_query_ms

__all__ = [
    "QueryProfiler",
    "configure_logging",
    "format_sql",
    "get_logger",
    "resolve_slow_query_ms",
    "time_call",
]
