"""
Query lifecycle hooks.
"""

from .dispatcher import HookDispatcher, hooks
from .events import QueryEvent

__all__ = ["HookDispatcher", "QueryEvent", "hooks"]
