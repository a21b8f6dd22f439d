"""
Hook dispatcher coordinating query lifecycle notifications.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from .events import QueryEvent

HookHandler = Callable[..., None]

HOOK_NAMES = ("before_query", "after_query", "query_failed")


class HookDispatcher:
    """
    Maintains global and per-event hook handlers.

    Handlers are called as ``handler(event, **context)`` where ``event`` is
    the :class:`QueryEvent` being reported.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._event_handlers: Dict[QueryEvent, Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def register(self, hook: str, handler: HookHandler, *, event: Optional[QueryEvent] = None) -> None:
        if hook not in HOOK_NAMES:
            raise ValueError(f"Unknown hook '{hook}'. Expected one of {', '.join(HOOK_NAMES)}.")
        if event:
            self._event_handlers[event][hook].append(handler)
        else:
            self._global_handlers[hook].append(handler)

    def unregister(self, hook: str, handler: HookHandler) -> None:
        handlers = self._global_handlers.get(hook, [])
        if handler in handlers:
            handlers.remove(handler)
        for per_event in self._event_handlers.values():
            if handler in per_event.get(hook, []):
                per_event[hook].remove(handler)

    def fire(self, hook: str, event: QueryEvent, **context: Any) -> None:
        handlers = list(self._global_handlers.get(hook, []))
        handlers.extend(self._event_handlers.get(event, {}).get(hook, []))
        for handler in handlers:
            handler(event, **context)

    def clear(self) -> None:
        self._global_handlers.clear()
        self._event_handlers.clear()


hooks = HookDispatcher()
