"""
Identifier substitutions for ``:name:`` placeholders.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Mapping, Tuple

from .errors import MissingSubstitutionError

SubstitutionFallback = Callable[[str], str]


class _All:
    def __repr__(self) -> str:
        return "ALL"


ALL = _All()


def default_fallback(name: str) -> str:
    raise MissingSubstitutionError(name)


class SubstitutionTable:
    """
    Mapping of placeholder names to replacement text plus a miss handler.

    Mutations take a lock; translators read through :meth:`snapshot` so a
    concurrent ``add``/``remove`` never tears a translation.
    """

    def __init__(
        self,
        substitutions: Mapping[str, str] | None = None,
        *,
        fallback: SubstitutionFallback | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._entries: Dict[str, str] = dict(substitutions or {})
        self._fallback: SubstitutionFallback = fallback or default_fallback

    def add(self, name: str, value: str) -> None:
        with self._lock:
            self._entries[name] = value

    def update(self, substitutions: Mapping[str, str]) -> None:
        with self._lock:
            self._entries.update(substitutions)

    def remove(self, name: str | _All) -> None:
        """
        Remove one substitution, or all of them when ``name`` is :data:`ALL`.
        """
        with self._lock:
            if name is ALL:
                self._entries.clear()
            else:
                self._entries.pop(name, None)

    def clear(self) -> None:
        self.remove(ALL)

    def set_fallback(self, handler: SubstitutionFallback | None) -> None:
        if handler is not None and not callable(handler):
            raise TypeError(f"Substitution fallback {handler!r} is not callable.")
        with self._lock:
            self._fallback = handler or default_fallback

    def snapshot(self) -> Tuple[Dict[str, str], SubstitutionFallback]:
        with self._lock:
            return dict(self._entries), self._fallback

    def resolve(self, name: str) -> str:
        entries, fallback = self.snapshot()
        return resolve(name, entries, fallback)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def resolve(name: str, entries: Mapping[str, str], fallback: SubstitutionFallback) -> str:
    if name in entries:
        return entries[name]
    value = fallback(name)
    if not isinstance(value, str):
        raise MissingSubstitutionError(name)
    return value


substitutions = SubstitutionTable()


def add_substitution(name: str, value: str) -> None:
    substitutions.add(name, value)


def remove_substitution(name: str | _All = ALL) -> None:
    substitutions.remove(name)


def set_substitution_fallback(handler: SubstitutionFallback | None) -> None:
    substitutions.set_fallback(handler)
