"""Listener records and the per-event priority-ordered store.

CONTENTS:
- Listener: Immutable (callback, priority) registration record
- ListenerStore: Ordered collection of listeners for one event name

ORDERING: Listeners are kept sorted by descending priority. Among equal
priorities, insertion order is preserved (stable insertion). Emission never
iterates the live list; it iterates ``snapshot()``, so listeners added or
removed while an emit is running only affect the next emit.
"""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from .protocols import EventPriority


@dataclass(frozen=True, slots=True, eq=False)
class Listener:
    """Registration record for one subscribed callback.

    Two records describe the same registration only when their callbacks are
    the same object and their priorities are equal. Dataclass equality is
    disabled so that callbacks defining ``__eq__`` cannot alias each other.
    """

    callback: Callable[..., Any]
    """The callable invoked on emit."""

    priority: EventPriority = 0
    """Execution priority (higher = earlier)."""

    def matches(self, other: Listener) -> bool:
        return self.callback is other.callback and self.priority == other.priority


class ListenerStore:
    """Priority-ordered listeners for a single event.

    Not thread-safe on its own; the owning ``EventRegistry`` serialises access
    with its lock.
    """

    __slots__ = ("_items", "_keys")

    def __init__(self) -> None:
        self._items: list[Listener] = []
        # Negated priorities, kept parallel to _items so bisect can find the
        # first slot whose priority is strictly lower than a new listener's.
        self._keys: list[int] = []

    def enqueue(self, listener: Listener) -> None:
        """Insert ``listener`` after every entry with priority >= its own."""
        index = bisect.bisect_right(self._keys, -listener.priority)
        self._items.insert(index, listener)
        self._keys.insert(index, -listener.priority)

    def remove(self, listener: Listener) -> bool:
        """Remove the first entry matching ``listener``.

        Returns:
            True if an entry was removed, False if nothing matched
        """
        for index, item in enumerate(self._items):
            if item.matches(listener):
                del self._items[index]
                del self._keys[index]
                return True
        return False

    def holds(self, listener: Listener) -> bool:
        """Whether this exact record (by identity) is still stored."""
        return any(item is listener for item in self._items)

    def snapshot(self) -> tuple[Listener, ...]:
        """Return the current order as an immutable copy."""
        return tuple(self._items)

    def callbacks(self) -> list[Callable[..., Any]]:
        return [listener.callback for listener in self._items]

    def clear(self) -> None:
        self._items.clear()
        self._keys.clear()

    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Listener]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"<ListenerStore size={len(self._items)}>"
