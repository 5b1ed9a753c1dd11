"""Core type aliases, typed event descriptors and error types."""

from __future__ import annotations

from typing import Any, Generic, ParamSpec, TypeAlias, TypeVar

EventName: TypeAlias = str
"""Event key used to look up a listener store."""

EventPriority: TypeAlias = int
"""Listener priority. Higher values run earlier; default is 0."""

P = ParamSpec("P")
R = TypeVar("R")


class InvalidArgumentError(ValueError):
    """Raised when a registry operation receives an out-of-range argument."""


class TypedEvent(Generic[P, R]):
    """Descriptor binding an event name to a fixed callback signature.

    Emitters accept either a plain string or a ``TypedEvent``. The descriptor
    carries no runtime behaviour beyond its name; it exists so static type
    checkers can match ``subscribe`` callbacks and ``emit`` arguments against
    one declared contract.

    Example:
        ```python
        user_login: TypedEvent[[str], bool] = TypedEvent("user:login")

        emitter.subscribe(user_login, lambda username: True)
        results = emitter.emit(user_login, "ada")  # list[bool | Exception]
        ```
    """

    __slots__ = ("name",)

    def __init__(self, name: EventName):
        self.name = name

    def __repr__(self) -> str:
        return f"TypedEvent({self.name!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TypedEvent):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)


def event_name(event: EventName | TypedEvent[Any, Any]) -> EventName:
    """Resolve a string or ``TypedEvent`` into the registry key.

    Raises:
        InvalidArgumentError: If the resolved name is empty or not a string
    """
    name = event_key(event)
    if not isinstance(name, str) or not name:
        raise InvalidArgumentError(f"event name must be a non-empty string, got {name!r}")
    return name


def event_key(event: EventName | TypedEvent[Any, Any]) -> EventName:
    """Resolve a string or ``TypedEvent`` for lookups.

    Unlike ``event_name`` nothing is rejected: an empty or unknown name
    simply has no listener store.
    """
    return event.name if isinstance(event, TypedEvent) else event
