"""Named channel with its own listener registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, overload

from ..events.protocols import EventName, EventPriority, P, R, TypedEvent
from ..events.registry import EventRegistry, Subscription


class Channel:
    """Isolated subscribe/emit namespace reached through ``Emitter.channel``.

    A channel shares nothing with its parent emitter or with other channels
    except configuration: listeners subscribed here are invisible to
    ``Emitter.emit`` and vice versa.
    """

    def __init__(self, name: str, registry: EventRegistry | None = None):
        self.name = name
        self._registry = registry if registry is not None else EventRegistry()

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    @overload
    def subscribe(
        self, name: TypedEvent[P, R], callback: Callable[P, R], priority: EventPriority = 0
    ) -> Subscription: ...

    @overload
    def subscribe(
        self, name: EventName, callback: Callable[..., Any], priority: EventPriority = 0
    ) -> Subscription: ...

    def subscribe(self, name, callback, priority=0):
        return self._registry.subscribe(name, callback, priority)

    @overload
    def emit(
        self, name: TypedEvent[P, R], *args: P.args, **kwargs: P.kwargs
    ) -> list[R | Exception]: ...

    @overload
    def emit(self, name: EventName, *args: Any, **kwargs: Any) -> list[Any]: ...

    def emit(self, name, *args, **kwargs):
        return self._registry.emit(name, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<Channel {self.name!r}>"
