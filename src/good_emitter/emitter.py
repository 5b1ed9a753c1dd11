"""Emitter facade composing the global event registry and the channel registry."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, overload

from .channels import Channel, ChannelRegistry
from .config import EmitterConfig
from .events.protocols import EventName, EventPriority, P, R, TypedEvent
from .events.registry import EventRegistry, Subscription, SubscriptionGroup
from .events.scheduling import Scheduler
from .events.tracing import EventTracer


class Emitter:
    """
    In-process publish/subscribe hub with priority ordering and channels.

    PURPOSE: The object application code holds. Every operation delegates to
    the global ``EventRegistry`` or to the ``ChannelRegistry``.

    TYPICAL USAGE:
    ```python
    emitter = Emitter()

    unsubscribe = emitter.subscribe("user:login", audit, priority=100)
    emitter.once("user:login", send_welcome)
    emitter.subscribe_with_delay("user:login", refresh_cache, delay_ms=500)

    results = emitter.emit("user:login", "ada")  # values and captured errors

    admin = emitter.channel("admin")
    admin.subscribe("user:login", notify_admins)  # not reached by emitter.emit

    unsubscribe()
    ```

    ERROR HANDLING:
    - Listener exceptions are returned in the ``emit`` results, never raised
    - ``set_max_listeners`` raises ``InvalidArgumentError`` for negative values
    - Emitting an event with no listeners returns ``[]``

    CONFIGURATION OPTIONS:
    - max_listeners: Leak advisory threshold per event (default 10, 0 = off)
    - debug: Log listener failures with tracebacks
    - event_trace: Print a Rich trace line per emit
    - logger: Diagnostic sink for advisories (default: module logger)
    - scheduler: Timer facility for delayed listeners

    Channels get a fresh registry configured like the global one. A default
    scheduler is created per registry; an injected ``scheduler`` is shared by
    the global registry and every channel.
    """

    def __init__(
        self,
        config: EmitterConfig | None = None,
        *,
        logger: logging.Logger | None = None,
        scheduler: Scheduler | None = None,
        **overrides: Any,
    ):
        if config is None:
            config = EmitterConfig(**overrides)
        elif overrides:
            config = EmitterConfig.model_validate({**config.model_dump(), **overrides})

        self._config = config
        self._logger = logger
        self._scheduler = scheduler
        self._tracer = EventTracer(
            enabled=config.event_trace,
            verbosity=config.trace_verbosity,
            use_rich=config.trace_use_rich,
        )
        self._event_registry = self._new_registry()
        self._channel_registry = ChannelRegistry(self._new_registry)

    def _new_registry(self) -> EventRegistry:
        return EventRegistry(
            max_listeners=self._config.max_listeners,
            debug=self._config.debug,
            logger=self._logger,
            scheduler=self._scheduler,
            tracer=self._tracer,
        )

    @property
    def config(self) -> EmitterConfig:
        return self._config

    @property
    def registry(self) -> EventRegistry:
        return self._event_registry

    @overload
    def subscribe(
        self, name: TypedEvent[P, R], callback: Callable[P, R], priority: EventPriority = 0
    ) -> Subscription: ...

    @overload
    def subscribe(
        self, name: EventName, callback: Callable[..., Any], priority: EventPriority = 0
    ) -> Subscription: ...

    def subscribe(self, name, callback, priority=0):
        return self._event_registry.subscribe(name, callback, priority)

    def unsubscribe(self, subscription: Subscription | SubscriptionGroup) -> None:
        subscription.unsubscribe()

    @overload
    def emit(
        self, name: TypedEvent[P, R], *args: P.args, **kwargs: P.kwargs
    ) -> list[R | Exception]: ...

    @overload
    def emit(self, name: EventName, *args: Any, **kwargs: Any) -> list[Any]: ...

    def emit(self, name, *args, **kwargs):
        return self._event_registry.emit(name, *args, **kwargs)

    @overload
    def once(
        self, name: TypedEvent[P, R], callback: Callable[P, R], priority: EventPriority = 0
    ) -> Subscription: ...

    @overload
    def once(
        self, name: EventName, callback: Callable[..., Any], priority: EventPriority = 0
    ) -> Subscription: ...

    def once(self, name, callback, priority=0):
        return self._event_registry.once(name, callback, priority)

    def subscribe_list(
        self, callbacks: Mapping[EventName | TypedEvent[Any, Any], Callable[..., Any] | None]
    ) -> SubscriptionGroup:
        return self._event_registry.subscribe_list(callbacks)

    @overload
    def subscribe_with_delay(
        self,
        name: TypedEvent[P, R],
        callback: Callable[P, R],
        delay_ms: float,
        priority: EventPriority = 0,
    ) -> Subscription: ...

    @overload
    def subscribe_with_delay(
        self,
        name: EventName,
        callback: Callable[..., Any],
        delay_ms: float,
        priority: EventPriority = 0,
    ) -> Subscription: ...

    def subscribe_with_delay(self, name, callback, delay_ms, priority=0):
        return self._event_registry.subscribe_with_delay(name, callback, delay_ms, priority)

    def channel(self, name: str) -> Channel:
        return self._channel_registry.channel(name)

    def set_max_listeners(self, n: int) -> Emitter:
        """
        Set the maximum number of listeners per event before a leak advisory.

        Args:
            n: Maximum number (0 for unlimited, default: 10)
        """
        self._event_registry.set_max_listeners(n)
        return self

    def get_max_listeners(self) -> int:
        return self._event_registry.get_max_listeners()

    def listener_count(self, name: EventName | TypedEvent[Any, Any]) -> int:
        return self._event_registry.listener_count(name)

    def get_event_names(self) -> list[EventName]:
        return self._event_registry.get_event_names()

    def get_listeners(self, name: EventName | TypedEvent[Any, Any]) -> list[Callable[..., Any]]:
        return self._event_registry.get_listeners(name)

    def remove_all_listeners(self, name: EventName | TypedEvent[Any, Any] | None = None) -> Emitter:
        """
        Remove all listeners for a specific event or all events.

        Args:
            name: Event name (omit to remove all listeners)
        """
        self._event_registry.remove_all_listeners(name)
        return self

    def set_event_trace(self, enabled: bool, verbosity: int = 1, use_rich: bool = True) -> None:
        """
        Enable or disable emission tracing for this emitter and its channels.

        Args:
            enabled: Whether to print a trace line per emit
            verbosity: Level of detail (0=minimal, 1=normal, 2=verbose)
            use_rich: Whether to use Rich formatting for output
        """
        self._tracer.configure(enabled, verbosity, use_rich, owner=self.__class__.__name__)

    @property
    def event_trace_enabled(self) -> bool:
        return self._tracer.enabled

    def join(self, timeout: float = 5.0) -> None:
        """Wait for async listener results running on background loops."""
        self._event_registry.join(timeout)
        for channel in self._channel_registry:
            channel.registry.join(timeout)

    async def join_async(self, timeout: float = 5.0) -> None:
        await self._event_registry.join_async(timeout)
        for channel in self._channel_registry:
            await channel.registry.join_async(timeout)

    def close(self) -> None:
        """Cancel armed delayed listeners and release background resources."""
        self._event_registry.close()
        self._channel_registry.close()

    async def async_close(self) -> None:
        await self._event_registry.async_close()
        for channel in self._channel_registry:
            await channel.registry.async_close()

    def __enter__(self) -> Emitter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __aenter__(self) -> Emitter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.async_close()

    def __repr__(self) -> str:
        return (
            f"<Emitter events={len(self.get_event_names())} "
            f"channels={len(self._channel_registry)}>"
        )
