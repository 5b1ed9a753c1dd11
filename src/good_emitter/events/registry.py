"""Event registry: listener bookkeeping and synchronous emission.

This module contains the ``EventRegistry`` that owns one ``ListenerStore``
per event name and implements every subscribe/emit operation the emitter and
channels expose.

CONTENTS:
- Subscription: Explicit, idempotent unsubscribe handle
- SubscriptionGroup: Handle returned by ``subscribe_list``
- EventRegistry: Subscribe, emit, once, delayed and bulk registration,
  leak detection and introspection

EMISSION:
- ``emit`` snapshots the listener store, then calls each callback in order on
  the caller's stack. Listeners added or removed during an emit (including
  by re-entrant emits) never change the snapshot being iterated.
- An ``Exception`` raised by a callback is captured and placed in the
  results at that listener's position. Iteration continues.
- ``None`` returns are omitted from the results.
- Coroutines returned by async callbacks are scheduled; the resulting
  ``asyncio.Task`` (inside a running loop) or ``concurrent.futures.Future``
  (otherwise) is the value placed in the results.

THREAD SAFETY: Every mutation and snapshot is guarded by ``self._lock``
(``threading.RLock``). The lock is never held while a callback runs, so
callbacks may freely subscribe, unsubscribe and emit.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, overload

from .listeners import Listener, ListenerStore
from .protocols import (
    EventName,
    EventPriority,
    InvalidArgumentError,
    P,
    R,
    TypedEvent,
    event_key,
    event_name,
)
from .scheduling import BackgroundLoop, Scheduler, TimerScheduler
from .tracing import EventTracer


DEFAULT_MAX_LISTENERS = 10


@dataclass(eq=False)
class Subscription:
    """Handle for exactly one registration.

    Calling the handle (or passing it to ``EventRegistry.unsubscribe``)
    removes the registration. Only the first call has an effect.
    """

    event: EventName
    listener: Listener
    _registry: EventRegistry = field(repr=False)
    _active: bool = field(default=True, repr=False)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def callback(self) -> Callable[..., Any]:
        return self.listener.callback

    def unsubscribe(self) -> None:
        self._registry.unsubscribe(self)

    def __call__(self) -> None:
        self._registry.unsubscribe(self)


@dataclass(eq=False)
class SubscriptionGroup:
    """Handle for all registrations made by one ``subscribe_list`` call."""

    subscriptions: list[Subscription] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return any(sub.active for sub in self.subscriptions)

    def unsubscribe(self) -> None:
        for sub in self.subscriptions:
            sub.unsubscribe()

    def __call__(self) -> None:
        self.unsubscribe()

    def __iter__(self) -> Iterator[Subscription]:
        return iter(self.subscriptions)

    def __len__(self) -> int:
        return len(self.subscriptions)


class EventRegistry:
    """Priority-ordered listener registry with synchronous emission.

    PURPOSE: Owns the listener stores for a set of event names and implements
    the subscribe/emit contract shared by ``Emitter`` and ``Channel``.

    LEAK DETECTION: After each subscribe, if ``max_listeners`` is non-zero and
    the event's listener count exceeds it, one warning is logged for that
    event. The marker resets when the limit changes or the event's listeners
    are cleared with ``remove_all_listeners``.

    Example:
        ```python
        registry = EventRegistry()
        unsubscribe = registry.subscribe("user:login", lambda name: name.upper())
        registry.emit("user:login", "ada")  # ["ADA"]
        unsubscribe()
        registry.emit("user:login", "ada")  # []
        ```
    """

    def __init__(
        self,
        max_listeners: int = DEFAULT_MAX_LISTENERS,
        debug: bool = False,
        logger: logging.Logger | None = None,
        scheduler: Scheduler | None = None,
        tracer: EventTracer | None = None,
    ):
        """
        Initialize an empty registry.

        Args:
            max_listeners: Leak warning threshold per event (0 disables it)
            debug: Log callback failures with tracebacks
            logger: Diagnostic sink for leak advisories and failures
            scheduler: Timer facility for delayed listeners
            tracer: Emission tracer (tracing is off unless enabled)
        """
        if max_listeners < 0:
            raise InvalidArgumentError("max_listeners must be a non-negative number")

        self._lock = threading.RLock()
        self._events: dict[EventName, ListenerStore] = {}
        self._max_listeners = max_listeners
        self._warned: set[EventName] = set()
        self._debug = debug
        self._logger = logger or logging.getLogger(__name__)
        self._scheduler: Scheduler = scheduler or TimerScheduler()
        self._tracer = tracer or EventTracer()

        # Pending results of coroutine callbacks
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[concurrent.futures.Future] = set()
        self._background = BackgroundLoop()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @overload
    def subscribe(
        self,
        name: TypedEvent[P, R],
        callback: Callable[P, R],
        priority: EventPriority = 0,
    ) -> Subscription: ...

    @overload
    def subscribe(
        self,
        name: EventName,
        callback: Callable[..., Any],
        priority: EventPriority = 0,
    ) -> Subscription: ...

    def subscribe(self, name, callback, priority=0):
        """Register ``callback`` for ``name``.

        Args:
            name: Event name or ``TypedEvent``
            callback: Callable invoked with the emitted arguments
            priority: Execution priority (higher values run first, default: 0)

        Returns:
            Subscription handle; call it to unsubscribe
        """
        key = event_name(name)
        listener = Listener(callback=callback, priority=priority)

        with self._lock:
            store = self._events.get(key)
            if store is None:
                store = self._events[key] = ListenerStore()
            store.enqueue(listener)
            self._check_max_listeners(key, store)

        if self._debug:
            self._logger.debug(
                f"Registered {getattr(callback, '__name__', callback)!r} "
                f"for {key!r} at priority {priority}"
            )

        return Subscription(event=key, listener=listener, _registry=self)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove the registration behind ``subscription``.

        Calling this for an already removed registration is a no-op, including
        one cleared by ``remove_all_listeners``.
        """
        with self._lock:
            if not subscription._active:
                return
            subscription._active = False
            store = self._events.get(subscription.event)
            if store is None or not store.holds(subscription.listener):
                return
            store.remove(subscription.listener)

    @overload
    def once(
        self,
        name: TypedEvent[P, R],
        callback: Callable[P, R],
        priority: EventPriority = 0,
    ) -> Subscription: ...

    @overload
    def once(
        self,
        name: EventName,
        callback: Callable[..., Any],
        priority: EventPriority = 0,
    ) -> Subscription: ...

    def once(self, name, callback, priority=0):
        """Register ``callback`` to run on the next emit of ``name`` only.

        The wrapper unsubscribes itself in a ``finally`` block, so a callback
        that raises still runs only once; its exception is captured in the
        emit results like any other listener failure.
        """
        subscription: Subscription | None = None
        fired = False

        @functools.wraps(callback)
        def once_wrapper(*args: Any, **kwargs: Any) -> Any:
            nonlocal fired
            # Re-entrant and concurrent emits may still hold us in their snapshot
            with self._lock:
                if fired:
                    return None
                fired = True
            try:
                return callback(*args, **kwargs)
            finally:
                if subscription is not None:
                    subscription()

        subscription = self.subscribe(name, once_wrapper, priority)
        return subscription

    def subscribe_list(
        self, callbacks: Mapping[EventName | TypedEvent[Any, Any], Callable[..., Any] | None]
    ) -> SubscriptionGroup:
        """Subscribe several callbacks at the default priority.

        Entries whose callback is ``None`` are skipped.

        Returns:
            SubscriptionGroup; call it to unsubscribe every registration
        """
        group = SubscriptionGroup()
        for name, callback in callbacks.items():
            if callback is None:
                continue
            group.subscriptions.append(self.subscribe(name, callback))
        return group

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
        """Register ``callback`` to run ``delay_ms`` milliseconds after each emit.

        The registered listener is a wrapper that arms one timer per emit and
        returns nothing, so delayed listeners never contribute emit results.
        Unsubscribing removes the wrapper; timers armed by earlier emits still
        fire. Use ``cancel_pending`` to drop armed timers. A negative delay
        is treated as 0.
        """
        key = event_name(name)

        @functools.wraps(callback)
        def delayed_wrapper(*args: Any, **kwargs: Any) -> None:
            self._scheduler.call_later(
                max(delay_ms, 0) / 1000.0, self._run_delayed, key, callback, args, kwargs
            )

        return self.subscribe(key, delayed_wrapper, priority)

    def _run_delayed(
        self,
        name: EventName,
        callback: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        try:
            result = callback(*args, **kwargs)
        except Exception:
            self._logger.exception(f"Delayed listener {callback!r} failed for {name!r}")
            return
        if asyncio.iscoroutine(result):
            self._schedule_coroutine(result)

    def cancel_pending(self) -> None:
        """Cancel every delayed callback armed on this registry's scheduler."""
        self._scheduler.cancel_all()

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    @overload
    def emit(
        self, name: TypedEvent[P, R], *args: P.args, **kwargs: P.kwargs
    ) -> list[R | Exception]: ...

    @overload
    def emit(self, name: EventName, *args: Any, **kwargs: Any) -> list[Any]: ...

    def emit(self, name, *args, **kwargs):
        """Invoke every listener of ``name`` synchronously, in priority order.

        Returns:
            Non-``None`` return values and captured exceptions, in listener
            order. Empty when nothing is subscribed.
        """
        key = event_key(name)
        start_time = time.perf_counter()

        with self._lock:
            store = self._events.get(key)
            listeners = store.snapshot() if store is not None else ()

        results: list[Any] = []
        for listener in listeners:
            callback = listener.callback
            try:
                result = callback(*args, **kwargs)
            except Exception as e:
                if self._debug:
                    self._logger.exception(f"Listener {callback!r} failed for event {key!r}")
                results.append(e)
                continue

            if asyncio.iscoroutine(result):
                result = self._schedule_coroutine(result)
            if result is not None:
                results.append(result)

        if self._tracer.enabled:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._tracer.record(key, args, len(listeners), duration_ms, results)

        return results

    def _schedule_coroutine(self, coro: Any) -> asyncio.Task | concurrent.futures.Future:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            future = self._background.submit(coro)
            with self._lock:
                self._futures.add(future)
            future.add_done_callback(self._on_future_done)
            return future

        task = loop.create_task(coro)
        with self._lock:
            self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._report_async_failure(task)
        with self._lock:
            self._tasks.discard(task)

    def _on_future_done(self, future: concurrent.futures.Future) -> None:
        self._report_async_failure(future)
        with self._lock:
            self._futures.discard(future)

    def _report_async_failure(self, result: asyncio.Task | concurrent.futures.Future) -> None:
        if result.cancelled():
            return
        error = result.exception()
        if error is not None:
            self._logger.warning(
                f"Async listener failed: {error!r}",
                exc_info=error if self._debug else None,
            )

    # ------------------------------------------------------------------
    # Leak detection and limits
    # ------------------------------------------------------------------

    def _check_max_listeners(self, name: EventName, store: ListenerStore) -> None:
        if self._max_listeners == 0:
            return

        count = store.size()
        if count > self._max_listeners and name not in self._warned:
            self._warned.add(name)
            self._logger.warning(
                f"Possible memory leak detected. {count} listeners added for event "
                f'"{name}". Use set_max_listeners() to increase limit. '
                f"Current limit: {self._max_listeners}"
            )

    def set_max_listeners(self, n: int) -> None:
        """Set the per-event leak warning threshold (0 means unlimited).

        Raises:
            InvalidArgumentError: If ``n`` is negative
        """
        if n < 0:
            raise InvalidArgumentError("max_listeners must be a non-negative number")
        with self._lock:
            self._max_listeners = n
            self._warned.clear()

    def get_max_listeners(self) -> int:
        return self._max_listeners

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def listener_count(self, name: EventName | TypedEvent[Any, Any]) -> int:
        key = event_key(name)
        with self._lock:
            store = self._events.get(key)
            return store.size() if store is not None else 0

    def get_event_names(self) -> list[EventName]:
        """Names of events with at least one live listener."""
        with self._lock:
            return [name for name, store in self._events.items() if store]

    def get_listeners(self, name: EventName | TypedEvent[Any, Any]) -> list[Callable[..., Any]]:
        """Callbacks registered for ``name``, in emission order."""
        key = event_key(name)
        with self._lock:
            store = self._events.get(key)
            return store.callbacks() if store is not None else []

    def remove_all_listeners(self, name: EventName | TypedEvent[Any, Any] | None = None) -> None:
        """Clear one event's listeners, or every event's when ``name`` is None."""
        with self._lock:
            if name is not None:
                key = event_key(name)
                self._events.pop(key, None)
                self._warned.discard(key)
            else:
                self._events.clear()
                self._warned.clear()

    # ------------------------------------------------------------------
    # Tracing and lifecycle
    # ------------------------------------------------------------------

    @property
    def tracer(self) -> EventTracer:
        return self._tracer

    @property
    def pending_results(self) -> int:
        """Number of scheduled coroutine results that have not finished."""
        with self._lock:
            return len(self._tasks) + len(self._futures)

    def join(self, timeout: float = 5.0) -> None:
        """Wait for coroutine results running on the background loop."""
        with self._lock:
            futures = list(self._futures)
        if not futures:
            return
        _, not_done = concurrent.futures.wait(futures, timeout=timeout)
        if not_done and self._debug:
            self._logger.warning(f"Timeout waiting for {len(not_done)} async listeners")

    async def join_async(self, timeout: float = 5.0) -> None:
        """Wait for coroutine results scheduled on the running loop or the background loop."""
        with self._lock:
            pending = [*self._tasks, *(asyncio.wrap_future(f) for f in self._futures)]
        if not pending:
            return
        try:
            await asyncio.wait_for(
                asyncio.gather(*pending, return_exceptions=True), timeout=timeout
            )
        except TimeoutError:
            if self._debug:
                self._logger.warning(f"Timeout waiting for {len(pending)} async listeners")

    def close(self) -> None:
        """Cancel armed timers, wait briefly for async results, stop the background loop."""
        self.cancel_pending()
        self.join(timeout=1.0)
        with self._lock:
            futures = list(self._futures)
        for future in futures:
            future.cancel()
        self._background.stop()

    async def async_close(self) -> None:
        self.cancel_pending()
        await self.join_async(timeout=1.0)
        with self._lock:
            tasks = list(self._tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        self._background.stop()

    def __repr__(self) -> str:
        with self._lock:
            total = sum(store.size() for store in self._events.values())
        return f"<{self.__class__.__name__} events={len(self._events)} listeners={total}>"
