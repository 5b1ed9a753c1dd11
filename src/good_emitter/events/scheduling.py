"""Timer scheduling for delayed listeners and the background loop for async callbacks.

CONTENTS:
- TimerHandle / Scheduler: Protocols for single-shot cancellable timers
- TimerScheduler: Default scheduler built on ``threading.Timer``
- LoopScheduler: Scheduler built on an asyncio loop's ``call_later``
- BackgroundLoop: Lazily started event loop thread for coroutine callbacks
  emitted from code that has no running loop

THREAD SAFETY: TimerScheduler tracks armed timers under a lock, so timers may
fire and be cancelled from any thread. LoopScheduler must be used from the
thread running its loop.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Single-shot timer facility used by ``subscribe_with_delay``."""

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        """Run ``callback(*args)`` once, ``delay`` seconds from now."""
        ...

    def cancel_all(self) -> None:
        """Cancel every timer that has not fired yet."""
        ...


class TimerScheduler:
    """Scheduler backed by daemon ``threading.Timer`` instances.

    A zero delay still runs the callback on the timer thread, never on the
    caller's stack.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: set[threading.Timer] = set()

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> threading.Timer:
        timer: threading.Timer

        def fire() -> None:
            with self._lock:
                self._timers.discard(timer)
            callback(*args)

        timer = threading.Timer(max(delay, 0.0), fire)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return timer

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    @property
    def pending(self) -> int:
        """Number of armed timers that have neither fired nor been cancelled."""
        with self._lock:
            return len(self._timers)


class LoopScheduler:
    """Scheduler backed by an asyncio event loop.

    When no loop is given, the loop running at ``call_later`` time is used,
    which makes delayed listeners fire on the same thread as the emitter,
    interleaved with other loop callbacks.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: set[asyncio.TimerHandle] = set()

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._handles.discard(handle)
            callback(*args)

        handle = loop.call_later(max(delay, 0.0), fire)
        self._handles.add(handle)
        return handle

    def cancel_all(self) -> None:
        handles = list(self._handles)
        self._handles.clear()
        for handle in handles:
            handle.cancel()

    @property
    def pending(self) -> int:
        return len(self._handles)


class BackgroundLoop:
    """Event loop running in a daemon thread, started on first use."""

    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def _start(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is not None and not self._loop.is_closed():
                return self._loop

            started = threading.Event()
            loop = asyncio.new_event_loop()

            def run_loop() -> None:
                asyncio.set_event_loop(loop)
                loop.call_soon(started.set)
                loop.run_forever()

            self._thread = threading.Thread(
                target=run_loop, name="good-emitter-loop", daemon=True
            )
            self._thread.start()
            started.wait()
            self._loop = loop
            logger.debug("Started background event loop for coroutine listeners")
            return loop

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        loop = self._start()
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def stop(self, timeout: float = 1.0) -> None:
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=timeout)
        if not loop.is_running():
            loop.close()
