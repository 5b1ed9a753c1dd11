from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from good_emitter import Emitter, EventRegistry

# ---------------------------------------------------------------------------
# Deterministic timers
# ---------------------------------------------------------------------------


class ManualTimer:
    def __init__(self, due: float, callback: Callable[..., Any], args: tuple[Any, ...]):
        self.due = due
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler with a virtual clock, advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback, args)
        heapq.heappush(self._queue, (timer.due, next(self._counter), timer))
        return timer

    def cancel_all(self) -> None:
        for _, _, timer in self._queue:
            timer.cancel()
        self._queue.clear()

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in due order."""
        target = self.now + seconds
        # Tolerance absorbs float drift from repeated millisecond steps
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, timer = heapq.heappop(self._queue)
            self.now = due
            if not timer.cancelled:
                timer.callback(*timer.args)
        self.now = target

    def advance_ms(self, milliseconds: float) -> None:
        self.advance(milliseconds / 1000.0)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def emitter(scheduler: ManualScheduler) -> Iterator[Emitter]:
    emitter = Emitter(scheduler=scheduler)
    yield emitter
    emitter.close()


@pytest.fixture()
def registry(scheduler: ManualScheduler) -> Iterator[EventRegistry]:
    registry = EventRegistry(scheduler=scheduler)
    yield registry
    registry.close()


@pytest.fixture()
def leak_logger() -> logging.Logger:
    return logging.getLogger("tests.leak")


@pytest.fixture()
def library_logger() -> Iterator[logging.Logger]:
    """The ``good_emitter`` logger, restored to its prior state afterwards."""
    logger = logging.getLogger("good_emitter")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
