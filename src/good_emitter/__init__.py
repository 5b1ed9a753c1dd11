"""good-emitter: typed in-process publish/subscribe with priorities and channels."""

from __future__ import annotations

__version__ = "0.1.0"

from .channels import Channel, ChannelRegistry
from .config import EmitterConfig
from .emitter import Emitter
from .events import (
    DEFAULT_MAX_LISTENERS,
    EventName,
    EventPriority,
    EventRegistry,
    EventTracer,
    InvalidArgumentError,
    Listener,
    ListenerStore,
    LoopScheduler,
    Scheduler,
    Subscription,
    SubscriptionGroup,
    TimerHandle,
    TimerScheduler,
    TypedEvent,
)
from .utilities import configure_library_logging

__all__ = [
    "__version__",
    # Facade
    "Emitter",
    "EmitterConfig",
    # Channels
    "Channel",
    "ChannelRegistry",
    # Registry
    "EventRegistry",
    "Listener",
    "ListenerStore",
    "Subscription",
    "SubscriptionGroup",
    # Scheduling
    "Scheduler",
    "TimerHandle",
    "TimerScheduler",
    "LoopScheduler",
    # Tracing and logging
    "EventTracer",
    "configure_library_logging",
    # Errors and types
    "InvalidArgumentError",
    "EventName",
    "EventPriority",
    "TypedEvent",
    "DEFAULT_MAX_LISTENERS",
]
