"""Re-export the events package's public API under one import path."""

from __future__ import annotations

# Listener records and storage
from .listeners import Listener, ListenerStore

# Core protocols and types
from .protocols import EventName, EventPriority, InvalidArgumentError, TypedEvent

# Registry and subscription handles
from .registry import (
    DEFAULT_MAX_LISTENERS,
    EventRegistry,
    Subscription,
    SubscriptionGroup,
)

# Delayed delivery
from .scheduling import LoopScheduler, Scheduler, TimerHandle, TimerScheduler

# Tracing
from .tracing import EventTracer

__all__ = [
    # Core classes
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
    # Tracing
    "EventTracer",
    # Errors
    "InvalidArgumentError",
    # Type aliases
    "EventName",
    "EventPriority",
    "TypedEvent",
    "DEFAULT_MAX_LISTENERS",
]
