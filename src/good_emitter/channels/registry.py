"""Channel lookup: one Channel per name, created on first access."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator

from ..events.registry import EventRegistry
from .channel import Channel


class ChannelRegistry:
    """Maps channel names to ``Channel`` instances.

    ``channel(name)`` is idempotent: the same name always returns the same
    object, so every caller shares that channel's listeners. Channels live as
    long as the registry.

    Args:
        registry_factory: Builds the private EventRegistry of each new channel
    """

    def __init__(self, registry_factory: Callable[[], EventRegistry] | None = None):
        self._registry_factory = registry_factory or EventRegistry
        self._channels: dict[str, Channel] = {}
        self._lock = threading.Lock()

    def channel(self, name: str) -> Channel:
        with self._lock:
            channel = self._channels.get(name)
            if channel is None:
                channel = Channel(name, self._registry_factory())
                self._channels[name] = channel
            return channel

    def names(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def close(self) -> None:
        with self._lock:
            channels = list(self._channels.values())
        for channel in channels:
            channel.registry.close()

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[Channel]:
        with self._lock:
            return iter(list(self._channels.values()))
