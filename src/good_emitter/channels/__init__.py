from .channel import Channel
from .registry import ChannelRegistry

__all__ = ["Channel", "ChannelRegistry"]
