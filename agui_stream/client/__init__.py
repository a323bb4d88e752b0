"""Client module."""

from .decoder import EventDecoder, EventHandler, SSEFrameParser, UnknownHandler
from .subscription import EventSubscription, NotEventStreamError, StreamStatusError

__all__ = [
    "EventDecoder",
    "EventHandler",
    "SSEFrameParser",
    "UnknownHandler",
    "EventSubscription",
    "NotEventStreamError",
    "StreamStatusError",
]
