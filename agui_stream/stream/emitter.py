"""SSE frame encoding and the event emitter that writes frames to a stream."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from ..logging_config import get_logger
from ..models import BaseEvent, EventType, event_to_dict, stamp

logger = get_logger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Content-Type": SSE_MEDIA_TYPE,
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

_CLOSED = object()


class TransportClosedError(RuntimeError):
    """A frame was written to a stream that is already closed."""


def encode_frame(event: BaseEvent) -> str:
    """Encode one event as one SSE frame: ``data: <json>\\n\\n``."""
    body = json.dumps(event_to_dict(event), ensure_ascii=False, separators=(",", ":"))
    return f"data: {body}\n\n"


class IFrameTransport(Protocol):
    """The open stream an emitter writes frames into."""

    @property
    def closed(self) -> bool:
        """Whether the stream has been closed."""
        ...

    def write(self, frame: str) -> None:
        """Write one frame. Must not suspend."""
        ...

    def close(self) -> None:
        """Close the stream. Idempotent."""
        ...


class FrameChannel:
    """In-process stream of frames between one writer and one reader.

    Writes never suspend. The reader drains frames in write order and stops
    once the channel is closed and empty.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, frame: str) -> None:
        if self._closed:
            raise TransportClosedError("Stream is closed")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def frames(self) -> AsyncIterator[str]:
        """Yield frames until the channel is closed."""
        while True:
            frame = await self._queue.get()
            if frame is _CLOSED:
                return
            yield frame


class IEventEmitter(Protocol):
    """Writes AG-UI events to a client."""

    def emit(self, event: BaseEvent) -> BaseEvent:
        """Stamp, encode and write one event. Returns the event as written."""
        ...

    def close(self) -> None:
        """Close the underlying stream."""
        ...


class SSEEventEmitter:
    """Writes each event as one SSE frame, in call order, without batching.

    Timestamps are stamped when absent and never go backwards within the
    stream. Transport errors are not handled here; they propagate to the
    caller of ``emit``.
    """

    def __init__(self, transport: IFrameTransport, run_id: str | None = None):
        self._transport = transport
        self._run_id = run_id
        self._last_timestamp = 0

    @property
    def closed(self) -> bool:
        return self._transport.closed

    def emit(self, event: BaseEvent) -> BaseEvent:
        if not isinstance(event, BaseEvent):
            raise TypeError(f"Not an AG-UI event: {type(event).__name__}")

        event = stamp(event)
        if event.timestamp < self._last_timestamp:
            event = event.model_copy(update={"timestamp": self._last_timestamp})
        self._last_timestamp = event.timestamp

        self._transport.write(encode_frame(event))

        # Token-level frames only at DEBUG to keep logs readable.
        level = (
            logging.DEBUG
            if event.type == EventType.TEXT_MESSAGE_CONTENT
            else logging.INFO
        )
        logger.log(
            level,
            "SSE_EMIT type=%s run_id=%s",
            event.type,
            self._run_id,
            extra={"run_id": self._run_id, "event_type": event.type},
        )
        return event

    def close(self) -> None:
        self._transport.close()
