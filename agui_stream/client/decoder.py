"""Client-side SSE frame parsing and AG-UI event dispatch."""

from collections.abc import Callable, Mapping
from typing import Any

from ..logging_config import get_logger
from ..models import (
    BaseEvent,
    EventDecodeError,
    EventType,
    UnknownEventTypeError,
    event_type_of,
    parse_event,
)

logger = get_logger(__name__)


EventHandler = Callable[[BaseEvent], None]
UnknownHandler = Callable[[Any], None]


class SSEFrameParser:
    """Incremental SSE parser yielding the data payload of each frame."""

    def __init__(self) -> None:
        self._buffer = ""
        self._data_lines: list[str] = []

    def feed(self, chunk: str) -> list[str]:
        """Consume a chunk of the stream and return completed payloads."""
        self._buffer += chunk
        payloads: list[str] = []

        while True:
            line, sep, rest = self._next_line(self._buffer)
            if not sep:
                break
            self._buffer = rest
            payload = self._process_line(line)
            if payload is not None:
                payloads.append(payload)

        return payloads

    def flush(self) -> list[str]:
        """Return the payload of a trailing frame cut off by end of stream."""
        line = self._buffer.rstrip("\r")
        self._buffer = ""
        if line:
            self._process_line(line)
        payload = self._dispatch()
        return [payload] if payload is not None else []

    @staticmethod
    def _next_line(buffer: str) -> tuple[str, str, str]:
        lf = buffer.find("\n")
        cr = buffer.find("\r")
        if cr == -1 or (lf != -1 and lf < cr):
            if lf == -1:
                return buffer, "", ""
            return buffer[:lf], "\n", buffer[lf + 1 :]

        # Wait for the next chunk to tell "\r" from "\r\n".
        if cr + 1 == len(buffer):
            return buffer, "", ""
        skip = 2 if buffer[cr + 1] == "\n" else 1
        return buffer[:cr], buffer[cr : cr + skip], buffer[cr + skip :]

    def _process_line(self, line: str) -> str | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            self._data_lines.append(value)
        # event:, id: and retry: carry nothing AG-UI needs.
        return None

    def _dispatch(self) -> str | None:
        if not self._data_lines:
            return None
        payload = "\n".join(self._data_lines)
        self._data_lines = []
        return payload


class EventDecoder:
    """Decodes frame payloads and routes each event to its handler.

    Handlers live in a lookup table keyed by event type. A payload that
    cannot be decoded, or whose type has no handler, goes to the unknown
    handler. Neither a bad frame nor a failing handler stops decoding.
    """

    def __init__(
        self,
        handlers: Mapping[EventType | str, EventHandler] | None = None,
        on_unknown: UnknownHandler | None = None,
    ):
        self._handlers: dict[EventType, EventHandler] = {}
        for event_type, handler in (handlers or {}).items():
            self.register(event_type, handler)
        self._on_unknown = on_unknown

    def register(self, event_type: EventType | str, handler: EventHandler) -> EventHandler:
        """Register the handler for an event type, replacing any previous one."""
        self._handlers[EventType(event_type)] = handler
        return handler

    def on(self, event_type: EventType | str) -> Callable[[EventHandler], EventHandler]:
        """Decorator form of register()."""

        def decorator(handler: EventHandler) -> EventHandler:
            return self.register(event_type, handler)

        return decorator

    def dispatch(self, payload: str | bytes | dict[str, Any]) -> BaseEvent | None:
        """Decode one frame payload and call exactly one handler.

        Returns the decoded event, or None when the payload was not a valid
        AG-UI event.
        """
        try:
            event = parse_event(payload)
        except UnknownEventTypeError as e:
            logger.warning("Unknown event type %r", e.event_type)
            self._call_unknown(e.payload)
            return None
        except EventDecodeError as e:
            logger.error("Error parsing event data: %s", e)
            self._call_unknown(payload)
            return None

        handler = self._handlers.get(event_type_of(event))
        if handler is None:
            self._call_unknown(event)
            return event

        try:
            handler(event)
        except Exception:
            logger.exception("Handler for %s failed", event.type)
        return event

    def feed(self, parser: SSEFrameParser, chunk: str) -> list[BaseEvent | None]:
        """Parse a stream chunk and dispatch every completed frame."""
        return [self.dispatch(payload) for payload in parser.feed(chunk)]

    def flush(self, parser: SSEFrameParser) -> list[BaseEvent | None]:
        """Dispatch a trailing frame left in the parser at end of stream."""
        return [self.dispatch(payload) for payload in parser.flush()]

    def _call_unknown(self, data: Any) -> None:
        if self._on_unknown is None:
            return
        try:
            self._on_unknown(data)
        except Exception:
            logger.exception("Unknown-event handler failed")
