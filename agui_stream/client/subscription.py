"""HTTP subscription to an AG-UI event stream."""

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from ..logging_config import get_logger
from ..models import TERMINAL_EVENT_TYPES, BaseEvent, event_type_of
from .decoder import EventDecoder, SSEFrameParser

logger = get_logger(__name__)


ErrorHandler = Callable[[Exception], None]


class StreamStatusError(Exception):
    """The server answered the subscription with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Stream request failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class NotEventStreamError(Exception):
    """The server answered with something other than an event stream."""

    def __init__(self, content_type: str, body: str):
        super().__init__(f"Expected an event stream, got {content_type}: {body}")
        self.content_type = content_type
        self.body = body


class EventSubscription:
    """Reads an SSE response and feeds every frame to an EventDecoder.

    Transport problems are reported to ``on_error`` rather than raised:
    connection errors, non-2xx responses, a body that is not an event stream
    and a stream cut off mid-way. There is no automatic reconnection; callers
    decide whether to subscribe again. ``terminated`` tells whether a
    RUN_FINISHED or RUN_ERROR frame arrived.
    """

    def __init__(
        self,
        url: str,
        decoder: EventDecoder,
        *,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json: Any = None,
        client: httpx.AsyncClient | None = None,
        on_error: ErrorHandler | None = None,
        timeout: float | None = None,
    ):
        self._url = url
        self._decoder = decoder
        self._method = method
        self._params = params
        self._json = json
        self._client = client
        self._owns_client = client is None
        self._on_error = on_error
        self._timeout = timeout
        self._task: asyncio.Task | None = None
        self._running = False
        self.frames_received = 0
        self.terminated = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Consume the stream until the server closes it."""
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        parser = SSEFrameParser()
        self._running = True
        try:
            async with client.stream(
                self._method,
                self._url,
                params=self._params,
                json=self._json,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    self._report(StreamStatusError(response.status_code, body))
                    return

                content_type = response.headers.get("content-type")
                if content_type and not content_type.startswith("text/event-stream"):
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    self._report(NotEventStreamError(content_type, body))
                    return

                async for chunk in response.aiter_text():
                    self._received(self._decoder.feed(parser, chunk))
                self._received(self._decoder.flush(parser))
        except httpx.HTTPError as e:
            self._report(e)
        finally:
            self._running = False
            if self._owns_client:
                await client.aclose()

    async def start(self) -> None:
        """Run the subscription as a background task."""
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Stop reading. The server sees the connection close."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def wait(self) -> None:
        """Wait for a started subscription to end."""
        if self._task:
            await self._task

    def _received(self, events: list[BaseEvent | None]) -> None:
        self.frames_received += len(events)
        for event in events:
            if event is not None and event_type_of(event) in TERMINAL_EVENT_TYPES:
                self.terminated = True

    def _report(self, error: Exception) -> None:
        logger.error("EventSource error: %s", error)
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Error handler failed")
