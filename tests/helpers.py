"""Shared test helpers."""

from collections.abc import Awaitable, Callable

from agui_stream.models import QueryHooks, QueryResult, parse_event
from agui_stream.stream import FrameChannel, SSEEventEmitter


Script = Callable[[QueryHooks | None], Awaitable[QueryResult]]


class ScriptedProcessor:
    """Query processor whose behaviour is a test-supplied coroutine."""

    def __init__(self, script: Script | None = None):
        self._script = script
        self.calls: list[tuple[str, str, QueryHooks | None]] = []

    async def process_query(
        self, question: str, request_id: str, hooks: QueryHooks | None = None
    ) -> QueryResult:
        self.calls.append((question, request_id, hooks))
        if self._script is None:
            return QueryResult(summary="4")
        return await self._script(hooks)


async def drain(channel: FrameChannel) -> list[str]:
    """Read every frame from a closed channel."""
    return [frame async for frame in channel.frames()]


def decode_frames(frames: list[str]) -> list:
    """Turn ``data: ...`` frames back into events."""
    events = []
    for frame in frames:
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        events.append(parse_event(frame[len("data: ") : -2]))
    return events


def decode_body(body: str) -> list:
    """Split a full SSE body into events."""
    return decode_frames([chunk + "\n\n" for chunk in body.split("\n\n") if chunk])


async def run_session(session) -> tuple[list, FrameChannel]:
    """Run a session to completion and return its events and channel."""
    channel = FrameChannel()
    await session.run(SSEEventEmitter(channel, run_id=session.run_id))
    return decode_frames(await drain(channel)), channel


def types_of(events: list) -> list[str]:
    return [e.type for e in events]


class RecordingHooks:
    """QueryHooks implementation that records calls in order."""

    def __init__(self):
        self.calls: list[tuple] = []
        self._next_id = 0

    def on_step_start(self, step_name):
        self.calls.append(("step_start", step_name))

    def on_step_finish(self, step_name):
        self.calls.append(("step_finish", step_name))

    def on_tool_start(self, tool, input=None):
        self._next_id += 1
        tool_call_id = f"tool-{self._next_id}"
        self.calls.append(("tool_start", tool, tool_call_id))
        return tool_call_id

    def on_tool_args(self, tool_call_id, args):
        self.calls.append(("tool_args", tool_call_id, args))

    def on_tool_end(self, tool_call_id, output=None):
        self.calls.append(("tool_end", tool_call_id, output))

    def on_text_delta(self, delta):
        self.calls.append(("text", delta))

    @property
    def text(self) -> str:
        return "".join(c[1] for c in self.calls if c[0] == "text")

    def names(self) -> list[str]:
        return [c[0] if c[0] == "text" else f"{c[0]}:{c[1]}" for c in self.calls]


# Frames of a successful run answering "4".
SSE_BODY = (
    'data: {"type":"RUN_STARTED","thread_id":"r1","run_id":"r1","timestamp":1}\n\n'
    'data: {"type":"TEXT_MESSAGE_START","message_id":"m1","role":"assistant","timestamp":2}\n\n'
    'data: {"type":"TEXT_MESSAGE_CONTENT","message_id":"m1","delta":"4","timestamp":3}\n\n'
    'data: {"type":"TEXT_MESSAGE_END","message_id":"m1","timestamp":4}\n\n'
    'data: {"type":"RUN_FINISHED","thread_id":"r1","run_id":"r1","timestamp":5}\n\n'
)
