"""RunSession: drives one streamed query run and guarantees its termination."""

import asyncio
import uuid
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any

from ..logging_config import get_logger
from ..models import (
    BaseEvent,
    IQueryProcessor,
    QueryResult,
    RunErrorEvent,
    RunFinishedEvent,
    RunStartedEvent,
    StepFinishedEvent,
    StepStartedEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    TextMessageStartEvent,
    ToolCallArgsEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
)
from .emitter import FrameChannel, IEventEmitter, SSEEventEmitter, TransportClosedError

logger = get_logger(__name__)

# Runs whose consumer went away are kept referenced until they finish.
_running_sessions: set[asyncio.Task] = set()


def new_id() -> str:
    """Generate a run, message or tool call identifier."""
    return str(uuid.uuid4())


class SessionState(str, Enum):
    """Lifecycle of a RunSession."""

    INIT = "init"
    STARTED = "started"
    STREAMING_TEXT = "streaming_text"
    TERMINATED = "terminated"


class ProtocolViolationError(RuntimeError):
    """A hook call would produce an invalid event sequence."""

    code = "PROTOCOL_VIOLATION"


def error_code(error: BaseException) -> str | None:
    """RUN_ERROR code for an exception, if it has one."""
    if isinstance(error, TransportClosedError):
        return "TRANSPORT_ERROR"
    code = getattr(error, "code", None)
    return code if isinstance(code, str) else None


class RunSession:
    """One run of the query processor reported as an AG-UI event stream.

    The session is the processor's ``QueryHooks``: every hook call is
    translated into exactly one event and written before the call returns,
    so wire order equals call order.

    Sequence: RUN_STARTED, TEXT_MESSAGE_START, <hook events>, then either
    TEXT_MESSAGE_END + RUN_FINISHED, or a single RUN_ERROR. The text block is
    left open when the run fails.
    """

    def __init__(
        self,
        processor: IQueryProcessor,
        question: str,
        request_id: str | None = None,
        id_factory: Callable[[], str] = new_id,
    ):
        self._processor = processor
        self._question = question
        self._id_factory = id_factory

        self.run_id = request_id or id_factory()
        self.thread_id = self.run_id
        self.message_id = id_factory()

        self.state = SessionState.INIT
        self.result: QueryResult | None = None
        self._emitter: IEventEmitter | None = None
        self._open_tool_calls: set[str] = set()
        self._text_open = False
        self._failure: Exception | None = None

    @property
    def open_tool_calls(self) -> frozenset[str]:
        return frozenset(self._open_tool_calls)

    @property
    def text_open(self) -> bool:
        return self._text_open

    async def run(self, emitter: IEventEmitter) -> None:
        """Run the query, emitting the full event sequence, then close the stream.

        Never raises. Processor, transport and protocol failures end the run
        with RUN_ERROR, and the stream is closed on every path. Running a
        session a second time only writes RUN_ERROR to the new stream.
        """
        if self.state is not SessionState.INIT:
            # A second run gets a stream of its own holding only the error.
            try:
                self._send_error(
                    emitter,
                    ProtocolViolationError(f"Run {self.run_id} has already been started"),
                )
            finally:
                emitter.close()
            return

        self._emitter = emitter
        try:
            emitter.emit(RunStartedEvent(thread_id=self.thread_id, run_id=self.run_id))
            self.state = SessionState.STARTED

            emitter.emit(TextMessageStartEvent(message_id=self.message_id))
            self._text_open = True
            self.state = SessionState.STREAMING_TEXT

            result = await self._processor.process_query(
                self._question, self.run_id, hooks=self
            )
            # A hook failure the processor caught is still fatal.
            if self._failure is not None:
                raise self._failure

            if self._open_tool_calls:
                logger.warning(
                    "Run %s finished with %s tool call(s) never ended",
                    self.run_id,
                    len(self._open_tool_calls),
                    extra={"run_id": self.run_id},
                )

            emitter.emit(TextMessageEndEvent(message_id=self.message_id))
            self._text_open = False
            emitter.emit(RunFinishedEvent(thread_id=self.thread_id, run_id=self.run_id))
            self.state = SessionState.TERMINATED
            self.result = result
        except Exception as e:
            self.state = SessionState.TERMINATED
            self._send_error(emitter, self._failure or e)
        finally:
            self.state = SessionState.TERMINATED
            emitter.close()

    def _send_error(self, emitter: IEventEmitter, error: Exception) -> None:
        logger.error(
            "Run %s failed: %s",
            self.run_id,
            error,
            exc_info=error,
            extra={"run_id": self.run_id},
        )
        try:
            emitter.emit(
                RunErrorEvent(message=str(error) or "Unknown error", code=error_code(error))
            )
        except Exception:
            logger.warning(
                "Could not deliver RUN_ERROR for run %s",
                self.run_id,
                exc_info=True,
                extra={"run_id": self.run_id},
            )

    @contextmanager
    def _hook(self, name: str) -> Iterator[None]:
        """Guard a hook: the session must be streaming; failures are recorded."""
        try:
            if self.state is not SessionState.STREAMING_TEXT:
                raise ProtocolViolationError(
                    f"{name} called while run {self.run_id} is {self.state.value}"
                )
            yield
        except Exception as e:
            if self._failure is None:
                self._failure = e
            raise

    def _emit(self, event: BaseEvent) -> None:
        self._emitter.emit(event)

    # QueryHooks

    def on_step_start(self, step_name: str) -> None:
        with self._hook("on_step_start"):
            self._emit(StepStartedEvent(step_name=step_name))

    def on_step_finish(self, step_name: str) -> None:
        with self._hook("on_step_finish"):
            self._emit(StepFinishedEvent(step_name=step_name))

    def on_tool_start(self, tool: str, input: Any = None) -> str:
        with self._hook("on_tool_start"):
            tool_call_id = self._id_factory()
            if tool_call_id in self._open_tool_calls:
                raise ProtocolViolationError(
                    f"Tool call id {tool_call_id!r} is already open"
                )
            self._emit(
                ToolCallStartEvent(tool_call_id=tool_call_id, tool=tool, input=input)
            )
            self._open_tool_calls.add(tool_call_id)
        return tool_call_id

    def on_tool_args(self, tool_call_id: str, args: Any) -> None:
        with self._hook("on_tool_args"):
            self._require_open_tool_call(tool_call_id, "TOOL_CALL_ARGS")
            self._emit(ToolCallArgsEvent(tool_call_id=tool_call_id, args=args))

    def on_tool_end(self, tool_call_id: str, output: Any = None) -> None:
        with self._hook("on_tool_end"):
            self._require_open_tool_call(tool_call_id, "TOOL_CALL_END")
            self._emit(ToolCallEndEvent(tool_call_id=tool_call_id, output=output))
            self._open_tool_calls.discard(tool_call_id)

    def on_text_delta(self, delta: str) -> None:
        with self._hook("on_text_delta"):
            self._emit(TextMessageContentEvent(message_id=self.message_id, delta=delta))

    def _require_open_tool_call(self, tool_call_id: str, event_name: str) -> None:
        if tool_call_id not in self._open_tool_calls:
            raise ProtocolViolationError(
                f"{event_name} for tool call {tool_call_id!r} that is not open"
            )


async def stream_session(session: RunSession) -> AsyncIterator[str]:
    """Run a session in the background and yield its SSE frames.

    Closing this iterator closes the stream. That is the only cancellation
    signal: an in-flight processor call is not interrupted, its next emission
    fails and the session ends.
    """
    channel = FrameChannel()
    emitter = SSEEventEmitter(channel, run_id=session.run_id)

    task = asyncio.create_task(session.run(emitter))
    _running_sessions.add(task)
    task.add_done_callback(_running_sessions.discard)

    try:
        async for frame in channel.frames():
            yield frame
    finally:
        channel.close()
