"""Terminal client: asks the chat endpoint a question and prints the run."""

import argparse
import asyncio
import os
import sys
from typing import TextIO

import httpx

from ..models import (
    EventType,
    RunErrorEvent,
    StepFinishedEvent,
    StepStartedEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
)
from .decoder import EventDecoder
from .subscription import EventSubscription


class RunPrinter:
    """Renders a run's events as terminal output."""

    def __init__(self, out: TextIO = sys.stdout, verbose: bool = False):
        self._out = out
        self._verbose = verbose
        self._tools: dict[str, str] = {}
        self.answer = ""
        self.error: str | None = None
        self.finished = False

    def build_decoder(self) -> EventDecoder:
        return EventDecoder(
            handlers={
                EventType.STEP_STARTED: self._step_started,
                EventType.STEP_FINISHED: self._step_finished,
                EventType.TOOL_CALL_START: self._tool_started,
                EventType.TOOL_CALL_END: self._tool_ended,
                EventType.TEXT_MESSAGE_CONTENT: self._text,
                EventType.TEXT_MESSAGE_END: self._text_end,
                EventType.RUN_FINISHED: self._finished,
                EventType.RUN_ERROR: self._failed,
            },
            on_unknown=lambda data: None,
        )

    def _status(self, line: str) -> None:
        if self._verbose:
            self._out.write(f"[{line}]\n")

    def _step_started(self, event: StepStartedEvent) -> None:
        self._status(f"step {event.step_name} ...")

    def _step_finished(self, event: StepFinishedEvent) -> None:
        self._status(f"step {event.step_name} done")

    def _tool_started(self, event: ToolCallStartEvent) -> None:
        self._tools[event.tool_call_id] = event.tool
        self._status(f"tool {event.tool} started")

    def _tool_ended(self, event: ToolCallEndEvent) -> None:
        tool = self._tools.pop(event.tool_call_id, event.tool_call_id)
        self._status(f"tool {tool} -> {event.output}")

    def _text(self, event: TextMessageContentEvent) -> None:
        self.answer += event.delta
        self._out.write(event.delta)
        self._out.flush()

    def _text_end(self, event: TextMessageEndEvent) -> None:
        self._out.write("\n")

    def _finished(self, event) -> None:
        self.finished = True

    def _failed(self, event: RunErrorEvent) -> None:
        self.report(event.message)

    def report(self, message: str) -> None:
        """Record a failure and print it."""
        self.error = message
        self._out.write(f"\nerror: {message}\n")


async def ask(
    question: str,
    url: str,
    verbose: bool = False,
    client: httpx.AsyncClient | None = None,
    out: TextIO = sys.stdout,
) -> RunPrinter:
    """Ask one question and print the streamed answer."""
    printer = RunPrinter(out=out, verbose=verbose)
    errors: list[Exception] = []
    subscription = EventSubscription(
        url,
        printer.build_decoder(),
        method="POST",
        json={"question": question},
        client=client,
        on_error=errors.append,
    )
    await subscription.run()
    if printer.error is None:
        if errors:
            printer.report(str(errors[0]))
        elif not subscription.terminated:
            printer.report("Stream ended before the run finished")
    return printer


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Ask the AG-UI chat endpoint a question")
    parser.add_argument("question")
    parser.add_argument(
        "--url",
        default=os.getenv(
            "CHAT_URL",
            f"http://{os.getenv('API_HOST', 'localhost')}:{os.getenv('API_PORT', '8000')}/api/chat",
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show steps and tools")
    args = parser.parse_args()

    printer = asyncio.run(ask(args.question, args.url, verbose=args.verbose))
    if printer.error:
        sys.exit(1)


if __name__ == "__main__":
    main()
