"""Query processing contract between the chat endpoint and its collaborator."""

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol


class QueryHooks(Protocol):
    """Progress reporting interface handed to a query processor.

    Calls must be made in the order the progress happens; each call is
    forwarded to the client immediately.
    """

    def on_step_start(self, step_name: str) -> None:
        """A named processing step began."""
        ...

    def on_step_finish(self, step_name: str) -> None:
        """A named processing step ended."""
        ...

    def on_tool_start(self, tool: str, input: Any = None) -> str:
        """A tool invocation began. Returns the tool_call_id to end it with."""
        ...

    def on_tool_args(self, tool_call_id: str, args: Any) -> None:
        """Additional arguments for an open tool call."""
        ...

    def on_tool_end(self, tool_call_id: str, output: Any = None) -> None:
        """An open tool call finished."""
        ...

    def on_text_delta(self, delta: str) -> None:
        """A chunk of the assistant's answer."""
        ...


@dataclass
class QueryResult:
    """Aggregate outcome of one processed query."""

    summary: str
    sources: dict[str, Any] = field(default_factory=dict)  # source name -> records
    used_sources: list[str] = field(default_factory=list)
    used_rag: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class IQueryProcessor(Protocol):
    """Answers a question, optionally reporting progress through hooks."""

    async def process_query(
        self,
        question: str,
        request_id: str,
        hooks: QueryHooks | None = None,
    ) -> QueryResult:
        """Process the question and return the aggregate result."""
        ...
