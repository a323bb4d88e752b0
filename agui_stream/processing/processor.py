"""QueryProcessor: answers a question from memory, data sources and the LLM."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from ..config import AgentConfig
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import AgentMemory, MemoryEntry, QueryHooks, QueryResult
from ..storage import IStorage

logger = get_logger(__name__)

FALLBACK_ANSWER = (
    "I don't have enough information to answer that question. Please try asking "
    "something about Velocity Fibre's projects, staff, or operations."
)

DATA_SYSTEM_PROMPT = (
    "You are a business analyst that summarizes data in clear, concise language."
)
GENERAL_SYSTEM_PROMPT = (
    "You are a knowledgeable assistant that provides helpful information "
    "based on available context."
)


@dataclass
class SourceResult:
    """Records fetched from one data source, plus their prompt rendering."""

    records: list[dict] = field(default_factory=list)
    context: str = ""


class IDataSource(Protocol):
    """A data source consulted while answering ("sql", "vector", ...)."""

    @property
    def name(self) -> str:
        """Source name as listed in the data source priority."""
        ...

    @property
    def tool(self) -> str:
        """Tool name reported to the client."""
        ...

    async def fetch(self, question: str) -> SourceResult:
        """Fetch records relevant to the question."""
        ...


class NullHooks:
    """Hooks for callers that do not want progress reports."""

    def on_step_start(self, step_name: str) -> None:
        pass

    def on_step_finish(self, step_name: str) -> None:
        pass

    def on_tool_start(self, tool: str, input: Any = None) -> str:
        return ""

    def on_tool_args(self, tool_call_id: str, args: Any) -> None:
        pass

    def on_tool_end(self, tool_call_id: str, output: Any = None) -> None:
        pass

    def on_text_delta(self, delta: str) -> None:
        pass


NO_HOOKS = NullHooks()


def build_prompt(
    question: str,
    contexts: list[tuple[str, str]],
    memory: AgentMemory | None,
) -> str:
    """Render the user prompt for the response generation step."""
    parts = [
        "You are an assistant for Velocity Fibre management.",
        f'User Question: "{question}"',
    ]
    for name, context in contexts:
        parts.append(f"Context from {name}:\n{context}")
    if memory and memory.recent_queries:
        recent = [q.question for q in memory.recent_queries]
        parts.append(f"User Memory (recent questions):\n{json.dumps(recent, indent=2)}")

    if contexts:
        parts.append(
            "Please provide a clear, concise answer to the user's question based on "
            "the data provided. Include key insights, patterns, or notable "
            "information. Format your response in plain text."
        )
    else:
        parts.append(
            "If you do not have enough information to answer the question directly, "
            "acknowledge this and provide the most helpful response possible. "
            "Format your response in plain text."
        )
    return "\n\n".join(parts)


class QueryProcessor:
    """Runs the answer pipeline, reporting each step through QueryHooks.

    Steps: memory retrieval, one search per registered data source in
    priority order, response generation, memory update. Memory and source
    failures are reported on the tool call and skipped; LLM failures
    propagate.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider | None,
        storage: IStorage | None,
        config: AgentConfig,
        typing_delay: float = 0.01,
    ):
        self._llm = llm_provider
        self._storage = storage
        self._config = config
        self._typing_delay = typing_delay
        self._sources: dict[str, IDataSource] = {}

    def register_source(self, source: IDataSource) -> None:
        """Register a data source under its name."""
        if source.name not in self._config.data_source_priority:
            logger.warning(
                "Data source %s is not in the priority list and will not be used",
                source.name,
            )
        self._sources[source.name] = source

    @property
    def sources(self) -> dict[str, IDataSource]:
        return dict(self._sources)

    def _memory_active(self) -> bool:
        return (
            self._config.memory_enabled
            and self._storage is not None
            and "memory" in self._config.data_source_priority
        )

    async def process_query(
        self,
        question: str,
        request_id: str,
        hooks: QueryHooks | None = None,
    ) -> QueryResult:
        """Answer the question. Text is streamed through hooks when given."""
        streaming = hooks is not None
        hooks = hooks or NO_HOOKS
        used_sources: list[str] = []
        records: dict[str, list[dict]] = {}
        contexts: list[tuple[str, str]] = []

        memory = None
        if self._memory_active():
            memory = await self._retrieve_memory(question, request_id, hooks)
            if memory is not None:
                used_sources.append("memory")

        for name in self._config.data_source_priority:
            source = self._sources.get(name)
            if source is None:
                continue
            result = await self._search(source, question, hooks)
            if result is not None and result.records:
                used_sources.append(name)
                records[name] = result.records
                contexts.append((name, result.context))

        summary = await self._generate_response(
            question, contexts, memory, hooks, streaming
        )

        if self._memory_active():
            await self._update_memory(question, request_id, used_sources, hooks)

        logger.info(
            "Query %s answered using %s",
            request_id,
            ",".join(used_sources) or "no sources",
            extra={"run_id": request_id},
        )
        return QueryResult(
            summary=summary,
            sources=records,
            used_sources=used_sources,
            used_rag="vector" in used_sources,
        )

    async def _retrieve_memory(
        self, question: str, request_id: str, hooks: QueryHooks
    ) -> AgentMemory | None:
        hooks.on_step_start("memory_retrieval")
        tool_call_id = hooks.on_tool_start("memoryRetrieval", {"question": question})
        try:
            memory = await self._storage.get_memory(request_id)
        except Exception as e:
            logger.warning("Memory retrieval failed: %s", e, extra={"run_id": request_id})
            hooks.on_tool_end(tool_call_id, {"success": False, "error": str(e)})
            memory = None
        else:
            hooks.on_tool_end(
                tool_call_id,
                {
                    "success": True,
                    "found": memory is not None,
                    "recent_queries": len(memory.recent_queries) if memory else 0,
                },
            )
        hooks.on_step_finish("memory_retrieval")
        return memory

    async def _search(
        self, source: IDataSource, question: str, hooks: QueryHooks
    ) -> SourceResult | None:
        step_name = f"{source.name}_search"
        hooks.on_step_start(step_name)
        tool_call_id = hooks.on_tool_start(source.tool, {"question": question})
        try:
            result = await source.fetch(question)
        except Exception as e:
            logger.warning("Data source %s failed: %s", source.name, e)
            hooks.on_tool_end(tool_call_id, {"success": False, "error": str(e)})
            result = None
        else:
            if result.records:
                output = {"success": True, "resultCount": len(result.records)}
            else:
                output = {"success": False, "error": "No relevant records found"}
            hooks.on_tool_end(tool_call_id, output)
        hooks.on_step_finish(step_name)
        return result

    async def _generate_response(
        self,
        question: str,
        contexts: list[tuple[str, str]],
        memory: AgentMemory | None,
        hooks: QueryHooks,
        streaming: bool,
    ) -> str:
        hooks.on_step_start("response_generation")

        if self._llm is None:
            summary = await self._type_out(FALLBACK_ANSWER, hooks, streaming)
        else:
            messages = [{"role": "user", "content": build_prompt(question, contexts, memory)}]
            request = {
                "messages": messages,
                "system": DATA_SYSTEM_PROMPT if contexts else GENERAL_SYSTEM_PROMPT,
                "max_tokens": self._config.max_tokens,
                "model": self._config.model_for_task("reasoning"),
            }
            if streaming:
                chunks = []
                async for chunk in self._llm.stream(**request):
                    hooks.on_text_delta(chunk)
                    chunks.append(chunk)
                summary = "".join(chunks)
            else:
                summary = await self._llm.complete(**request)
            summary = summary or "No summary could be generated."

        hooks.on_step_finish("response_generation")
        return summary

    async def _type_out(self, text: str, hooks: QueryHooks, streaming: bool) -> str:
        """Stream a canned answer word by word."""
        if streaming:
            words = text.split(" ")
            for i, word in enumerate(words):
                hooks.on_text_delta(word if i == len(words) - 1 else word + " ")
                if self._typing_delay:
                    await asyncio.sleep(self._typing_delay)
        return text

    async def _update_memory(
        self,
        question: str,
        request_id: str,
        used_sources: list[str],
        hooks: QueryHooks,
    ) -> None:
        hooks.on_step_start("memory_update")
        tool_call_id = hooks.on_tool_start("memoryUpdate", {"question": question})
        entry = MemoryEntry(
            question=question,
            used_sources=list(used_sources),
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._storage.remember_query(request_id, entry)
        except Exception as e:
            logger.warning("Memory update failed: %s", e, extra={"run_id": request_id})
            hooks.on_tool_end(tool_call_id, {"success": False, "error": str(e)})
        else:
            hooks.on_tool_end(tool_call_id, {"success": True})
        hooks.on_step_finish("memory_update")
