"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import AgentConfig, load_agent_config, resolve_db_path
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .models import IQueryProcessor
from .processing import QueryProcessor
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    @property
    def config(self) -> AgentConfig:
        """Agent configuration."""
        ...

    @property
    def query_processor(self) -> IQueryProcessor:
        """Collaborator answering chat questions."""
        ...

    def is_streaming_enabled(self) -> bool:
        """Whether chat answers are streamed as AG-UI events."""
        ...

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap.

    Components not passed in are built in start(). Without an Anthropic API
    key the processor runs without an LLM and answers with its fallback text.
    """

    def __init__(
        self,
        db_path: str | None = None,
        config: AgentConfig | None = None,
        llm_provider: ILLMProvider | None = None,
        query_processor: IQueryProcessor | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._config = config or load_agent_config()

        self._storage: IStorage | None = None
        self._llm: ILLMProvider | None = llm_provider
        self._query_processor: IQueryProcessor | None = query_processor
        self._started = False

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        if self._config.memory_enabled:
            self._storage = Storage(self._db_path)
            await self._storage.init()
            logger.info("Storage initialized")

        # 2. LLMProvider (no internal dependencies)
        if self._llm is None:
            try:
                self._llm = LLMProvider(model=self._config.model_for_task("reasoning"))
                logger.info("LLM provider initialized")
            except ValueError as e:
                logger.warning("LLM provider unavailable, using fallback answers: %s", e)

        # 3. QueryProcessor (depends on LLM + Storage)
        if self._query_processor is None:
            self._query_processor = QueryProcessor(
                llm_provider=self._llm,
                storage=self._storage,
                config=self._config,
            )
        logger.info(
            "Query processor ready (streaming=%s, memory=%s)",
            self._config.streaming_enabled,
            self._config.memory_enabled,
        )

        self._started = True
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._started = False
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def config(self) -> AgentConfig:
        return self._config

    def is_streaming_enabled(self) -> bool:
        """Whether chat answers are streamed as AG-UI events."""
        return self._config.streaming_enabled

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Storage not available (not started or memory disabled)")
        return self._storage

    @property
    def query_processor(self) -> IQueryProcessor:
        """Get query processor instance."""
        if not self._started or not self._query_processor:
            raise RuntimeError("Application not started")
        return self._query_processor
