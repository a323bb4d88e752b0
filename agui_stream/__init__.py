"""AG-UI streaming chat service."""

from .app import Application, IApplication
from .client import EventDecoder, EventSubscription, SSEFrameParser
from .config import AgentConfig, load_agent_config
from .llm import ILLMProvider, LLMProvider
from .models import (
    AgentMemory,
    BaseEvent,
    EventType,
    IQueryProcessor,
    MemoryEntry,
    QueryHooks,
    QueryResult,
    create_event,
    parse_event,
)
from .processing import IDataSource, QueryProcessor, SourceResult
from .storage import IStorage, Storage
from .stream import (
    FrameChannel,
    IEventEmitter,
    RunSession,
    SSEEventEmitter,
    run_single_shot,
    stream_session,
)

__all__ = [
    # Application
    "Application",
    "IApplication",
    "AgentConfig",
    "load_agent_config",
    # Models
    "BaseEvent",
    "EventType",
    "create_event",
    "parse_event",
    "QueryHooks",
    "QueryResult",
    "IQueryProcessor",
    "AgentMemory",
    "MemoryEntry",
    # Streaming
    "FrameChannel",
    "IEventEmitter",
    "SSEEventEmitter",
    "RunSession",
    "stream_session",
    "run_single_shot",
    # Client
    "EventDecoder",
    "EventSubscription",
    "SSEFrameParser",
    # Components
    "ILLMProvider",
    "LLMProvider",
    "IStorage",
    "Storage",
    "IDataSource",
    "QueryProcessor",
    "SourceResult",
]
