"""Core data models for the AG-UI chat service."""

from .events import (
    AGUIEvent,
    EVENT_MODELS,
    TERMINAL_EVENT_TYPES,
    BaseEvent,
    CustomEvent,
    EventDecodeError,
    EventType,
    MessagesSnapshotEvent,
    RawEvent,
    RunErrorEvent,
    RunFinishedEvent,
    RunStartedEvent,
    StateDeltaEvent,
    StateSnapshotEvent,
    StepFinishedEvent,
    StepStartedEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    TextMessageStartEvent,
    ToolCallArgsEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
    UnknownEventTypeError,
    create_event,
    event_to_dict,
    event_type_of,
    now_ms,
    parse_event,
    stamp,
)
from .memory import AgentMemory, MemoryEntry
from .query import IQueryProcessor, QueryHooks, QueryResult

__all__ = [
    # Events
    "AGUIEvent",
    "BaseEvent",
    "EventType",
    "EVENT_MODELS",
    "TERMINAL_EVENT_TYPES",
    "RunStartedEvent",
    "RunFinishedEvent",
    "RunErrorEvent",
    "StepStartedEvent",
    "StepFinishedEvent",
    "TextMessageStartEvent",
    "TextMessageContentEvent",
    "TextMessageEndEvent",
    "ToolCallStartEvent",
    "ToolCallArgsEvent",
    "ToolCallEndEvent",
    "StateSnapshotEvent",
    "StateDeltaEvent",
    "MessagesSnapshotEvent",
    "RawEvent",
    "CustomEvent",
    "EventDecodeError",
    "UnknownEventTypeError",
    "create_event",
    "event_to_dict",
    "event_type_of",
    "now_ms",
    "parse_event",
    "stamp",
    # Memory
    "AgentMemory",
    "MemoryEntry",
    # Query contract
    "IQueryProcessor",
    "QueryHooks",
    "QueryResult",
]
