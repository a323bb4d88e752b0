"""AG-UI event models.

Every event is a flat JSON object keyed by its ``type`` tag. The models below
are data only; the field names are the wire names, so ``event_to_dict`` output
is exactly what goes into a frame and ``parse_event`` accepts it back.
"""

import json
import time
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class EventType(str, Enum):
    """AG-UI event tags."""

    # Lifecycle
    RUN_STARTED = "RUN_STARTED"
    RUN_FINISHED = "RUN_FINISHED"
    RUN_ERROR = "RUN_ERROR"
    STEP_STARTED = "STEP_STARTED"
    STEP_FINISHED = "STEP_FINISHED"

    # Text messages
    TEXT_MESSAGE_START = "TEXT_MESSAGE_START"
    TEXT_MESSAGE_CONTENT = "TEXT_MESSAGE_CONTENT"
    TEXT_MESSAGE_END = "TEXT_MESSAGE_END"

    # Tool calls
    TOOL_CALL_START = "TOOL_CALL_START"
    TOOL_CALL_ARGS = "TOOL_CALL_ARGS"
    TOOL_CALL_END = "TOOL_CALL_END"

    # State sync
    STATE_SNAPSHOT = "STATE_SNAPSHOT"
    STATE_DELTA = "STATE_DELTA"
    MESSAGES_SNAPSHOT = "MESSAGES_SNAPSHOT"

    # Escape hatches
    RAW = "RAW"
    CUSTOM = "CUSTOM"


TERMINAL_EVENT_TYPES = frozenset({EventType.RUN_FINISHED, EventType.RUN_ERROR})


class EventDecodeError(ValueError):
    """A wire payload could not be turned into an event."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class UnknownEventTypeError(EventDecodeError):
    """The payload's ``type`` tag is missing or not an AG-UI event type."""

    def __init__(self, event_type: Any, payload: Any = None):
        super().__init__(f"Unknown event type: {event_type!r}", payload)
        self.event_type = event_type


class BaseEvent(BaseModel):
    """Envelope shared by every event."""

    model_config = ConfigDict(frozen=True)

    timestamp: int | None = None
    raw_event: Any = None


class RunStartedEvent(BaseEvent):
    type: Literal["RUN_STARTED"] = "RUN_STARTED"
    thread_id: str
    run_id: str


class RunFinishedEvent(BaseEvent):
    type: Literal["RUN_FINISHED"] = "RUN_FINISHED"
    thread_id: str
    run_id: str


class RunErrorEvent(BaseEvent):
    type: Literal["RUN_ERROR"] = "RUN_ERROR"
    message: str
    code: str | None = None


class StepStartedEvent(BaseEvent):
    type: Literal["STEP_STARTED"] = "STEP_STARTED"
    step_name: str


class StepFinishedEvent(BaseEvent):
    type: Literal["STEP_FINISHED"] = "STEP_FINISHED"
    step_name: str


class TextMessageStartEvent(BaseEvent):
    type: Literal["TEXT_MESSAGE_START"] = "TEXT_MESSAGE_START"
    message_id: str
    role: Literal["assistant"] = "assistant"


class TextMessageContentEvent(BaseEvent):
    type: Literal["TEXT_MESSAGE_CONTENT"] = "TEXT_MESSAGE_CONTENT"
    message_id: str
    delta: str


class TextMessageEndEvent(BaseEvent):
    type: Literal["TEXT_MESSAGE_END"] = "TEXT_MESSAGE_END"
    message_id: str


class ToolCallStartEvent(BaseEvent):
    type: Literal["TOOL_CALL_START"] = "TOOL_CALL_START"
    tool_call_id: str
    tool: str
    input: Any = None


class ToolCallArgsEvent(BaseEvent):
    type: Literal["TOOL_CALL_ARGS"] = "TOOL_CALL_ARGS"
    tool_call_id: str
    args: Any = None


class ToolCallEndEvent(BaseEvent):
    type: Literal["TOOL_CALL_END"] = "TOOL_CALL_END"
    tool_call_id: str
    output: Any = None


class StateSnapshotEvent(BaseEvent):
    type: Literal["STATE_SNAPSHOT"] = "STATE_SNAPSHOT"
    state: Any = None


class StateDeltaEvent(BaseEvent):
    type: Literal["STATE_DELTA"] = "STATE_DELTA"
    delta: Any = None


class MessagesSnapshotEvent(BaseEvent):
    type: Literal["MESSAGES_SNAPSHOT"] = "MESSAGES_SNAPSHOT"
    messages: list[Any] = Field(default_factory=list)


class RawEvent(BaseEvent):
    type: Literal["RAW"] = "RAW"
    content: Any = None


class CustomEvent(BaseEvent):
    type: Literal["CUSTOM"] = "CUSTOM"
    name: str
    payload: Any = None


AGUIEvent = Annotated[
    Union[
        RunStartedEvent,
        RunFinishedEvent,
        RunErrorEvent,
        StepStartedEvent,
        StepFinishedEvent,
        TextMessageStartEvent,
        TextMessageContentEvent,
        TextMessageEndEvent,
        ToolCallStartEvent,
        ToolCallArgsEvent,
        ToolCallEndEvent,
        StateSnapshotEvent,
        StateDeltaEvent,
        MessagesSnapshotEvent,
        RawEvent,
        CustomEvent,
    ],
    Field(discriminator="type"),
]

EVENT_MODELS: dict[EventType, type[BaseEvent]] = {
    EventType.RUN_STARTED: RunStartedEvent,
    EventType.RUN_FINISHED: RunFinishedEvent,
    EventType.RUN_ERROR: RunErrorEvent,
    EventType.STEP_STARTED: StepStartedEvent,
    EventType.STEP_FINISHED: StepFinishedEvent,
    EventType.TEXT_MESSAGE_START: TextMessageStartEvent,
    EventType.TEXT_MESSAGE_CONTENT: TextMessageContentEvent,
    EventType.TEXT_MESSAGE_END: TextMessageEndEvent,
    EventType.TOOL_CALL_START: ToolCallStartEvent,
    EventType.TOOL_CALL_ARGS: ToolCallArgsEvent,
    EventType.TOOL_CALL_END: ToolCallEndEvent,
    EventType.STATE_SNAPSHOT: StateSnapshotEvent,
    EventType.STATE_DELTA: StateDeltaEvent,
    EventType.MESSAGES_SNAPSHOT: MessagesSnapshotEvent,
    EventType.RAW: RawEvent,
    EventType.CUSTOM: CustomEvent,
}

_event_adapter: TypeAdapter = TypeAdapter(AGUIEvent)


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def event_type_of(event: BaseEvent) -> EventType:
    """Get the tag of an event as an EventType."""
    return EventType(event.type)


def stamp(event: BaseEvent, timestamp: int | None = None) -> BaseEvent:
    """Return the event with its timestamp filled in when absent."""
    if event.timestamp is not None:
        return event
    return event.model_copy(
        update={"timestamp": timestamp if timestamp is not None else now_ms()}
    )


def create_event(event_type: EventType | str, **fields: Any) -> BaseEvent:
    """Build, validate and stamp an event of the given type."""
    model = EVENT_MODELS[EventType(event_type)]
    return stamp(model(**fields))


def event_to_dict(event: BaseEvent) -> dict[str, Any]:
    """Wire representation of an event; absent optional fields are omitted."""
    data = event.model_dump(mode="json")
    return {key: value for key, value in data.items() if value is not None}


def parse_event(data: str | bytes | dict[str, Any]) -> BaseEvent:
    """
    Validate a wire payload into its tagged event model.

    Raises:
        UnknownEventTypeError: ``type`` is missing or not an AG-UI tag.
        EventDecodeError: invalid JSON, not an object, or invalid fields.
    """
    payload = data
    if isinstance(data, (str, bytes, bytearray)):
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise EventDecodeError(f"Invalid JSON payload: {e.msg}", data) from e
        except (ValueError, RecursionError) as e:
            # Undecodable bytes, or nesting deeper than the parser can follow.
            raise EventDecodeError(
                f"Invalid JSON payload: {type(e).__name__}", data
            ) from e

    if not isinstance(payload, dict):
        raise EventDecodeError("Event payload must be a JSON object", payload)

    event_type = payload.get("type")
    try:
        EventType(event_type)
    except ValueError:
        raise UnknownEventTypeError(event_type, payload) from None

    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as e:
        raise EventDecodeError(
            f"Invalid {event_type} event: {e.error_count()} validation error(s)",
            payload,
        ) from e
