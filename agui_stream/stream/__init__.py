"""Stream module."""

from .emitter import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    FrameChannel,
    IEventEmitter,
    IFrameTransport,
    SSEEventEmitter,
    TransportClosedError,
    encode_frame,
)
from .fallback import FallbackResponse, run_single_shot
from .session import (
    ProtocolViolationError,
    RunSession,
    SessionState,
    error_code,
    new_id,
    stream_session,
)

__all__ = [
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "FrameChannel",
    "IEventEmitter",
    "IFrameTransport",
    "SSEEventEmitter",
    "TransportClosedError",
    "encode_frame",
    "FallbackResponse",
    "run_single_shot",
    "ProtocolViolationError",
    "RunSession",
    "SessionState",
    "error_code",
    "new_id",
    "stream_session",
]
