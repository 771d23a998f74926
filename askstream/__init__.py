"""
askstream - streaming answer client

Assembles a live answer, its sources, and related queries from a
server-sent-events answer stream.
"""

__version__ = "0.1.0"

from ._client import AskClient, stream_chat_response
from ._exceptions import (
    APIError,
    AskStreamError,
    AuthenticationError,
    FrameParseError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StreamCancelledError,
    StreamDecodeError,
    TransportError,
    ValidationError,
)
from ._types import ChatStreamResponse, Source, WebResult
from .assembler import AnswerAssembler, StreamPhase, StreamState
from .streaming import (
    AskStream,
    CancelToken,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StreamEvent,
    StreamEventType,
    dispatch,
)

__all__ = [
    "APIError",
    "AnswerAssembler",
    # Main client
    "AskClient",
    "AskStream",
    "AskStreamError",
    "AuthenticationError",
    "CancelToken",
    "ChatStreamResponse",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
    "FrameParseError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "Source",
    "StreamCancelledError",
    "StreamDecodeError",
    "StreamEvent",
    "StreamEventType",
    "StreamPhase",
    "StreamState",
    "TransportError",
    "ValidationError",
    "WebResult",
    "dispatch",
    "stream_chat_response",
]
