"""
threadstream - Python client for streaming assistant runs.

Reconstructs runs, run steps and messages from the Assistants API event stream.
"""

__version__ = "0.1.0"

from ._client import AssistantsClient
from ._exceptions import (
    APIError,
    AuthenticationError,
    ConflictError,
    InvalidVariantError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StreamClosedError,
    StreamDecodeError,
    StreamError,
    StreamProtocolError,
    ThreadstreamError,
    ValidationError,
)
from ._formats import ChunkingStrategy, JsonSchema, ResponseFormat, ToolChoice, TruncationStrategy
from ._merge import AggregateMerger
from ._streaming import RunStream, SessionState, StreamUpdate
from ._types import (
    Assistant,
    ErrorObject,
    Message,
    MessageDelta,
    Run,
    RunStep,
    RunStepDelta,
    Thread,
)
from ._variants import (
    ChatResponseFormat,
    ChunkingStrategyType,
    MessageStatus,
    RunStatus,
    RunStepStatus,
    ToolChoiceType,
    TruncationType,
)
from .streaming import Envelope, EventKind, EventPhase, parse_event

__all__ = [
    "APIError",
    "AggregateMerger",
    "Assistant",
    # Main client
    "AssistantsClient",
    "AuthenticationError",
    "ChatResponseFormat",
    "ChunkingStrategy",
    "ChunkingStrategyType",
    "ConflictError",
    "Envelope",
    "ErrorObject",
    "EventKind",
    "EventPhase",
    "InvalidVariantError",
    "JsonSchema",
    "Message",
    "MessageDelta",
    "MessageStatus",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "ResponseFormat",
    "Run",
    "RunStatus",
    "RunStep",
    "RunStepDelta",
    "RunStepStatus",
    # Streaming
    "RunStream",
    "SessionState",
    "StreamClosedError",
    "StreamDecodeError",
    "StreamError",
    "StreamProtocolError",
    "StreamUpdate",
    "Thread",
    "ThreadstreamError",
    "ToolChoice",
    "ToolChoiceType",
    "TruncationStrategy",
    "TruncationType",
    "ValidationError",
    "parse_event",
]
