"""Streaming client for assistant threads and runs."""

from gptbridge.client import AssistantClient, ThreadRunStream
from gptbridge.config import ClientConfig, load_config
from gptbridge.domain import (
    Done,
    ErrorDetail,
    ErrorOccurred,
    FrameIgnored,
    Message,
    MessageCompleted,
    MessageDelta,
    Run,
    RunFailed,
    RunStatus,
    StreamEvent,
    Thread,
    ThreadCreated,
)
from gptbridge.errors import (
    APIStatusError,
    AuthError,
    BridgeError,
    ConfigurationError,
    NotFoundError,
    ProtocolError,
    TransportError,
)

__all__ = [
    "APIStatusError",
    "AssistantClient",
    "AuthError",
    "BridgeError",
    "ClientConfig",
    "ConfigurationError",
    "Done",
    "ErrorDetail",
    "ErrorOccurred",
    "FrameIgnored",
    "Message",
    "MessageCompleted",
    "MessageDelta",
    "NotFoundError",
    "ProtocolError",
    "Run",
    "RunFailed",
    "RunStatus",
    "StreamEvent",
    "Thread",
    "ThreadCreated",
    "ThreadRunStream",
    "TransportError",
    "load_config",
]
