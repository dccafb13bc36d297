from gptbridge.protocol.models import (
    APIErrorPayload,
    AssistantListResponse,
    AssistantObject,
    ErrorResponse,
    MessageCreateRequest,
    MessageListResponse,
    MessageObject,
    RunCreateRequest,
    RunObject,
    RunPayload,
    ThreadCreateRequest,
    ThreadRunCreateRequest,
    content_text,
)

__all__ = [
    "APIErrorPayload",
    "AssistantListResponse",
    "AssistantObject",
    "ErrorResponse",
    "MessageCreateRequest",
    "MessageListResponse",
    "MessageObject",
    "RunCreateRequest",
    "RunObject",
    "RunPayload",
    "ThreadCreateRequest",
    "ThreadRunCreateRequest",
    "content_text",
]
