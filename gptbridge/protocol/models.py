from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AssistantObject(_WireModel):
    id: str
    name: str | None = None
    model: str | None = None
    instructions: str | None = None
    created_at: int | None = None


class AssistantListResponse(_WireModel):
    data: list[AssistantObject] = Field(default_factory=list)
    has_more: bool = False
    last_id: str | None = None


class MessageCreateRequest(_WireModel):
    role: Literal["user", "assistant"] = "user"
    content: str


class ThreadCreateRequest(_WireModel):
    messages: list[MessageCreateRequest] = Field(default_factory=list)


class ThreadRunCreateRequest(_WireModel):
    assistant_id: str
    thread: ThreadCreateRequest
    stream: bool = True


class RunCreateRequest(_WireModel):
    assistant_id: str
    stream: bool = True


class TextValue(_WireModel):
    value: str = ""


class ContentPart(_WireModel):
    type: str = "text"
    text: TextValue | None = None


class MessageObject(_WireModel):
    id: str
    thread_id: str | None = None
    role: Literal["user", "assistant"] = "assistant"
    content: list[ContentPart] | str = Field(default_factory=list)

    def text(self) -> str:
        return content_text(self.content)


class MessageListResponse(_WireModel):
    data: list[MessageObject] = Field(default_factory=list)
    has_more: bool = False
    last_id: str | None = None


class APIErrorPayload(_WireModel):
    message: str = "Unknown error"
    code: str | None = None
    type: str | None = None


class ErrorResponse(_WireModel):
    error: APIErrorPayload


class RunPayload(_WireModel):
    id: str | None = None
    thread_id: str | None = None
    status: str | None = None
    last_error: APIErrorPayload | None = None


class RunObject(_WireModel):
    id: str
    thread_id: str | None = None
    status: str


def content_text(content: Any) -> str:
    """Join the text of a message content field.

    Accepts a plain string or a list of content parts shaped like
    ``{"type": "text", "text": {"value": "..."}}``.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    pieces: list[str] = []
    for part in content:
        if isinstance(part, ContentPart):
            if part.text is not None:
                pieces.append(part.text.value)
            continue
        if not isinstance(part, dict) or part.get("type", "text") != "text":
            continue
        text = part.get("text")
        if isinstance(text, dict):
            value = text.get("value")
            if isinstance(value, str):
                pieces.append(value)
        elif isinstance(text, str):
            pieces.append(text)
    return "".join(pieces)
