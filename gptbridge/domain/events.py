from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Union

from gptbridge.domain.threads import Message


@dataclass(frozen=True)
class ErrorDetail:
    message: str
    code: str | None = None


@dataclass(frozen=True)
class ThreadCreated:
    thread_id: str
    kind: ClassVar[Literal["thread_created"]] = "thread_created"


@dataclass(frozen=True)
class MessageDelta:
    text: str
    message_id: str | None = None
    kind: ClassVar[Literal["message_delta"]] = "message_delta"


@dataclass(frozen=True)
class MessageCompleted:
    message: Message
    kind: ClassVar[Literal["message_completed"]] = "message_completed"


@dataclass(frozen=True)
class RunFailed:
    reason: str
    code: str | None = None
    kind: ClassVar[Literal["run_failed"]] = "run_failed"


@dataclass(frozen=True)
class ErrorOccurred:
    detail: ErrorDetail
    kind: ClassVar[Literal["error_occurred"]] = "error_occurred"


@dataclass(frozen=True)
class Done:
    kind: ClassVar[Literal["done"]] = "done"


@dataclass(frozen=True)
class FrameIgnored:
    """A recognized-but-unactionable or unknown frame type."""

    frame_type: str
    kind: ClassVar[Literal["ignored"]] = "ignored"


StreamEvent = Union[
    ThreadCreated,
    MessageDelta,
    MessageCompleted,
    RunFailed,
    ErrorOccurred,
    Done,
    FrameIgnored,
]
