from gptbridge.domain.events import (
    Done,
    ErrorDetail,
    ErrorOccurred,
    FrameIgnored,
    MessageCompleted,
    MessageDelta,
    RunFailed,
    StreamEvent,
    ThreadCreated,
)
from gptbridge.domain.threads import Message, Role, Run, RunStatus, Thread

__all__ = [
    "Done",
    "ErrorDetail",
    "ErrorOccurred",
    "FrameIgnored",
    "Message",
    "MessageCompleted",
    "MessageDelta",
    "Role",
    "Run",
    "RunFailed",
    "RunStatus",
    "StreamEvent",
    "Thread",
    "ThreadCreated",
]
