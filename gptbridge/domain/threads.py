from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    content: str
    role: Role
    id: str | None = None

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(content=text, role="user")


@dataclass
class Thread:
    id: str | None = None
    messages: list[Message] = field(default_factory=list)

    def assign_id(self, thread_id: str) -> None:
        if self.id is not None and self.id != thread_id:
            raise ValueError(f"Thread already has id '{self.id}', refusing '{thread_id}'.")
        self.id = thread_id

    def append(self, message: Message) -> None:
        self.messages.append(message)


class RunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def rank(self) -> int:
        if self is RunStatus.QUEUED:
            return 0
        if self is RunStatus.IN_PROGRESS:
            return 1
        return 2


_TERMINAL = frozenset({RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED})


@dataclass
class Run:
    id: str | None = None
    thread_id: str | None = None
    status: RunStatus = RunStatus.QUEUED

    def advance(self, status: RunStatus) -> bool:
        """Move to ``status`` if that is a forward transition; return whether it moved."""
        if self.status.is_terminal:
            return False
        if status.rank < self.status.rank:
            return False
        self.status = status
        return True
