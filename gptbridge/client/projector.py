from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from gptbridge.client.records import ProtocolRecord
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
from gptbridge.domain.threads import Message, Run, RunStatus
from gptbridge.errors import ProtocolError
from gptbridge.protocol.models import APIErrorPayload, RunPayload, content_text

logger = logging.getLogger(__name__)

PROTOCOL_ERROR_CODE = "protocol_error"

_RUN_STATUS_FRAMES: dict[str, RunStatus] = {
    "thread.run.created": RunStatus.QUEUED,
    "thread.run.queued": RunStatus.QUEUED,
    "thread.run.in_progress": RunStatus.IN_PROGRESS,
    "thread.run.completed": RunStatus.COMPLETED,
    "thread.run.failed": RunStatus.FAILED,
    "thread.run.expired": RunStatus.FAILED,
    "thread.run.cancelled": RunStatus.CANCELLED,
}


class RunStatusProjector:
    """Map decoded protocol records onto application-facing stream events.

    One projector belongs to exactly one stream. It remembers the thread id,
    the run lifecycle and the text accumulated from deltas since the last
    completed message.
    """

    def __init__(self, *, thread_id: str | None = None) -> None:
        self.thread_id = thread_id
        self.run = Run(thread_id=thread_id)
        self._parts: list[str] = []
        self._finished = False
        self._handlers: dict[str, Callable[[ProtocolRecord], StreamEvent | None]] = {
            "thread.created": self._on_thread_created,
            "thread.message.delta": self._on_message_delta,
            "message.delta": self._on_message_delta,
            "thread.run.step.delta": self._on_step_delta,
            "thread.message.completed": self._on_message_completed,
            "message.completed": self._on_message_completed,
            "error": self._on_error,
        }

    @property
    def text(self) -> str:
        return "".join(self._parts)

    @property
    def finished(self) -> bool:
        return self._finished

    def project(self, record: ProtocolRecord) -> StreamEvent | None:
        if self._finished or self.run.status.is_terminal:
            logger.debug("Dropping late frame %s after run reached %s", record.type, self.run.status.value)
            return None
        status = _RUN_STATUS_FRAMES.get(record.type)
        if status is not None:
            try:
                return self._on_run_status(record, status)
            except ValidationError as exc:
                return self.project_error(ProtocolError(f"Invalid run payload in {record.type}: {exc}"))
        handler = self._handlers.get(record.type)
        if handler is None:
            logger.debug("Ignoring frame %s", record.type)
            return FrameIgnored(frame_type=record.type)
        try:
            return handler(record)
        except ProtocolError as exc:
            return self.project_error(exc)

    def project_error(self, exc: ProtocolError) -> StreamEvent | None:
        if self._finished or self.run.status.is_terminal:
            logger.debug("Dropping malformed late frame after run reached %s", self.run.status.value)
            return None
        logger.warning("Malformed stream record: %s", exc)
        return ErrorOccurred(detail=ErrorDetail(message=str(exc), code=PROTOCOL_ERROR_CODE))

    def finish(self) -> Done | None:
        if self._finished:
            return None
        self._finished = True
        return Done()

    def _on_thread_created(self, record: ProtocolRecord) -> StreamEvent:
        thread_id = _require_str(record, "id")
        self.thread_id = thread_id
        self.run.thread_id = thread_id
        return ThreadCreated(thread_id=thread_id)

    def _on_message_delta(self, record: ProtocolRecord) -> StreamEvent | None:
        data = record.data
        text = data.get("text")
        if not isinstance(text, str):
            delta = data.get("delta")
            text = content_text(delta.get("content")) if isinstance(delta, dict) else ""
        return self._append(text, _optional_str(data.get("id")))

    def _on_step_delta(self, record: ProtocolRecord) -> StreamEvent | None:
        # Run steps only carry text when the server inlines message output into them.
        delta = record.data.get("delta")
        text = ""
        if isinstance(delta, dict):
            raw = delta.get("text")
            text = raw if isinstance(raw, str) else content_text(delta.get("content"))
        if not text:
            return FrameIgnored(frame_type=record.type)
        return self._append(text, None)

    def _append(self, text: str, message_id: str | None) -> StreamEvent | None:
        if not text:
            return None
        self._parts.append(text)
        return MessageDelta(text=text, message_id=message_id)

    def _on_message_completed(self, record: ProtocolRecord) -> StreamEvent:
        data = record.data
        role = data.get("role", "assistant")
        if role not in ("user", "assistant"):
            raise ProtocolError(f"Unexpected message role {role!r} in {record.type}")
        content = content_text(data.get("content")) if "content" in data else ""
        if not content:
            content = self.text
        self._parts = []
        message = Message(content=content, role=role, id=_optional_str(data.get("id")))
        return MessageCompleted(message=message)

    def _on_run_status(self, record: ProtocolRecord, status: RunStatus) -> StreamEvent | None:
        payload = RunPayload.model_validate(record.data)
        if payload.id and self.run.id is None:
            self.run.id = payload.id
        if payload.thread_id and self.thread_id is None:
            self.thread_id = payload.thread_id
            self.run.thread_id = payload.thread_id

        previous = self.run.status
        if not self.run.advance(status):
            logger.debug("Ignoring backward run transition %s -> %s", previous.value, status.value)
            return FrameIgnored(frame_type=record.type)
        if previous is not status:
            logger.debug("Run %s: %s -> %s", self.run.id, previous.value, status.value)

        if status is not RunStatus.FAILED:
            return FrameIgnored(frame_type=record.type)
        if record.type == "thread.run.expired":
            return RunFailed(reason="Run expired", code="expired")
        error = payload.last_error
        if error is None:
            return RunFailed(reason="Run failed")
        return RunFailed(reason=error.message, code=error.code)

    def _on_error(self, record: ProtocolRecord) -> StreamEvent:
        raw: Any = record.data.get("error", record.data)
        if isinstance(raw, str):
            return ErrorOccurred(detail=ErrorDetail(message=raw))
        try:
            payload = APIErrorPayload.model_validate(raw)
        except ValidationError as exc:
            raise ProtocolError(f"Invalid error payload: {exc}") from exc
        return ErrorOccurred(detail=ErrorDetail(message=payload.message, code=payload.code))


def _require_str(record: ProtocolRecord, key: str) -> str:
    value = record.data.get(key)
    if not isinstance(value, str) or not value:
        raise ProtocolError(f"Frame {record.type} is missing '{key}'")
    return value


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None
