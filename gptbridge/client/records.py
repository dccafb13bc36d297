from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from gptbridge.client.sse import ServerSentEvent
from gptbridge.errors import ProtocolError

_DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ProtocolRecord:
    type: str
    data: dict[str, Any] = field(default_factory=dict)


def parse_record(sse: ServerSentEvent) -> ProtocolRecord:
    """Interpret one decoded SSE event as a typed protocol record.

    The record type comes from the ``event:`` field when the server sets one,
    otherwise from the payload's ``type`` (or ``object``) key.
    """
    try:
        data = json.loads(sse.data)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Unparseable stream payload: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ProtocolError(f"Stream payload must be a JSON object, got {type(data).__name__}")

    record_type = sse.event if sse.event and sse.event != _DEFAULT_EVENT else None
    if record_type is None:
        for key in ("type", "object"):
            value = data.get(key)
            if isinstance(value, str) and value:
                record_type = value
                break
    if record_type is None:
        raise ProtocolError("Stream payload has no type")
    return ProtocolRecord(type=record_type, data=data)
