"""Incremental server-sent-events decoder.

The decoder is push-driven: callers feed it raw chunks in arrival order and
collect whole events as blank lines complete them. Chunk boundaries never
change the decoded output.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"

_BOM = "\ufeff"


@dataclass(frozen=True)
class ServerSentEvent:
    data: str
    event: str | None = None
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._started = False
        self._closed = False
        self._data: list[str] = []
        self._event: str | None = None
        self._last_id: str | None = None
        self._retry: int | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: bytes | str) -> list[ServerSentEvent]:
        if self._closed:
            return []
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        return self._consume(text, final=False)

    def close(self) -> list[ServerSentEvent]:
        if self._closed:
            return []
        events = self._consume(self._utf8.decode(b"", final=True), final=True)
        if self._data:
            logger.debug("Discarding unterminated SSE event at end of stream")
        self._closed = True
        self._reset_event()
        return events

    def _consume(self, text: str, *, final: bool) -> list[ServerSentEvent]:
        if not self._started and text:
            self._started = True
            if text.startswith(_BOM):
                text = text[1:]
        buffer = self._pending + text
        self._pending = ""

        events: list[ServerSentEvent] = []
        start = 0
        length = len(buffer)
        # Next known LF and CR positions; rescanned only once the cursor passes them.
        lf = buffer.find("\n")
        cr = buffer.find("\r")
        while start < length:
            if lf != -1 and lf < start:
                lf = buffer.find("\n", start)
            if cr != -1 and cr < start:
                cr = buffer.find("\r", start)
            if lf == -1 and cr == -1:
                break
            if cr == -1 or (lf != -1 and lf < cr):
                end, next_start = lf, lf + 1
            elif cr + 1 < length and buffer[cr + 1] == "\n":
                end, next_start = cr, cr + 2
            else:
                end, next_start = cr, cr + 1
            # A lone trailing CR may be the first half of a CRLF split across chunks.
            if buffer[end] == "\r" and next_start == length and not final:
                break
            event = self._process_line(buffer[start:end])
            start = next_start
            if event is not None:
                events.append(event)
            if self._closed:
                return events
        self._pending = "" if final else buffer[start:]
        return events

    def _process_line(self, line: str) -> ServerSentEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data.append(value)
        elif field == "event":
            self._event = value
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        elif field == "retry":
            if value.isdigit():
                self._retry = int(value)
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug("Ignoring SSE line with unknown field %r", field)
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = None
            return None
        data = "\n".join(self._data)
        event = ServerSentEvent(data=data, event=self._event, id=self._last_id, retry=self._retry)
        self._reset_event()
        if data == DONE_SENTINEL:
            self._closed = True
            return None
        return event

    def _reset_event(self) -> None:
        self._data = []
        self._event = None
        self._retry = None


def iter_sse(chunks: Iterable[bytes | str]) -> Iterator[ServerSentEvent]:
    decoder = SSEDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.closed:
            return
    yield from decoder.close()


async def aiter_sse(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[ServerSentEvent]:
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
        if decoder.closed:
            return
    for event in decoder.close():
        yield event
