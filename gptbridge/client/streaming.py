from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing

import httpx

from gptbridge.client.projector import RunStatusProjector
from gptbridge.client.records import parse_record
from gptbridge.client.sse import aiter_sse
from gptbridge.domain.events import FrameIgnored, MessageCompleted, StreamEvent, ThreadCreated
from gptbridge.domain.threads import Message, Run, Thread
from gptbridge.errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)


async def iter_stream_events(
    chunks: AsyncIterable[bytes | str],
    projector: RunStatusProjector,
) -> AsyncIterator[StreamEvent]:
    """Decode and project a raw SSE body, ending with ``Done``."""
    async with aclosing(aiter_sse(chunks)) as frames:
        async for sse in frames:
            try:
                record = parse_record(sse)
            except ProtocolError as exc:
                event = projector.project_error(exc)
            else:
                event = projector.project(record)
            if event is not None:
                yield event
    done = projector.finish()
    if done is not None:
        yield done


class ThreadRunStream:
    """A lazy, cancellable sequence of events from one streaming run.

    Bytes are read from the network only while the consumer pulls events.
    Leaving ``async with`` or calling :meth:`aclose` closes the response.
    """

    def __init__(
        self,
        response: httpx.Response,
        *,
        thread: Thread,
        include_ignored: bool = False,
    ) -> None:
        self._response = response
        self._include_ignored = include_ignored
        self._projector = RunStatusProjector(thread_id=thread.id)
        self._iterator: AsyncIterator[StreamEvent] | None = None
        self._closed = False
        self.thread = thread

    @property
    def run(self) -> Run:
        return self._projector.run

    @property
    def text(self) -> str:
        """Assistant text received since the last completed message."""
        return self._projector.text

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        if self._iterator is None:
            self._iterator = self._iterate()
        return self._iterator

    async def __anext__(self) -> StreamEvent:
        return await self.__aiter__().__anext__()

    async def __aenter__(self) -> ThreadRunStream:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._response.aclose()

    async def collect(self) -> list[StreamEvent]:
        return [event async for event in self]

    async def _iterate(self) -> AsyncIterator[StreamEvent]:
        events = iter_stream_events(self._response.aiter_bytes(), self._projector)
        try:
            async for event in events:
                self._track(event)
                if isinstance(event, FrameIgnored) and not self._include_ignored:
                    continue
                yield event
        except httpx.TransportError as exc:
            logger.warning("Stream for thread %s ended abruptly: %s", self.thread.id, exc)
            raise TransportError(f"Stream interrupted: {exc}") from exc
        finally:
            await events.aclose()
            if not self._closed:
                self._closed = True
                await self._response.aclose()

    def _track(self, event: StreamEvent) -> None:
        if isinstance(event, ThreadCreated):
            self.thread.assign_id(event.thread_id)
        elif isinstance(event, MessageCompleted):
            self.thread.append(event.message)


def user_thread(text: str, thread_id: str | None = None) -> Thread:
    return Thread(id=thread_id, messages=[Message.user(text)])
