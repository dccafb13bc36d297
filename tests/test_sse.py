from __future__ import annotations

import asyncio
import time

from gptbridge.client.sse import ServerSentEvent, SSEDecoder, aiter_sse, iter_sse

BODY = (
    "\ufeff: keep-alive\r\n"
    "event: thread.created\r\n"
    'data: {"type":"thread.created","id":"t1"}\r\n'
    "\r\n"
    "id: 7\n"
    "retry: 1500\n"
    'data: {"type":"message.delta",\n'
    'data: "text":"café ☕"}\n'
    "\n"
    "bogus line without colon\r"
    "data:no-space\r"
    "\r"
).encode("utf-8")

EXPECTED = [
    ServerSentEvent(data='{"type":"thread.created","id":"t1"}', event="thread.created"),
    ServerSentEvent(
        data='{"type":"message.delta",\n"text":"café ☕"}',
        id="7",
        retry=1500,
    ),
    ServerSentEvent(data="no-space", id="7"),
]


def _decode(chunks) -> list[ServerSentEvent]:
    decoder = SSEDecoder()
    events: list[ServerSentEvent] = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    events.extend(decoder.close())
    return events


def test_decodes_whole_body() -> None:
    assert _decode([BODY]) == EXPECTED


def test_every_single_split_point_gives_same_events() -> None:
    for cut in range(len(BODY) + 1):
        assert _decode([BODY[:cut], BODY[cut:]]) == EXPECTED, cut


def test_byte_by_byte_feed_gives_same_events() -> None:
    assert _decode([BODY[i : i + 1] for i in range(len(BODY))]) == EXPECTED


def test_crlf_split_across_chunks_is_one_line_break() -> None:
    chunks = [b"data: a\r", b"\n\r", b"\n"]
    assert _decode(chunks) == [ServerSentEvent(data="a")]


def test_empty_stream_yields_nothing() -> None:
    assert _decode([]) == []
    assert _decode([b""]) == []


def test_blank_lines_without_data_dispatch_nothing() -> None:
    assert _decode([b"\n\n\nevent: ping\n\n"]) == []


def test_comment_and_unknown_fields_are_ignored() -> None:
    body = b": comment\nfoo: bar\nnonsense\ndata: x\n\n"
    assert _decode([body]) == [ServerSentEvent(data="x")]


def test_id_with_nul_and_non_numeric_retry_are_ignored() -> None:
    body = b"id: a\x00b\nretry: soon\ndata: x\n\n"
    assert _decode([body]) == [ServerSentEvent(data="x")]


def test_done_sentinel_closes_decoder() -> None:
    decoder = SSEDecoder()
    events = decoder.feed(b"data: one\n\nevent: done\ndata: [DONE]\n\ndata: two\n\n")
    assert events == [ServerSentEvent(data="one")]
    assert decoder.closed is True
    assert decoder.feed(b"data: three\n\n") == []
    assert decoder.close() == []


def test_unterminated_trailing_event_is_discarded() -> None:
    assert _decode([b"data: one\n\ndata: partial"]) == [ServerSentEvent(data="one")]
    assert _decode([b"data: one\n\ndata: partial\n"]) == [ServerSentEvent(data="one")]


def test_text_chunks_are_accepted() -> None:
    assert _decode(["data: h", "i\n", "\n"]) == [ServerSentEvent(data="hi")]


def test_iter_sse_stops_at_sentinel() -> None:
    chunks = iter([b"data: a\n\n", b"data: [DONE]\n\n", b"data: b\n\n"])
    assert list(iter_sse(chunks)) == [ServerSentEvent(data="a")]
    assert next(chunks, None) == b"data: b\n\n"


def test_aiter_sse_matches_sync_decoding() -> None:
    async def chunks():
        for i in range(0, len(BODY), 5):
            yield BODY[i : i + 5]

    async def collect() -> list[ServerSentEvent]:
        return [event async for event in aiter_sse(chunks())]

    assert asyncio.run(collect()) == EXPECTED


def test_large_single_chunk_decodes_in_linear_time() -> None:
    count = 200_000
    body = b"data: x\n\n" * count
    started = time.perf_counter()
    events = _decode([body])
    elapsed = time.perf_counter() - started
    assert len(events) == count
    assert all(event == ServerSentEvent(data="x") for event in events)
    assert elapsed < 5.0


def test_large_single_chunk_with_mixed_line_breaks() -> None:
    body = (b"data: a\r\n\r\n" + b"data: b\r\r" + b"data: c\n\n") * 10_000
    events = _decode([body])
    assert [event.data for event in events] == ["a", "b", "c"] * 10_000
