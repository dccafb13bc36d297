from gptbridge.client.api import AssistantClient
from gptbridge.client.projector import RunStatusProjector
from gptbridge.client.records import ProtocolRecord, parse_record
from gptbridge.client.sse import ServerSentEvent, SSEDecoder, aiter_sse, iter_sse
from gptbridge.client.streaming import ThreadRunStream, iter_stream_events

__all__ = [
    "AssistantClient",
    "ProtocolRecord",
    "RunStatusProjector",
    "SSEDecoder",
    "ServerSentEvent",
    "ThreadRunStream",
    "aiter_sse",
    "iter_sse",
    "iter_stream_events",
    "parse_record",
]
