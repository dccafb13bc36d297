from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TextIO

from gptbridge.client import AssistantClient
from gptbridge.config import ClientConfig, load_config
from gptbridge.domain.events import ErrorOccurred, MessageCompleted, MessageDelta, RunFailed, ThreadCreated
from gptbridge.errors import BridgeError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gptbridge", description="Talk to assistant threads from the shell.")
    parser.add_argument("--api-key", help="API key (defaults to GPT_BRIDGE_API_KEY / OPENAI_API_KEY)")
    parser.add_argument("--base-url", help="API base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("assistants", help="List available assistants")

    ask = sub.add_parser("ask", help="Send a message and stream the reply")
    ask.add_argument("--assistant", required=True, help="Assistant id")
    ask.add_argument("--thread", help="Existing thread id; a new thread is created when omitted")
    ask.add_argument("text", help="Message text")
    return parser


def _config_from_args(args: argparse.Namespace) -> ClientConfig:
    overrides = {}
    if args.api_key:
        overrides["api_key"] = args.api_key
    if args.base_url:
        overrides["base_url"] = args.base_url
    return load_config(**overrides)


async def list_assistants(client: AssistantClient, out: TextIO) -> None:
    for assistant in await client.list_assistants():
        out.write(f"{assistant.id}\t{assistant.name or ''}\n")


async def ask(
    client: AssistantClient,
    *,
    text: str,
    assistant_id: str,
    thread_id: str | None,
    out: TextIO,
    err: TextIO,
) -> int:
    if thread_id:
        stream = await client.add_message_and_stream_thread_run(text, thread_id, assistant_id)
    else:
        stream = await client.create_and_stream_thread_run(text, assistant_id)

    status = 0
    async with stream:
        async for event in stream:
            if isinstance(event, ThreadCreated):
                err.write(f"thread: {event.thread_id}\n")
            elif isinstance(event, MessageDelta):
                out.write(event.text)
                out.flush()
            elif isinstance(event, MessageCompleted):
                out.write("\n")
            elif isinstance(event, RunFailed):
                err.write(f"run failed: {event.reason}\n")
                status = 1
            elif isinstance(event, ErrorOccurred):
                err.write(f"error: {event.detail.message}\n")
    return status


async def _run(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    async with AssistantClient(_config_from_args(args)) as client:
        if args.command == "assistants":
            await list_assistants(client, out)
            return 0
        return await ask(
            client,
            text=args.text,
            assistant_id=args.assistant,
            thread_id=args.thread,
            out=out,
            err=err,
        )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args, sys.stdout, sys.stderr))
    except BridgeError as exc:
        logger.debug("Command failed", exc_info=True)
        sys.stderr.write(f"{exc}\n")
        return 1
    except KeyboardInterrupt:
        return 130
