from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from gptbridge.client import AssistantClient
from gptbridge.config import ClientConfig

API_KEY = "sk-test"
BASE_URL = "http://test"


def sse(payload: dict[str, Any] | str, event: str | None = None) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {data}\n\n"


SCENARIO_A_BODY = (
    sse({"type": "thread.created", "id": "t1"})
    + sse({"type": "message.delta", "text": "Hel"})
    + sse({"type": "message.delta", "text": "lo"})
    + sse({"type": "message.completed", "content": "Hello", "role": "assistant", "id": "m1"})
)


def _message_object(message_id: str, thread_id: str, role: str, text: str) -> dict[str, Any]:
    return {
        "id": message_id,
        "object": "thread.message",
        "thread_id": thread_id,
        "role": role,
        "content": [{"type": "text", "text": {"value": text, "annotations": []}}],
    }


def _error(status: int, message: str, code: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"message": message, "code": code}})


class FakeAssistantAPI:
    """In-process stand-in for the remote assistants API."""

    def __init__(self) -> None:
        self.assistants = [
            {"id": "asst_1", "object": "assistant", "name": "Helper", "model": "gpt-4o"},
            {"id": "asst_2", "object": "assistant", "name": "Reviewer", "model": "gpt-4o"},
            {"id": "asst_3", "object": "assistant", "name": None, "model": "gpt-4o-mini"},
        ]
        self.threads: dict[str, list[dict[str, Any]]] = {"thread_1": []}
        self.chunks: list[str] = [SCENARIO_A_BODY]
        self.requests: list[dict[str, Any]] = []
        self.cancel_status = "cancelled"
        self.listing_down = False
        self.app = self._build_app()

    def _known_assistant(self, assistant_id: str) -> bool:
        return any(item["id"] == assistant_id for item in self.assistants)

    def _stream(self) -> StreamingResponse:
        return StreamingResponse(iter(list(self.chunks)), media_type="text/event-stream")

    async def _record(self, request: Request) -> dict[str, Any]:
        body = await request.body()
        entry = {
            "method": request.method,
            "path": request.url.path,
            "headers": dict(request.headers),
            "params": dict(request.query_params),
            "json": json.loads(body) if body else None,
        }
        self.requests.append(entry)
        return entry

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.middleware("http")
        async def require_key(request: Request, call_next):
            if request.headers.get("authorization") != f"Bearer {API_KEY}":
                return _error(401, "Incorrect API key provided.", "invalid_api_key")
            return await call_next(request)

        @app.get("/assistants")
        async def list_assistants(request: Request):
            entry = await self._record(request)
            if self.listing_down:
                return _error(500, "The server had an error while processing your request.")
            limit = int(entry["params"].get("limit", 20))
            after = entry["params"].get("after")
            items = self.assistants
            if after:
                index = next(i for i, item in enumerate(items) if item["id"] == after)
                items = items[index + 1 :]
            page = items[:limit]
            return {
                "object": "list",
                "data": page,
                "has_more": len(items) > limit,
                "last_id": page[-1]["id"] if page else None,
            }

        @app.post("/threads/runs")
        async def create_thread_and_run(request: Request):
            entry = await self._record(request)
            assistant_id = entry["json"]["assistant_id"]
            if not self._known_assistant(assistant_id):
                return _error(404, f"No assistant found with id '{assistant_id}'.")
            return self._stream()

        @app.post("/threads/{thread_id}/messages")
        async def add_message(thread_id: str, request: Request):
            entry = await self._record(request)
            if thread_id not in self.threads:
                return _error(404, f"No thread found with id '{thread_id}'.")
            messages = self.threads[thread_id]
            created = _message_object(
                f"msg_{len(messages) + 1}", thread_id, entry["json"]["role"], entry["json"]["content"]
            )
            messages.append(created)
            return created

        @app.get("/threads/{thread_id}/messages")
        async def list_messages(thread_id: str, request: Request):
            entry = await self._record(request)
            if thread_id not in self.threads:
                return _error(404, f"No thread found with id '{thread_id}'.")
            limit = int(entry["params"].get("limit", 20))
            after = entry["params"].get("after")
            items = self.threads[thread_id]
            if after:
                index = next(i for i, item in enumerate(items) if item["id"] == after)
                items = items[index + 1 :]
            page = items[:limit]
            return {
                "object": "list",
                "data": page,
                "has_more": len(items) > limit,
                "last_id": page[-1]["id"] if page else None,
            }

        @app.post("/threads/{thread_id}/runs")
        async def create_run(thread_id: str, request: Request):
            entry = await self._record(request)
            if thread_id not in self.threads:
                return _error(404, f"No thread found with id '{thread_id}'.")
            if not self._known_assistant(entry["json"]["assistant_id"]):
                return _error(404, "No assistant found.")
            return self._stream()

        @app.post("/threads/{thread_id}/runs/{run_id}/cancel")
        async def cancel_run(thread_id: str, run_id: str, request: Request):
            await self._record(request)
            if thread_id not in self.threads:
                return _error(404, f"No thread found with id '{thread_id}'.")
            return {"id": run_id, "object": "thread.run", "thread_id": thread_id, "status": self.cancel_status}

        return app


@pytest.fixture()
def fake_api() -> FakeAssistantAPI:
    return FakeAssistantAPI()


@pytest.fixture()
def make_client(fake_api: FakeAssistantAPI) -> Callable[..., AssistantClient]:
    def factory(*, api_key: str | None = API_KEY, debug: bool = False) -> AssistantClient:
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=fake_api.app), base_url=BASE_URL)
        config = ClientConfig(api_key=api_key, base_url=BASE_URL, debug=debug)
        return AssistantClient(config, client=http)

    return factory
