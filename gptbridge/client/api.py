from __future__ import annotations

import json
import logging

import httpx
from pydantic import BaseModel, ValidationError

from gptbridge.client.streaming import ThreadRunStream, user_thread
from gptbridge.config import ClientConfig
from gptbridge.domain.threads import Message, RunStatus, Thread
from gptbridge.errors import (
    APIStatusError,
    AuthError,
    ConfigurationError,
    NotFoundError,
    ProtocolError,
    TransportError,
)
from gptbridge.protocol.models import (
    AssistantListResponse,
    AssistantObject,
    ErrorResponse,
    MessageCreateRequest,
    MessageListResponse,
    MessageObject,
    RunCreateRequest,
    RunObject,
    ThreadCreateRequest,
    ThreadRunCreateRequest,
)

logger = logging.getLogger(__name__)

ASSISTANTS_BETA_HEADER = "assistants=v2"

# Remote statuses that have no local counterpart collapse onto the nearest one.
_REMOTE_RUN_STATUSES: dict[str, RunStatus] = {
    **{status.value: status for status in RunStatus},
    "requires_action": RunStatus.IN_PROGRESS,
    "cancelling": RunStatus.IN_PROGRESS,
    "expired": RunStatus.FAILED,
    "incomplete": RunStatus.FAILED,
}


class AssistantClient:
    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not config.has_credential:
            if config.debug:
                raise ConfigurationError("No API key configured. Set GPT_BRIDGE_API_KEY or pass api_key.")
            logger.warning("No API key configured; requests will be rejected by the server.")
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=config.timeout)
        self._headers = self._build_headers(config)

    @staticmethod
    def _build_headers(config: ClientConfig) -> dict[str, str]:
        headers = {"OpenAI-Beta": ASSISTANTS_BETA_HEADER}
        if config.has_credential:
            headers["Authorization"] = f"Bearer {config.api_key.strip()}"
        return headers

    async def __aenter__(self) -> AssistantClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    @staticmethod
    def _format_error_message(fallback: str, detail: str) -> str:
        return f"{fallback}. {detail}" if detail else fallback

    def _extract_detail(self, response: httpx.Response, *, body: bytes | None = None) -> str:
        try:
            data = json.loads(body) if body is not None else response.json()
        except (ValueError, UnicodeDecodeError):
            data = None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                try:
                    return ErrorResponse.model_validate(data).error.message
                except ValidationError:
                    logger.debug("Unrecognised error body: %s", data)
            if isinstance(error, str) and error:
                return error
            if data.get("detail"):
                return str(data["detail"])

        if body is None:
            return response.text.strip()
        return body.decode("utf-8", errors="ignore").strip()

    def _status_error(self, response: httpx.Response, fallback: str, detail: str) -> APIStatusError:
        message = self._format_error_message(fallback, detail)
        status = response.status_code
        if status in (401, 403):
            return AuthError(message, status_code=status)
        if status == 404:
            return NotFoundError(message, status_code=status)
        return APIStatusError(message, status_code=status)

    def _raise_for_status(self, response: httpx.Response, fallback: str) -> None:
        if response.status_code < 400:
            return
        raise self._status_error(response, fallback, self._extract_detail(response))

    async def _raise_for_status_async(self, response: httpx.Response, fallback: str) -> None:
        if response.status_code < 400:
            return
        try:
            body = await response.aread()
        except httpx.HTTPError:
            body = b""
        raise self._status_error(response, fallback, self._extract_detail(response, body=body))

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        *,
        payload: BaseModel | None = None,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        json_body = payload.model_dump(mode="json", exclude_none=True) if payload is not None else None
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(
                method, path, json=json_body, params=params, headers=self._headers
            )
        except httpx.TransportError as exc:
            raise TransportError(f"{fallback}. {exc}") from exc
        self._raise_for_status(response, fallback)
        return response

    async def _open_stream(self, path: str, payload: BaseModel, fallback: str) -> httpx.Response:
        headers = {**self._headers, "accept": "text/event-stream"}
        request = self._client.build_request(
            "POST",
            path,
            json=payload.model_dump(mode="json", exclude_none=True),
            headers=headers,
        )
        logger.debug("POST %s (stream)", path)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TransportError as exc:
            raise TransportError(f"{fallback}. {exc}") from exc
        try:
            await self._raise_for_status_async(response, fallback)
        except APIStatusError:
            await response.aclose()
            raise
        return response

    async def close(self) -> None:
        await self._client.aclose()

    async def list_assistants(self, *, limit: int = 20) -> list[AssistantObject]:
        assistants: list[AssistantObject] = []
        params: dict[str, str | int] = {"limit": limit}
        while True:
            response = await self._request("GET", "/assistants", "Failed to list assistants", params=params)
            page = AssistantListResponse.model_validate(response.json())
            assistants.extend(page.data)
            cursor = page.last_id or (page.data[-1].id if page.data else None)
            if not page.has_more or not cursor:
                return assistants
            params = {"limit": limit, "after": cursor}

    async def add_message(self, thread_id: str, text: str) -> Message:
        payload = MessageCreateRequest(role="user", content=text)
        response = await self._request(
            "POST", f"/threads/{thread_id}/messages", "Failed to add message", payload=payload
        )
        created = MessageObject.model_validate(response.json())
        return Message(content=created.text() or text, role=created.role, id=created.id)

    async def list_messages(self, thread_id: str, *, limit: int = 100) -> list[Message]:
        """Return the thread's messages oldest first."""
        messages: list[Message] = []
        params: dict[str, str | int] = {"limit": limit, "order": "asc"}
        while True:
            response = await self._request(
                "GET", f"/threads/{thread_id}/messages", "Failed to list messages", params=params
            )
            page = MessageListResponse.model_validate(response.json())
            messages.extend(Message(content=item.text(), role=item.role, id=item.id) for item in page.data)
            cursor = page.last_id or (page.data[-1].id if page.data else None)
            if not page.has_more or not cursor:
                return messages
            params = {"limit": limit, "order": "asc", "after": cursor}

    async def cancel_run(self, thread_id: str, run_id: str) -> RunStatus:
        response = await self._request(
            "POST", f"/threads/{thread_id}/runs/{run_id}/cancel", "Failed to cancel run"
        )
        run = RunObject.model_validate(response.json())
        status = _REMOTE_RUN_STATUSES.get(run.status)
        if status is None:
            raise ProtocolError(f"Unexpected run status {run.status!r} from cancel")
        return status

    async def create_and_stream_thread_run(
        self,
        text: str,
        assistant_id: str,
        *,
        include_ignored: bool = False,
    ) -> ThreadRunStream:
        payload = ThreadRunCreateRequest(
            assistant_id=assistant_id,
            thread=ThreadCreateRequest(messages=[MessageCreateRequest(role="user", content=text)]),
            stream=True,
        )
        response = await self._open_stream("/threads/runs", payload, "Failed to start thread run")
        return ThreadRunStream(response, thread=user_thread(text), include_ignored=include_ignored)

    async def stream_run(
        self,
        thread_id: str,
        assistant_id: str,
        *,
        include_ignored: bool = False,
        pending: Message | None = None,
    ) -> ThreadRunStream:
        payload = RunCreateRequest(assistant_id=assistant_id, stream=True)
        response = await self._open_stream(f"/threads/{thread_id}/runs", payload, "Failed to start run")
        thread = Thread(id=thread_id, messages=[pending] if pending is not None else [])
        return ThreadRunStream(response, thread=thread, include_ignored=include_ignored)

    async def add_message_and_stream_thread_run(
        self,
        text: str,
        thread_id: str,
        assistant_id: str,
        *,
        include_ignored: bool = False,
    ) -> ThreadRunStream:
        message = await self.add_message(thread_id, text)
        return await self.stream_run(
            thread_id,
            assistant_id,
            include_ignored=include_ignored,
            pending=message,
        )
