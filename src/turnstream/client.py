"""Async HTTP client for the streaming chat endpoint.

The client only opens the request and translates HTTP failures into
user-facing messages.  The response body is handed to a fresh
:class:`StreamDecoder` for each turn.
"""

import logging
import os
import uuid
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from turnstream.decoder import DeltaCallback, StreamDecoder
from turnstream.errors import ChatHTTPError
from turnstream.models import TurnAggregate

logger = logging.getLogger(__name__)

API_KEY_HEADER = "Convai-Api-Key"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage]
    thread_id: str = Field(alias="threadId")
    resource_id: str = Field(alias="resourceId")

    @classmethod
    def new_thread(cls, content: str) -> "ChatRequest":
        """Start a fresh thread with a single user message."""
        return cls(
            messages=[ChatMessage(role="user", content=content)],
            thread_id=str(uuid.uuid4()),
            resource_id=str(uuid.uuid4()),
        )


class ChatReply(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
    turn: TurnAggregate


def http_error_message(status: int, error_text: str | None = None) -> str:
    if status == 401:
        return "Authentication failed. Please check your API key."
    if status == 429:
        return "Too many requests. Please try again later."
    if status == 500:
        return "Server error. Please try again later."
    return error_text or f"HTTP error! status: {status}"


class ChatClient:
    """Sends chat turns and decodes the streamed reply.

    Args:
        base_url: Server root, e.g. ``https://chat.example.com``.
        api_key: Sent in the ``Convai-Api-Key`` header.  Falls back to
            the ``CONVAI_API_KEY`` environment variable.
        agent: Agent name in the ``/api/agents/{agent}/stream`` path.
        timeout: Request timeout in seconds.
        transport: Optional ``httpx`` transport, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        agent: str = "copilotAgent",
        timeout: float = 600.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            api_key = os.getenv("CONVAI_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.agent = agent
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def send_message(
        self,
        request: ChatRequest,
        on_delta: DeltaCallback | None = None,
    ) -> ChatReply:
        path = f"/api/agents/{self.agent}/stream"
        async with self._client() as client:
            async with client.stream(
                "POST", path, json=request.model_dump(by_alias=True),
            ) as response:
                if not response.is_success:
                    error_text = (await response.aread()).decode(
                        "utf-8", errors="replace",
                    )
                    message = http_error_message(
                        response.status_code, error_text,
                    )
                    logger.error(f"Chat API error: {message}")
                    raise ChatHTTPError(message, response.status_code)
                turn = await StreamDecoder().decode(response, on_delta)
        return ChatReply(content=turn.response_text, turn=turn)
