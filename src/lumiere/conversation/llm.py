"""Chat completion client (OpenAI-compatible)."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any

import httpx

from lumiere.common.errors import ApiError
from lumiere.common.logging import get_logger
from lumiere.config import LLMConfig


@dataclass
class Message:
    """Chat message."""

    role: str  # "system", "user", "assistant"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def _first_content(result: Any) -> str | None:
    """Content of the first choice, "" when absent, None when the body is malformed."""
    if not isinstance(result, dict):
        return None
    choices = result.get("choices") or []
    if not isinstance(choices, list):
        return None
    if not choices:
        return ""
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message") or {}
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if content is None:
        return ""
    return content if isinstance(content, str) else None


class ChatClient:
    """Non-streaming client for a ``/chat/completions`` endpoint."""

    def __init__(
        self,
        config: LLMConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.endpoint = config.endpoint.rstrip("/")
        self._http = http_client
        self._owns_http = http_client is None
        self.logger = get_logger("chat_client")

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def complete(
        self,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
        model: str | None = None,
    ) -> str:
        """Send messages and return the first choice's message content.

        Raises:
            ApiError: On transport failure, a non-success status or a body
                that is not a chat completion.
        """
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        payload: dict[str, Any] = {
            "model": model or self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start_time = time.time()
        try:
            response = await self._client().post(
                f"{self.endpoint}/chat/completions",
                headers=headers,
                json=payload,
            )
        except httpx.HTTPError as e:
            raise ApiError(f"Chat request failed: {e}") from e

        if response.is_error:
            raise ApiError(
                f"Chat request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise ApiError("Chat response was not JSON", response.status_code, response.text) from e

        content = _first_content(result)
        if content is None:
            raise ApiError("Unexpected chat response shape", response.status_code, result)

        self.logger.debug(
            "chat_complete",
            model=payload["model"],
            latency_ms=int((time.time() - start_time) * 1000),
            content_length=len(content),
        )
        return content.strip()


class MockChatClient:
    """Chat client that answers locally, for mock mode."""

    def __init__(self) -> None:
        self.calls: list[list[Message]] = []

    async def aclose(self) -> None:
        pass

    async def complete(
        self,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
        model: str | None = None,
    ) -> str:
        self.calls.append(list(messages))
        await asyncio.sleep(0.01)

        system = next((m.content for m in messages if m.role == "system"), "")
        user = next((m.content for m in reversed(messages) if m.role == "user"), "")

        if "STRICTLY as JSON" in system:
            # Prefer an object the user mentioned, else the first one listed
            listed = [
                line.split(":", 1)[0].strip()
                for line in system.splitlines()[1:]
                if ": " in line and not line.startswith(("Here", "When"))
            ]
            mentioned = [name for name in listed if name.lower() in user.lower()]
            name = (mentioned or listed or [""])[0]
            return json.dumps({"object": name, "response": f"You called? I heard: {user}"})

        return "A dramatic soul who speaks in grand theatrical verse."
