"""Pytest configuration and fixtures for Lumiere tests."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any, Callable

import httpx
import pytest

from lumiere.config import Config
from lumiere.conversation.detector import MockObjectDetector
from lumiere.conversation.llm import Message
from lumiere.session import MockSession

VOICES = ["voice-a", "voice-b", "voice-c"]


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip slow tests unless --slow flag is set."""
    if not config.getoption("--slow"):
        skip_slow = pytest.mark.skip(reason="Need --slow option to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep developer .env files and vendor variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "PACKAGE_NAME",
        "MENTRAOS_API_KEY",
        "OPENAI_API_KEY",
        "ROBOFLOW_WORKFLOW_URL",
        "ROBOFLOW_API_KEY",
        "ELEVENLABS_VOICE_IDS",
        "PORT",
        "RUNWAYML_API_SECRET",
        "RUNWAY_API_KEY",
        "LUMIERE_MOCK_MODE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> Config:
    """Fully populated test configuration."""
    cfg = Config()
    cfg.app.package_name = "com.example.lumiere"
    cfg.app.api_key = "platform-key-0123456789"
    cfg.app.log_level = "DEBUG"
    cfg.llm.api_key = "sk-test-0123456789"
    cfg.llm.endpoint = "https://llm.test/v1"
    cfg.vision.workflow_url = "https://detect.test/workflow"
    cfg.vision.api_key = "rf-test-key"
    cfg.voice.voice_ids = list(VOICES)
    cfg.video.api_key = "rw-test-key"
    cfg.video.base_url = "https://video.test/v1"
    cfg.video.poll_interval_seconds = 2.0
    return cfg


@pytest.fixture
def mock_session() -> MockSession:
    return MockSession("test-session")


@pytest.fixture
def mock_image_bytes() -> bytes:
    """Create mock JPEG image."""
    from PIL import Image

    img = Image.new("RGB", (64, 48), color=(73, 109, 137))
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=85)
    return buffer.getvalue()


class ScriptedChat:
    """Chat stand-in driven by a function of (system, user) -> reply.

    The function may return a string, raise, or return an awaitable.
    """

    def __init__(self, respond: Callable[[str, str], Any]) -> None:
        self.respond = respond
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
        system = next((m.content for m in messages if m.role == "system"), "")
        user = next((m.content for m in messages if m.role == "user"), "")
        result = self.respond(system, user)
        if asyncio.iscoroutine(result):
            result = await result
        return result


@pytest.fixture
def scripted_chat() -> Callable[[Callable[[str, str], Any]], ScriptedChat]:
    return ScriptedChat


@pytest.fixture
def mock_detector() -> MockObjectDetector:
    return MockObjectDetector(["soda can", "water bottle", "soda can"])


def chat_completion(content: str | None) -> dict[str, Any]:
    """Body of a chat completion response with one choice."""
    return {
        "id": "chatcmpl-test",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


def mock_http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """httpx client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)
