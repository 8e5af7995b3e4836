"""Tests for the HTTP event relay."""

import asyncio

import pytest
from aiohttp.test_utils import TestClient, TestServer

from lumiere import __version__
from lumiere.app import LumiereApp
from lumiere.config import Config
from lumiere.conversation.handler import AWAKENING, READY
from lumiere.server import TASKS_KEY, create_server_app


@pytest.fixture
async def lumiere_app(config: Config) -> LumiereApp:
    return LumiereApp(config=config, mock_mode=True)


@pytest.fixture
async def client(lumiere_app: LumiereApp):
    server = TestServer(create_server_app(lumiere_app))
    test_client = TestClient(server)
    await test_client.start_server()
    yield test_client
    await test_client.close()


@pytest.mark.asyncio
async def test_health(client: TestClient):
    response = await client.get("/health")

    assert response.status == 200
    assert await response.json() == {
        "status": "ok",
        "version": __version__,
        "mock_mode": True,
        "sessions": 0,
    }


@pytest.mark.asyncio
async def test_session_lifecycle(client: TestClient, lumiere_app: LumiereApp):
    response = await client.post("/sessions/glasses-1")
    assert response.status == 201
    assert "glasses-1" in lumiere_app.sessions

    listing = await (await client.get("/sessions")).json()
    assert listing == {"sessions": ["glasses-1"]}

    response = await client.delete("/sessions/glasses-1")
    assert response.status == 200
    assert lumiere_app.get_session("glasses-1") is None

    response = await client.delete("/sessions/glasses-1")
    assert response.status == 404


@pytest.mark.asyncio
async def test_unknown_session(client: TestClient):
    response = await client.get("/sessions/nobody")
    assert response.status == 404
    assert "Unknown session" in (await response.json())["error"]

    response = await client.post("/sessions/nobody/button", json={"press_type": "long"})
    assert response.status == 404


@pytest.mark.asyncio
async def test_button_press_wakes_objects(client: TestClient, lumiere_app: LumiereApp):
    await client.post("/sessions/s1")

    response = await client.post("/sessions/s1/button?wait=1", json={"press_type": "long"})
    assert response.status == 200
    body = await response.json()
    assert body["handled"] is True
    assert body["event_id"]

    state = await (await client.get("/sessions/s1")).json()
    assert state["awakened"] is True
    assert state["generation"] == 1
    assert [obj["voice_id"] for obj in state["objects"].values()] == [
        "voice-a",
        "voice-b",
        "voice-c",
    ]

    session = lumiere_app.get_session("s1").session
    assert [line.text for line in session.spoken] == [AWAKENING, READY]


@pytest.mark.asyncio
async def test_transcription_handled_in_background(client: TestClient, lumiere_app: LumiereApp):
    await client.post("/sessions/s2")

    response = await client.post(
        "/sessions/s2/transcription", json={"text": "Awaken!", "is_final": True}
    )
    assert response.status == 202

    await asyncio.gather(*client.server.app[TASKS_KEY])

    handler = lumiere_app.get_session("s2").handler
    assert handler.awakened
    assert len(handler.registry) == 3

    response = await client.post(
        "/sessions/s2/transcription?wait=1", json={"text": "hey desk lamp"}
    )
    assert response.status == 200
    spoken = lumiere_app.get_session("s2").session.last_spoken
    assert spoken.voice_id == "voice-c"


@pytest.mark.asyncio
async def test_bad_payloads(client: TestClient):
    await client.post("/sessions/s3")

    response = await client.post(
        "/sessions/s3/transcription",
        data="not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status == 400

    response = await client.post("/sessions/s3/transcription", json={"text": 42})
    assert response.status == 400
    assert "'text' must be a string" in (await response.json())["error"]

    response = await client.post("/sessions/s3/button", json=["long"])
    assert response.status == 400
