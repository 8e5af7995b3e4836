"""End-to-end integration tests for Lumiere."""

import json

import httpx
import pytest

from conftest import chat_completion, mock_http
from lumiere.app import LumiereApp
from lumiere.common.events import BUTTON_PRESS, TRANSCRIPTION
from lumiere.config import Config
from lumiere.conversation.detector import ObjectDetector
from lumiere.conversation.handler import AWAKENING, NOTHING_FOUND, READY
from lumiere.conversation.llm import ChatClient
from lumiere.session import MockSession
from lumiere.video import DiagnosticsRecorder, JobSpec, VideoGenerationWorkflow, VideoJobClient
from lumiere.video.datauri import to_data_uri


@pytest.mark.integration
class TestWakeFlow:
    """Wake word -> photo -> detection -> personas -> in-character replies."""

    @pytest.mark.asyncio
    async def test_mock_mode_conversation(self, config: Config):
        """Test the complete flow with local mock clients.

        1. User says the wake word
        2. Session takes a photo and objects are detected
        3. Each object gets a persona and a voice
        4. User addresses an object and hears it answer in its voice
        """
        async with LumiereApp(config=config, mock_mode=True) as app:
            active = app.on_session(MockSession("e2e"))

            await active.bus.publish(TRANSCRIPTION, {"text": "Awaken.", "is_final": True})

            registry = active.handler.registry
            assert registry.labels() == ["soda can", "water bottle", "desk lamp"]
            assert [registry.voice_for(label) for label in registry.labels()] == [
                "voice-a",
                "voice-b",
                "voice-c",
            ]
            assert active.session.photos_taken == 1

            await active.bus.publish(
                TRANSCRIPTION, {"text": "What do you think, water bottle?", "is_final": True}
            )

            reply = active.session.last_spoken
            assert reply.voice_id == "voice-b"
            assert "water bottle" in reply.text

    @pytest.mark.asyncio
    async def test_rewake_replaces_objects(self, config: Config):
        async with LumiereApp(config=config, mock_mode=True) as app:
            active = app.on_session(MockSession("e2e"))

            await active.bus.publish(BUTTON_PRESS, {"press_type": "long"})
            first_generation = active.handler.registry.generation

            app.detector.labels = []
            await active.bus.publish(BUTTON_PRESS, {"press_type": "long"})

            assert active.handler.registry.generation == first_generation + 1
            assert len(active.handler.registry) == 0
            assert [line.text for line in active.session.spoken] == [
                AWAKENING,
                READY,
                AWAKENING,
                NOTHING_FOUND,
            ]

    @pytest.mark.asyncio
    async def test_remote_clients(self, config: Config):
        """Same flow against HTTP fakes of the chat and detection services."""
        chat_requests: list[dict] = []

        def chat_handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            chat_requests.append(body)
            system = body["messages"][0]["content"]
            if "STRICTLY as JSON" in system:
                content = json.dumps({"object": "teapot", "response": "Tea, anyone?"})
            else:
                content = "A motherly teapot with a warm cockney lilt."
            return httpx.Response(200, json=chat_completion(content))

        def detect_handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["image"].startswith("data:image/jpeg;base64,")
            return httpx.Response(200, json={"objects": "cup, teapot"})

        chat = ChatClient(config.llm, mock_http(chat_handler))
        detector = ObjectDetector(config.vision, mock_http(detect_handler))

        async with LumiereApp(config=config, chat=chat, detector=detector) as app:
            active = app.on_session(MockSession("remote"))

            await active.bus.publish(TRANSCRIPTION, {"text": "awaken", "is_final": True})
            await active.bus.publish(TRANSCRIPTION, {"text": "hello teapot", "is_final": True})

        assert active.session.last_spoken.text == "Tea, anyone?"
        assert active.session.last_spoken.voice_id == "voice-b"
        assert [r["max_tokens"] for r in chat_requests] == [50, 50, 150]
        assert [r["temperature"] for r in chat_requests] == [0.9, 0.9, 0.8]


@pytest.mark.integration
class TestVideoFlow:
    @pytest.mark.asyncio
    async def test_image_file_to_video_file(self, config: Config, tmp_path, mock_image_bytes):
        image = tmp_path / "still.jpg"
        image.write_bytes(mock_image_bytes)
        statuses = iter(["PENDING", "RUNNING", "SUCCEEDED"])
        submitted: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                submitted.append(json.loads(request.content))
                return httpx.Response(200, json={"id": "job-1"})
            if request.url.host == "video.test":
                status = next(statuses)
                body = {"id": "job-1", "status": status}
                if status == "SUCCEEDED":
                    body["output"] = ["https://cdn.test/job-1.mp4"]
                return httpx.Response(200, json=body)
            return httpx.Response(200, content=b"mp4-bytes")

        config.video.poll_interval_seconds = 0.01
        recorder = DiagnosticsRecorder(tmp_path / "diagnostics")
        client = VideoJobClient(config.video, mock_http(handler), diagnostics=recorder)
        workflow = VideoGenerationWorkflow(client, config.video)

        result = await workflow.run(
            JobSpec(prompt_image=to_data_uri(image), prompt_text="The teapot hums"),
            tmp_path / "video.mp4",
        )

        assert result.polls == 3
        assert (tmp_path / "video.mp4").read_bytes() == b"mp4-bytes"
        assert submitted[0]["promptImage"].startswith("data:image/jpeg;base64,")
        assert {p.name for p in recorder.files()} == {
            "start_generation_response.json",
            "polling_responses.json",
        }
