"""Lumiere app - owns shared clients and one handler per wearable session."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from lumiere.common.events import EventBus
from lumiere.common.logging import get_logger, setup_logging
from lumiere.config import Config, load_config
from lumiere.conversation.detector import MockObjectDetector, ObjectDetector
from lumiere.conversation.handler import SessionHandler
from lumiere.conversation.llm import ChatClient, MockChatClient
from lumiere.conversation.persona import PersonaGenerator
from lumiere.conversation.responder import ConversationResponder
from lumiere.session import Session


@dataclass
class ActiveSession:
    """A connected session with its event bus and handler."""

    session: Session
    bus: EventBus
    handler: SessionHandler


class LumiereApp:
    """Main application class.

    Example:
        async with LumiereApp(mock_mode=True) as app:
            active = app.on_session(MockSession("abc"))
            await active.bus.publish(TRANSCRIPTION, {"text": "Awaken", "is_final": True})
    """

    def __init__(
        self,
        config: Config | None = None,
        mock_mode: bool | None = None,
        chat: ChatClient | MockChatClient | None = None,
        detector: ObjectDetector | MockObjectDetector | None = None,
    ) -> None:
        """Initialize the app.

        Args:
            config: Configuration (loaded from env/file if None).
            mock_mode: Use local mock clients (auto-detected from env if None).
            chat: Chat client override.
            detector: Object detector override.
        """
        self.config = config or load_config()

        if mock_mode is None:
            mock_mode = os.environ.get("LUMIERE_MOCK_MODE", "").lower() in ("1", "true", "yes")
        self.mock_mode = mock_mode or self.config.mock_mode

        setup_logging(
            level=self.config.app.log_level,
            json_output=self.config.app.mode == "production",
            service_name=self.config.app.package_name or "lumiere",
        )
        self.logger = get_logger("lumiere_app")

        if not self.mock_mode:
            self.config.require_conversation()

        if chat is None:
            chat = MockChatClient() if self.mock_mode else ChatClient(self.config.llm)
        if detector is None:
            detector = MockObjectDetector() if self.mock_mode else ObjectDetector(self.config.vision)

        self.chat = chat
        self.detector = detector
        self.personas = PersonaGenerator(chat, self.config.llm)
        self.responder = ConversationResponder(chat, self.config.llm)

        self._sessions: dict[str, ActiveSession] = {}
        self._started = False

    @property
    def sessions(self) -> dict[str, ActiveSession]:
        return dict(self._sessions)

    async def start(self) -> None:
        if self._started:
            return
        self.logger.info(
            "app_starting",
            package_name=self.config.app.package_name,
            mock_mode=self.mock_mode,
            voices=len(self.config.voice.voice_ids),
        )
        self._started = True

    async def stop(self) -> None:
        if not self._started:
            return
        self.logger.info("app_stopping", sessions=len(self._sessions))
        self._sessions.clear()
        await self.chat.aclose()
        await self.detector.aclose()
        self._started = False
        self.logger.info("app_stopped")

    async def __aenter__(self) -> LumiereApp:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    def on_session(self, session: Session) -> ActiveSession:
        """Wire a newly connected session. Replaces any session with the same id."""
        bus = EventBus(session.session_id)
        handler = SessionHandler(
            session,
            self.detector,
            self.personas,
            self.responder,
            self.config.voice,
        )
        handler.attach(bus)
        active = ActiveSession(session=session, bus=bus, handler=handler)
        self._sessions[session.session_id] = active
        self.logger.info("session_started", session_id=session.session_id)
        return active

    def end_session(self, session_id: str) -> bool:
        active = self._sessions.pop(session_id, None)
        if active is None:
            return False
        self.logger.info("session_ended", session_id=session_id)
        return True

    def get_session(self, session_id: str) -> ActiveSession | None:
        return self._sessions.get(session_id)
