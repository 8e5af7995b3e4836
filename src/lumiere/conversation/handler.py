"""Wake trigger handling and conversation routing for one session."""

from __future__ import annotations

import re
from dataclasses import dataclass

from lumiere.common.errors import LumiereError
from lumiere.common.events import BUTTON_PRESS, TRANSCRIPTION, Event, EventBus
from lumiere.common.logging import get_logger
from lumiere.config import VoiceConfig
from lumiere.conversation.detector import ObjectDetector
from lumiere.conversation.persona import PersonaGenerator
from lumiere.conversation.registry import ObjectRegistry
from lumiere.conversation.responder import ConversationResponder
from lumiere.session import ButtonPress, Session, TranscriptionData

AWAKENING = "Awakening. Hold on while I have a look."
COULD_NOT_SEE = "Hmm, I couldn't see anything."
EYES_NOT_WORKING = "Sorry, my eyes aren't working right now."
NOTHING_FOUND = "I didn't find any interesting objects."
READY = "We are ready!"

_PUNCTUATION = re.compile(r"[.,!?;:]")


def clean_text(text: str) -> str:
    """Lowercase and strip sentence punctuation from a transcription."""
    return _PUNCTUATION.sub("", text.lower()).strip()


@dataclass
class CycleResult:
    """Outcome of one wake cycle."""

    generation: int
    labels: list[str]
    added: list[str]
    outcome: str  # "ready", "empty", "photo_failed", "detection_failed", "stale"


class SessionHandler:
    """Owns one session's registry and reacts to its events.

    Example:
        handler = SessionHandler(session, detector, personas, responder, config.voice)
        handler.attach(bus)
        await bus.publish(TRANSCRIPTION, {"text": "Awaken!", "is_final": True})
    """

    def __init__(
        self,
        session: Session,
        detector: ObjectDetector,
        personas: PersonaGenerator,
        responder: ConversationResponder,
        voice_config: VoiceConfig,
    ) -> None:
        self.session = session
        self.detector = detector
        self.personas = personas
        self.responder = responder
        self.voice_config = voice_config
        self.registry = ObjectRegistry(voice_config.voice_ids)
        self.awakened = False
        self.logger = get_logger("session_handler", session_id=session.session_id)

    def attach(self, bus: EventBus) -> None:
        """Subscribe to transcription and button events on ``bus``."""
        bus.subscribe(TRANSCRIPTION, self._on_transcription_event)
        bus.subscribe(BUTTON_PRESS, self._on_button_event)

    async def _on_transcription_event(self, event: Event) -> None:
        await self.on_transcription(
            TranscriptionData(
                text=str(event.data.get("text", "")),
                is_final=bool(event.data.get("is_final", True)),
            )
        )

    async def _on_button_event(self, event: Event) -> None:
        await self.on_button_press(
            ButtonPress(
                press_type=str(event.data.get("press_type", "")),
                button_id=str(event.data.get("button_id", "main")),
            )
        )

    def is_wake_phrase(self, cleaned: str) -> bool:
        return any(word in cleaned for word in self.voice_config.wake_words)

    async def on_transcription(self, data: TranscriptionData) -> None:
        if not data.is_final:
            return

        cleaned = clean_text(data.text)
        self.logger.info("transcribed_speech", text=data.text, cleaned=cleaned)

        if self.is_wake_phrase(cleaned):
            await self.trigger()
            return

        if self.awakened:
            await self.responder.respond(self.session, self.registry, cleaned)

    async def on_button_press(self, press: ButtonPress) -> None:
        self.logger.info("button_press", press_type=press.press_type, button_id=press.button_id)
        if press.press_type == self.voice_config.trigger_press_type:
            await self.trigger()

    async def trigger(self) -> CycleResult:
        """Reset state, take a photo, detect objects and build personas."""
        async with self.registry.lock:
            self.awakened = True
            generation = self.registry.reset()
        self.logger.info("wake_triggered", generation=generation)

        await self.session.speak(AWAKENING)

        try:
            photo = await self.session.request_photo()
        except Exception as e:
            # Host sessions raise their own error types
            self.logger.error("photo_capture_failed", error=str(e))
            if not self.registry.is_current(generation):
                return CycleResult(generation, [], [], "stale")
            await self.session.speak(COULD_NOT_SEE)
            return CycleResult(generation, [], [], "photo_failed")

        try:
            labels = await self.detector.detect(photo)
        except LumiereError as e:
            self.logger.error("detection_failed", error=str(e))
            if not self.registry.is_current(generation):
                return CycleResult(generation, [], [], "stale")
            await self.session.speak(EYES_NOT_WORKING)
            return CycleResult(generation, [], [], "detection_failed")

        added = await self.personas.populate(self.registry, labels, generation)

        if not self.registry.is_current(generation):
            return CycleResult(generation, labels, added, "stale")

        if not labels:
            await self.session.speak(NOTHING_FOUND)
            return CycleResult(generation, labels, added, "empty")

        await self.session.speak(READY)
        return CycleResult(generation, labels, added, "ready")
