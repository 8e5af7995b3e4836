"""Persona generation for detected objects."""

from __future__ import annotations

from lumiere.common.errors import LumiereError
from lumiere.common.logging import get_logger
from lumiere.config import LLMConfig
from lumiere.conversation.llm import ChatClient, Message
from lumiere.conversation.registry import ObjectRegistry

PERSONA_SYSTEM_PROMPT = (
    "You create fun, eccentric, and short personas for everyday objects, "
    "similar to Lumiere and Mrs. Potts from Beauty and the Beast."
)


def persona_prompt(label: str) -> str:
    return (
        f'Give me a persona for a "{label}" and detail the tone in which the object '
        "would speak (ex. shakespearean, hip/hop/modern style, etc)."
    )


class PersonaGenerator:
    """Registers newly seen objects with a voice and a generated persona."""

    def __init__(self, chat: ChatClient, config: LLMConfig) -> None:
        self.chat = chat
        self.config = config
        self.logger = get_logger("persona_generator")

    async def describe(self, label: str) -> str:
        """Generate a persona, returning an empty string on any failure."""
        try:
            return await self.chat.complete(
                [
                    Message("system", PERSONA_SYSTEM_PROMPT),
                    Message("user", persona_prompt(label)),
                ],
                temperature=self.config.persona_temperature,
                max_tokens=self.config.persona_max_tokens,
            )
        except LumiereError as e:
            self.logger.warning("persona_failed", label=label, error=str(e))
            return ""

    async def populate(
        self,
        registry: ObjectRegistry,
        labels: list[str],
        generation: int,
    ) -> list[str]:
        """Register every label not yet known, in order.

        Stops early once ``generation`` is no longer current.

        Returns:
            Labels that were added by this call.
        """
        added: list[str] = []
        for label in labels:
            async with registry.lock:
                if not registry.is_current(generation):
                    self.logger.info("stale_cycle_abandoned", generation=generation)
                    break
                if label in registry:
                    continue
                voice_id = registry.next_voice()

            persona = await self.describe(label)

            async with registry.lock:
                if registry.register(label, persona, voice_id, generation):
                    added.append(label)
                    self.logger.info("persona_registered", label=label, voice_id=voice_id)
        return added
