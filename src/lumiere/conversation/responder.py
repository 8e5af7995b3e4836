"""In-character replies from the detected objects."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Union

from lumiere.common.errors import LumiereError
from lumiere.common.logging import get_logger
from lumiere.config import LLMConfig
from lumiere.conversation.llm import ChatClient, Message
from lumiere.conversation.registry import ObjectRegistry
from lumiere.session import Session

NOTHING_TO_TALK_TO = "I don't see anything to talk to yet."
DISTRACTED = "Sorry, I got distracted."


@dataclass
class StructuredReply:
    """Model picked an object and answered as it."""

    object: str
    response: str


@dataclass
class FreeTextReply:
    """Model output was not the requested JSON; the raw text is the reply."""

    text: str

    @property
    def object(self) -> str:
        return ""

    @property
    def response(self) -> str:
        return self.text


Reply = Union[StructuredReply, FreeTextReply]


def parse_reply(content: str) -> Reply:
    """Interpret model output as ``{"object", "response"}`` JSON if possible."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return FreeTextReply(content)

    if not isinstance(data, dict) or not isinstance(data.get("response"), str):
        return FreeTextReply(content)

    chosen = data.get("object")
    return StructuredReply(
        object=chosen if isinstance(chosen, str) else "",
        response=data["response"],
    )


def reply_system_prompt(summary: str) -> str:
    return (
        "You are Lumiere, an assistant that makes objects talk.\n"
        "Here is the list of objects you can embody with their personas:\n\n"
        f"{summary}\n\n"
        "When the user speaks, pick the single most likely object they are addressing "
        "and respond as that object in first person, staying in character. "
        'Return your answer STRICTLY as JSON: {"object":"<object name>", '
        '"response":"<what the object says>"}'
    )


@dataclass
class SpokenReply:
    """What was said, and in whose voice."""

    reply: Reply
    voice_id: str


class ConversationResponder:
    """Answers user speech as the most relevant registered object."""

    def __init__(self, chat: ChatClient, config: LLMConfig) -> None:
        self.chat = chat
        self.config = config
        self.logger = get_logger("conversation_responder")

    async def generate(self, registry: ObjectRegistry, utterance: str) -> Reply:
        """Ask the model which object answers and what it says.

        Raises:
            ApiError: If the chat call fails.
        """
        content = await self.chat.complete(
            [
                Message("system", reply_system_prompt(registry.summary())),
                Message("user", utterance),
            ],
            temperature=self.config.reply_temperature,
            max_tokens=self.config.reply_max_tokens,
        )
        return parse_reply(content)

    async def respond(
        self,
        session: Session,
        registry: ObjectRegistry,
        utterance: str,
    ) -> SpokenReply | None:
        """Speak a reply to ``utterance``. Returns None if nothing was answered."""
        if len(registry) == 0:
            await session.speak(NOTHING_TO_TALK_TO)
            return None

        try:
            reply = await self.generate(registry, utterance)
        except LumiereError as e:
            self.logger.error("reply_failed", error=str(e))
            await session.speak(DISTRACTED)
            return None

        voice_id = registry.voice_for(reply.object)
        self.logger.info(
            "reply_ready",
            object=reply.object,
            structured=isinstance(reply, StructuredReply),
            voice_id=voice_id,
        )
        await session.speak(reply.response, voice_id=voice_id)
        return SpokenReply(reply=reply, voice_id=voice_id)
