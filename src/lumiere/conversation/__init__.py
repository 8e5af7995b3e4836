"""Conversational flow: wake trigger, detection, personas and replies."""

from lumiere.conversation.detector import MockObjectDetector, ObjectDetector, parse_labels
from lumiere.conversation.handler import CycleResult, SessionHandler, clean_text
from lumiere.conversation.llm import ChatClient, Message, MockChatClient
from lumiere.conversation.persona import PersonaGenerator
from lumiere.conversation.registry import NO_VOICE, ObjectInfo, ObjectRegistry, VoiceRotation
from lumiere.conversation.responder import (
    ConversationResponder,
    FreeTextReply,
    StructuredReply,
    parse_reply,
)

__all__ = [
    "ChatClient",
    "MockChatClient",
    "Message",
    "ObjectDetector",
    "MockObjectDetector",
    "parse_labels",
    "PersonaGenerator",
    "ObjectRegistry",
    "ObjectInfo",
    "VoiceRotation",
    "NO_VOICE",
    "ConversationResponder",
    "StructuredReply",
    "FreeTextReply",
    "parse_reply",
    "SessionHandler",
    "CycleResult",
    "clean_text",
]
