"""Per-session event dispatch."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from lumiere.common.logging import get_logger

TRANSCRIPTION = "transcription"
BUTTON_PRESS = "button_press"


@dataclass
class Event:
    """Event delivered by the wearable session."""

    topic: str
    data: dict[str, Any]
    session_id: str
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)


EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """In-process event bus owned by a single session.

    Handler failures are logged and never propagate to the publisher, so a
    broken handler cannot take the host process down.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self._subscribers: dict[str, list[EventHandler]] = {}
        self.logger = get_logger("event_bus", session_id=session_id)

    def subscribe(
        self,
        topic: str,
        handler: EventHandler | None = None,
    ) -> Callable[[EventHandler], EventHandler] | Callable[[], None]:
        """Subscribe to events on a topic.

        Can be used as a decorator or called directly.

        Returns:
            Decorator (when handler is None) or unsubscribe function.
        """
        if handler is not None:
            return self._register_handler(topic, handler)

        def decorator(fn: EventHandler) -> EventHandler:
            self._register_handler(topic, fn)
            return fn

        return decorator

    def _register_handler(self, topic: str, handler: EventHandler) -> Callable[[], None]:
        self._subscribers.setdefault(topic, []).append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)

        self.logger.debug("subscribed", topic=topic)
        return unsubscribe

    async def publish(self, topic: str, data: dict[str, Any]) -> Event:
        """Publish an event to every subscriber of its topic and wait for them."""
        event = Event(topic=topic, data=data, session_id=self.session_id)
        self.logger.debug("publishing_event", topic=topic, event_id=event.event_id)

        handlers = self._subscribers.get(topic, []).copy()
        if handlers:
            await asyncio.gather(
                *[self._safe_dispatch(handler, event) for handler in handlers],
                return_exceptions=True,
            )
        return event

    async def _safe_dispatch(self, handler: EventHandler, event: Event) -> None:
        try:
            await handler(event)
        except Exception as e:
            self.logger.exception(
                "event_handler_error",
                topic=event.topic,
                event_id=event.event_id,
                error=str(e),
            )
