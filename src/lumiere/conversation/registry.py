"""Per-session registry of detected objects and their voices."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterator

# Voice id used when no voices are configured.
NO_VOICE = ""


@dataclass
class ObjectInfo:
    """Persona and voice assigned to a detected object."""

    persona: str
    voice_id: str


class VoiceRotation:
    """Round-robin over a fixed voice list."""

    def __init__(self, voice_ids: list[str]) -> None:
        self.voice_ids = list(voice_ids)
        self.cursor = 0

    def next(self) -> str:
        if not self.voice_ids:
            self.cursor += 1
            return NO_VOICE
        voice_id = self.voice_ids[self.cursor % len(self.voice_ids)]
        self.cursor += 1
        return voice_id

    def reset(self) -> None:
        self.cursor = 0


class ObjectRegistry:
    """Label -> ObjectInfo mapping in first-seen order, plus the voice cursor.

    Every wake trigger calls ``reset()``, which clears the mapping and the
    cursor together and starts a new generation. A detection cycle remembers
    the generation it started under and ``register()`` refuses writes from
    any older generation, so a stale cycle cannot leak entries into a newer
    one. Callers serialize mutations with ``lock``.
    """

    def __init__(self, voice_ids: list[str]) -> None:
        self._objects: dict[str, ObjectInfo] = {}
        self._voices = VoiceRotation(voice_ids)
        self._generation = 0
        self.lock = asyncio.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def cursor(self) -> int:
        return self._voices.cursor

    def reset(self) -> int:
        """Clear all entries and the voice cursor. Returns the new generation."""
        self._objects = {}
        self._voices.reset()
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def next_voice(self) -> str:
        return self._voices.next()

    def register(self, label: str, persona: str, voice_id: str, generation: int) -> bool:
        """Add an entry unless the label is known or the generation is stale."""
        if not self.is_current(generation) or label in self._objects:
            return False
        self._objects[label] = ObjectInfo(persona=persona, voice_id=voice_id)
        return True

    def get(self, label: str) -> ObjectInfo | None:
        return self._objects.get(label)

    def voice_for(self, label: str) -> str:
        """Voice of ``label``, falling back to the first registered entry."""
        info = self._objects.get(label)
        if info is None:
            first = next(iter(self._objects.values()), None)
            return first.voice_id if first else NO_VOICE
        return info.voice_id

    def summary(self) -> str:
        return "\n".join(f"{label}: {info.persona}" for label, info in self._objects.items())

    def snapshot(self) -> dict[str, dict[str, str]]:
        return {
            label: {"persona": info.persona, "voice_id": info.voice_id}
            for label, info in self._objects.items()
        }

    def labels(self) -> list[str]:
        return list(self._objects)

    def __contains__(self, label: object) -> bool:
        return label in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[str]:
        return iter(self._objects)
