"""Interfaces to the wearable session, plus a mock session for development."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from lumiere.common.errors import PhotoCaptureError
from lumiere.common.logging import get_logger


@dataclass
class PhotoData:
    """Photo captured by the glasses camera."""

    data: bytes
    mime_type: str = "image/jpeg"

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass
class TranscriptionData:
    """Speech transcription delivered by the session."""

    text: str
    is_final: bool = True


@dataclass
class ButtonPress:
    """Hardware button press on the glasses."""

    press_type: str
    button_id: str = "main"


@dataclass
class SpokenLine:
    """A line the mock session was asked to speak."""

    text: str
    voice_id: str | None = None


@runtime_checkable
class Session(Protocol):
    """What Lumiere needs from a connected wearable session."""

    session_id: str

    async def speak(self, text: str, voice_id: str | None = None) -> None:
        ...

    async def request_photo(self) -> PhotoData:
        ...


class MockSession:
    """Session stand-in that logs speech and serves canned photos.

    Photos come from ``photo_path`` when given, otherwise a generated solid
    colour JPEG. Setting ``photo_error`` makes every capture fail.
    """

    def __init__(
        self,
        session_id: str = "mock-session",
        photo_path: Path | str | None = None,
        photo_error: Exception | None = None,
    ) -> None:
        self.session_id = session_id
        self.photo_path = Path(photo_path) if photo_path else None
        self.photo_error = photo_error
        self.spoken: list[SpokenLine] = []
        self.photos_taken = 0
        self.logger = get_logger("mock_session", session_id=session_id)

    async def speak(self, text: str, voice_id: str | None = None) -> None:
        self.spoken.append(SpokenLine(text=text, voice_id=voice_id))
        self.logger.info("mock_speak", text=text, voice_id=voice_id)

    async def request_photo(self) -> PhotoData:
        self.photos_taken += 1
        if self.photo_error is not None:
            raise PhotoCaptureError(str(self.photo_error)) from self.photo_error

        if self.photo_path is not None:
            try:
                data = self.photo_path.read_bytes()
            except OSError as e:
                raise PhotoCaptureError(f"Cannot read {self.photo_path}: {e}") from e
            mime_type = "image/png" if self.photo_path.suffix.lower() == ".png" else "image/jpeg"
            return PhotoData(data=data, mime_type=mime_type)

        # Generate a simple mock image
        from PIL import Image

        img = Image.new("RGB", (640, 480), color=(73, 109, 137))
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=85)
        return PhotoData(data=buffer.getvalue(), mime_type="image/jpeg")

    @property
    def last_spoken(self) -> SpokenLine | None:
        return self.spoken[-1] if self.spoken else None
