"""Object detection through a hosted vision workflow."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx

from lumiere.common.errors import DetectionError
from lumiere.common.logging import get_logger
from lumiere.config import VisionConfig
from lumiere.session import PhotoData


def parse_labels(text: str) -> list[str]:
    """Split a comma-delimited label list such as ``"soda can,water bottle,"``.

    Labels are trimmed and blanks dropped. Duplicates and case are kept as
    returned; de-duplication happens at registration time.
    """
    return [token.strip() for token in text.split(",") if token.strip()]


def _unwrap(body: str) -> str:
    """Return the label text, unwrapping a JSON string or object if present."""
    try:
        decoded: Any = json.loads(body)
    except json.JSONDecodeError:
        return body

    if isinstance(decoded, str):
        return decoded
    if isinstance(decoded, dict):
        for key in ("objects", "output"):
            value = decoded.get(key)
            if isinstance(value, str):
                return value
            if isinstance(value, list):
                return ",".join(str(v) for v in value)
    return body


class ObjectDetector:
    """Sends a photo to the detection workflow and returns object labels."""

    def __init__(
        self,
        config: VisionConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._http = http_client
        self._owns_http = http_client is None
        self.logger = get_logger("object_detector")

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def detect(self, photo: PhotoData | str) -> list[str]:
        """Detect salient objects in a photo.

        Args:
            photo: Captured photo, or an image reference (data URI or URL).

        Returns:
            Object labels in the order returned. May be empty.

        Raises:
            DetectionError: If the workflow could not be called.
        """
        if not self.config.workflow_url:
            raise DetectionError("Detection workflow URL is not configured")

        image = photo.to_data_uri() if isinstance(photo, PhotoData) else photo
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        try:
            response = await self._client().post(
                self.config.workflow_url,
                headers=headers,
                json={"image": image},
            )
        except httpx.HTTPError as e:
            raise DetectionError(f"Detection request failed: {e}") from e

        if response.is_error:
            raise DetectionError(
                f"Detection request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        text = _unwrap(response.text.strip())
        labels = parse_labels(text)
        self.logger.info("objects_detected", raw=text, labels=labels)
        return labels


class MockObjectDetector:
    """Detector that returns a fixed label list, for mock mode."""

    def __init__(self, labels: list[str] | None = None) -> None:
        self.labels = labels if labels is not None else ["soda can", "water bottle", "desk lamp"]

    async def aclose(self) -> None:
        pass

    async def detect(self, photo: PhotoData | str) -> list[str]:
        await asyncio.sleep(0.02)  # Simulate inference
        return list(self.labels)
