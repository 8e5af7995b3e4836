"""HTTP client for the image-to-video job API."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx

from lumiere.common.errors import ApiError
from lumiere.common.logging import get_logger
from lumiere.config import VideoConfig
from lumiere.video.diagnostics import DiagnosticsRecorder
from lumiere.video.models import GenerationJob, JobSpec


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError:
        return response.text


def _remote_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback


class VideoJobClient:
    """Submit, check and download image-to-video tasks.

    Example:
        async with VideoJobClient(config.video) as client:
            job_id = await client.submit(spec)
            job = await client.get_job(job_id)
    """

    def __init__(
        self,
        config: VideoConfig,
        http_client: httpx.AsyncClient | None = None,
        diagnostics: DiagnosticsRecorder | None = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.diagnostics = diagnostics
        self._http = http_client
        self._owns_http = http_client is None
        self.logger = get_logger("video_client")

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> VideoJobClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
            "X-Runway-Version": self.config.api_version,
        }

    async def submit(self, spec: JobSpec) -> str:
        """Start a generation task. Returns the task id.

        Raises:
            ApiError: On transport failure, a non-success status, or a
                response without an ``id``.
        """
        payload = spec.to_payload()
        url = f"{self.base_url}/image_to_video"
        self.logger.info(
            "submitting_job",
            url=url,
            api_key=self.config.api_key,
            model=payload["model"],
            ratio=payload["ratio"],
            duration=payload["duration"],
            seed=payload["seed"],
            prompt_image=payload["promptImage"][:50] + "...",
        )

        try:
            response = await self._client().post(url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to start video generation: {e}") from e

        body = _json_body(response)
        if self.diagnostics:
            self.diagnostics.record_submission(response, body)

        if response.is_error:
            raise ApiError(
                _remote_message(body, "Failed to start video generation"),
                status_code=response.status_code,
                body=body,
            )

        job_id = body.get("id") if isinstance(body, dict) else None
        if not job_id:
            raise ApiError(
                "Video generation response did not include a task id",
                status_code=response.status_code,
                body=body,
            )

        self.logger.info("job_submitted", job_id=job_id)
        return str(job_id)

    async def get_job(self, job_id: str) -> GenerationJob:
        """Fetch the current state of a task.

        Raises:
            ApiError: On transport failure or a non-success status.
        """
        try:
            response = await self._client().get(
                f"{self.base_url}/tasks/{job_id}", headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to check task status: {e}") from e

        body = _json_body(response)
        if self.diagnostics:
            self.diagnostics.record_poll(response, body)

        if response.is_error or not isinstance(body, dict):
            raise ApiError(
                _remote_message(body, "Failed to check task status"),
                status_code=response.status_code,
                body=body,
            )

        return GenerationJob.from_response(job_id, body)

    async def download(self, url: str, destination: Path | str) -> Path:
        """Save the bytes at ``url`` to ``destination`` verbatim.

        Raises:
            ApiError: On transport failure or a non-success status.
        """
        destination = Path(destination)
        try:
            response = await self._client().get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to download video: {e}") from e

        if response.is_error:
            raise ApiError(
                f"Failed to download video: {response.reason_phrase}",
                status_code=response.status_code,
            )

        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        self.logger.info(
            "video_saved",
            path=str(destination),
            size_bytes=len(response.content),
            size_mb=round(len(response.content) / 1024 / 1024, 2),
        )
        return destination
