"""Exception hierarchy for Lumiere."""

from __future__ import annotations

from typing import Any


class LumiereError(Exception):
    """Base class for all Lumiere errors."""


class ConfigError(LumiereError):
    """Required configuration is missing or invalid."""

    def __init__(self, missing: list[str], message: str | None = None) -> None:
        self.missing = list(missing)
        super().__init__(
            message or f"Missing required settings: {', '.join(self.missing)}"
        )


class ApiError(LumiereError):
    """A remote API call failed (transport error or non-success status)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class DetectionError(ApiError):
    """The object detection workflow could not be called."""


class PhotoCaptureError(LumiereError):
    """The session camera could not deliver a photo."""


class ImageReadError(LumiereError):
    """A source image could not be read from disk."""


class JobFailedError(LumiereError):
    """A remote generation job ended without a usable result."""

    def __init__(self, message: str, job_id: str | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id


class JobTimeoutError(LumiereError):
    """A remote generation job did not finish within the configured limits."""

    def __init__(self, job_id: str, elapsed_seconds: float, polls: int) -> None:
        super().__init__(
            f"Task {job_id} did not finish after {polls} polls "
            f"({elapsed_seconds:.1f}s)"
        )
        self.job_id = job_id
        self.elapsed_seconds = elapsed_seconds
        self.polls = polls
