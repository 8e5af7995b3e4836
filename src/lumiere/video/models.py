"""Data types for image-to-video generation jobs."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

MAX_SEED = 1_000_000_000


class JobStatus(str, Enum):
    """Remote task status.

    Only SUCCEEDED and FAILED are terminal; every other value, including
    ones this client does not know about, means "still running".
    """

    PENDING = "PENDING"
    THROTTLED = "THROTTLED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> JobStatus:
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass
class JobSpec:
    """Everything needed to submit one image-to-video job."""

    prompt_image: str  # data URI or https URL
    prompt_text: str
    model: str = "gen4_turbo"
    ratio: str = "1280:720"
    duration: int = 5
    seed: int | None = None

    def to_payload(self) -> dict[str, Any]:
        seed = self.seed if self.seed is not None else random.randrange(MAX_SEED)
        return {
            "promptImage": self.prompt_image,
            "seed": seed,
            "model": self.model,
            "promptText": self.prompt_text,
            "duration": self.duration,
            "ratio": self.ratio,
        }


@dataclass
class GenerationJob:
    """Snapshot of a remote job as last reported by the service."""

    id: str
    status: JobStatus
    output: list[str] = field(default_factory=list)
    failure: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, job_id: str, body: dict[str, Any]) -> GenerationJob:
        output = body.get("output") or []
        if isinstance(output, str):
            output = [output]
        return cls(
            id=str(body.get("id") or job_id),
            status=JobStatus.parse(body.get("status")),
            output=[str(url) for url in output],
            failure=body.get("failure"),
            raw=body,
        )

    @property
    def output_url(self) -> str | None:
        return self.output[0] if self.output else None


@dataclass
class VideoResult:
    """A finished, downloaded video."""

    job_id: str
    video_url: str
    path: Path
    elapsed_seconds: float
    polls: int
