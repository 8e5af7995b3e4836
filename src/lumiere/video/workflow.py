"""Submit / poll / retrieve driver for image-to-video jobs."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Awaitable, Callable

from lumiere.common.errors import JobFailedError, JobTimeoutError
from lumiere.common.logging import get_logger
from lumiere.config import VideoConfig
from lumiere.video.client import VideoJobClient
from lumiere.video.diagnostics import DiagnosticsRecorder
from lumiere.video.models import GenerationJob, JobSpec, JobStatus, VideoResult

Sleep = Callable[[float], Awaitable[None]]


class VideoGenerationWorkflow:
    """Drive one job from submission to a file on disk.

    Polling repeats every ``poll_interval_seconds`` until the job reaches a
    terminal status. With neither ``max_wait_seconds`` nor ``max_polls``
    configured it waits indefinitely, otherwise it raises JobTimeoutError.
    Any failed request aborts the whole workflow without retrying.
    """

    def __init__(
        self,
        client: VideoJobClient,
        config: VideoConfig,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.config = config
        self._sleep = sleep
        self._clock = clock
        self.logger = get_logger("video_workflow")

    @property
    def diagnostics(self) -> DiagnosticsRecorder | None:
        return self.client.diagnostics

    async def wait_for_completion(self, job_id: str) -> tuple[GenerationJob, int]:
        """Poll until the job succeeds. Returns the final job and the poll count.

        Raises:
            ApiError: If a status request fails.
            JobFailedError: If the job fails or succeeds without output.
            JobTimeoutError: If a configured limit is exceeded.
        """
        started = self._clock()
        polls = 0

        while True:
            polls += 1
            job = await self.client.get_job(job_id)
            self.logger.debug("job_polled", job_id=job_id, poll=polls, status=job.status.value)

            if job.status is JobStatus.SUCCEEDED:
                if not job.output:
                    raise JobFailedError("No output URL returned from successful task", job_id)
                self.logger.info("job_succeeded", job_id=job_id, polls=polls, url=job.output_url)
                return job, polls

            if job.status is JobStatus.FAILED:
                reason = f": {job.failure}" if job.failure else ""
                raise JobFailedError(f"Video generation failed{reason}", job_id)

            elapsed = self._clock() - started
            if self.config.max_polls is not None and polls >= self.config.max_polls:
                raise JobTimeoutError(job_id, elapsed, polls)
            if (
                self.config.max_wait_seconds is not None
                and elapsed + self.config.poll_interval_seconds > self.config.max_wait_seconds
            ):
                raise JobTimeoutError(job_id, elapsed, polls)

            self.logger.info(
                "job_pending",
                job_id=job_id,
                status=job.status.value,
                wait_seconds=self.config.poll_interval_seconds,
            )
            await self._sleep(self.config.poll_interval_seconds)

    def record_failure(self, error: BaseException) -> None:
        """Log a failed generation and write it to the diagnostics directory."""
        self.logger.error(
            "video_generation_failed", error=str(error), error_type=type(error).__name__
        )
        if self.diagnostics:
            self.diagnostics.record_error(error)

    async def run(self, spec: JobSpec, destination: Path | str) -> VideoResult:
        """Submit ``spec``, wait for the result and download it to ``destination``.

        On failure the error is written to the diagnostics directory (when
        configured) and re-raised.
        """
        started = time.time()
        try:
            job_id = await self.client.submit(spec)
            job, polls = await self.wait_for_completion(job_id)
            video_url = job.output[0]
            path = await self.client.download(video_url, destination)
        except Exception as e:
            self.record_failure(e)
            raise

        result = VideoResult(
            job_id=job_id,
            video_url=video_url,
            path=path,
            elapsed_seconds=time.time() - started,
            polls=polls,
        )
        self.logger.info(
            "video_generation_complete",
            job_id=job_id,
            path=str(path),
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result


def build_workflow(
    config: VideoConfig,
    diagnostics_dir: Path | str | None = None,
) -> VideoGenerationWorkflow:
    """Create a workflow with its own HTTP client and optional diagnostics."""
    directory = diagnostics_dir or config.diagnostics_dir
    diagnostics = DiagnosticsRecorder(directory) if directory else None
    return VideoGenerationWorkflow(VideoJobClient(config, diagnostics=diagnostics), config)
