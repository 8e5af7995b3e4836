"""Image-to-video generation: submit a job, poll it, download the result."""

from lumiere.video.client import VideoJobClient
from lumiere.video.datauri import media_type_for, resolve_image_reference, to_data_uri
from lumiere.video.diagnostics import DiagnosticsRecorder
from lumiere.video.models import GenerationJob, JobSpec, JobStatus, VideoResult
from lumiere.video.workflow import VideoGenerationWorkflow, build_workflow

__all__ = [
    "VideoJobClient",
    "VideoGenerationWorkflow",
    "build_workflow",
    "DiagnosticsRecorder",
    "GenerationJob",
    "JobSpec",
    "JobStatus",
    "VideoResult",
    "to_data_uri",
    "media_type_for",
    "resolve_image_reference",
]
