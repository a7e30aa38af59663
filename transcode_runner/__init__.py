"""Retry-driven supervisor for containerized image-to-DASH transcoding jobs."""

from transcode_runner.container.process import ProcessRunner
from transcode_runner.execution.supervisor import RetrySupervisor
from transcode_runner.execution.supervisor_types import ProcessResult
from transcode_runner.jobs.models import JobSpec

# Names the job was historically exposed under.
ImageProcessor = RetrySupervisor
ImageProcessorOptions = JobSpec

__all__ = [
    "ImageProcessor",
    "ImageProcessorOptions",
    "JobSpec",
    "ProcessResult",
    "ProcessRunner",
    "RetrySupervisor",
]
