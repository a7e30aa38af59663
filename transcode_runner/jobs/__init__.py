"""Job description models."""

from transcode_runner.jobs.models import DEFAULT_CONTAINER_IMAGE
from transcode_runner.jobs.models import DEFAULT_REGION
from transcode_runner.jobs.models import JobSpec

__all__ = [
    "DEFAULT_CONTAINER_IMAGE",
    "DEFAULT_REGION",
    "JobSpec",
]
