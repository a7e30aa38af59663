"""Container launch and termination for single job attempts."""

from transcode_runner.container.process import ProcessRunner
from transcode_runner.container.process import RunningHandle
from transcode_runner.container.process import build_run_args
from transcode_runner.container.process import build_run_env

__all__ = [
    "ProcessRunner",
    "RunningHandle",
    "build_run_args",
    "build_run_env",
]
