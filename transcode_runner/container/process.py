"""Launches one containerized transcoding attempt via subprocess.

ProcessRunner owns the live child process for exactly one attempt at a
time. It never retries; the retry policy belongs to RetrySupervisor.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading

from typing import Any
from typing import Callable

from transcode_runner.container.utils import _provision_workflow_script
from transcode_runner.container.utils import _remove_workflow_dir
from transcode_runner.execution.supervisor_errors import ExecutionFault
from transcode_runner.execution.supervisor_errors import LaunchFault
from transcode_runner.execution.supervisor_errors import describe_exit
from transcode_runner.execution.supervisor_types import AttemptOutcome
from transcode_runner.jobs.models import JobSpec
from transcode_runner.log_format import format_log
from transcode_runner.log_format import wrap_container_log
from transcode_runner.security.token_redaction import redact_exception
from transcode_runner.security.token_redaction import redact_tokens


logger = logging.getLogger(__name__)

CONTAINER_SCRIPT_PATH = "/app/workflow.sh"
MEMORY_LIMIT = "256m"
KILL_GRACE_SECONDS = 5.0

# Passed as bare `-e NAME` so the runtime copies values from our env and the
# secrets never show up in the argument vector.
STORAGE_ENV_NAMES = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_DEFAULT_REGION",
    "AWS_ENDPOINT_URL",
)

_STDERR_TAIL_CHARS = 500


def build_run_args(spec: JobSpec, job_id: str, script_path: str) -> list[str]:
    """Build the container runtime arguments (without the runtime binary)."""
    args = [
        "run",
        "--rm",
        "--network=host",
        f"--memory={MEMORY_LIMIT}",
        f"--memory-swap={MEMORY_LIMIT}",
    ]
    for name in STORAGE_ENV_NAMES:
        args.extend(["-e", name])
    args.extend(["-v", f"{script_path}:{CONTAINER_SCRIPT_PATH}:ro"])
    args.append(spec.container_image)
    args.extend(
        [
            CONTAINER_SCRIPT_PATH,
            spec.source_uri,
            spec.destination_uri,
            spec.aes_iv,
            spec.aes_key,
            str(spec.clear_lead),
            job_id,
        ]
    )
    return args


def build_run_env(spec: JobSpec, base_env: dict[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    env["AWS_ACCESS_KEY_ID"] = spec.access_key_id
    env["AWS_SECRET_ACCESS_KEY"] = spec.secret_access_key
    env["AWS_DEFAULT_REGION"] = spec.region
    env["AWS_ENDPOINT_URL"] = spec.endpoint_url
    return env


def _stderr_tail(stderr: str) -> str:
    lines = [line.strip() for line in (stderr or "").splitlines() if line.strip()]
    if not lines:
        return ""
    tail = lines[-1]
    if len(tail) > _STDERR_TAIL_CHARS:
        tail = tail[-_STDERR_TAIL_CHARS:]
    return tail


class RunningHandle:
    """Ownership token for the in-flight child process of one attempt."""

    def __init__(self, proc: subprocess.Popen, job_id: str) -> None:
        self._proc = proc
        self.job_id = job_id

    @property
    def pid(self) -> int | None:
        return getattr(self._proc, "pid", None)

    def has_exited(self) -> bool:
        return self._proc.poll() is not None

    def terminate(self, grace_seconds: float = KILL_GRACE_SECONDS) -> None:
        """SIGTERM the process, escalating to SIGKILL after grace_seconds."""
        if self.has_exited():
            return
        try:
            self._proc.terminate()
        except ProcessLookupError:
            return
        try:
            self._proc.wait(timeout=grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning(
                format_log(
                    "runner",
                    "kill",
                    "WARN",
                    f"pid {self.pid} ignored SIGTERM for {grace_seconds:.0f}s; sending SIGKILL",
                )
            )
            try:
                self._proc.kill()
            except ProcessLookupError:
                pass


class ProcessRunner:
    """Runs one container attempt at a time and supports killing it."""

    def __init__(
        self,
        *,
        popen: Callable[..., Any] = subprocess.Popen,
        kill_grace_seconds: float = KILL_GRACE_SECONDS,
    ) -> None:
        self._popen = popen
        self._kill_grace_seconds = kill_grace_seconds
        self._lock = threading.Lock()
        self._handle: RunningHandle | None = None
        self._cancelled = False

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._handle is not None

    def reset(self) -> None:
        """Clear a cancellation left by kill() so new attempts may launch."""
        with self._lock:
            self._cancelled = False

    def execute(self, spec: JobSpec, job_id: str) -> AttemptOutcome:
        """Run one attempt of the job and wait for it to settle.

        Args:
            spec: Job to run.
            job_id: Identifier passed to the workflow script.

        Returns:
            AttemptOutcome.succeeded(stdout) on exit status zero, otherwise
            AttemptOutcome.failed() carrying a LaunchFault or ExecutionFault.
        """
        if self._is_cancelled():
            return self._cancelled_outcome(spec)
        try:
            tmp_dir, script_path = _provision_workflow_script(
                spec.resolved_workflow_script(), job_id
            )
        except OSError as exc:
            return AttemptOutcome.failed(
                LaunchFault(f"could not provision workflow script: {redact_exception(exc)}")
            )
        try:
            return self._run(spec, job_id, script_path)
        finally:
            _remove_workflow_dir(tmp_dir)

    def kill(self) -> None:
        """Terminate the in-flight attempt and refuse further launches.

        A kill that lands before the child exists still cancels it: the launch
        path sees the flag and terminates the fresh process. Call reset()
        before reusing the runner. Safe to call when idle.
        """
        with self._lock:
            self._cancelled = True
            handle = self._handle
            self._handle = None
        if handle is None:
            return
        logger.info(
            format_log("runner", "kill", "INFO", f"stopping job {handle.job_id} (pid {handle.pid})")
        )
        handle.terminate(self._kill_grace_seconds)

    def _run(self, spec: JobSpec, job_id: str, script_path: str) -> AttemptOutcome:
        runtime = spec.container_runtime
        argv = [runtime, *build_run_args(spec, job_id, script_path)]
        logger.debug(format_log("runner", "launch", "DEBUG", redact_tokens(shlex.join(argv))))

        try:
            proc = self._popen(
                argv,
                stdin=None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=build_run_env(spec),
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            return AttemptOutcome.failed(
                LaunchFault(f"failed to launch {runtime}: {redact_exception(exc)}")
            )

        handle = RunningHandle(proc, job_id)
        with self._lock:
            cancelled = self._cancelled
            if not cancelled:
                self._handle = handle
        if cancelled:
            logger.info(
                format_log(
                    "runner",
                    "kill",
                    "INFO",
                    f"job {job_id} cancelled during launch; stopping pid {handle.pid}",
                )
            )
            handle.terminate(self._kill_grace_seconds)
            proc.communicate()
            return self._cancelled_outcome(spec, exit_code=proc.returncode)

        try:
            stdout, stderr = proc.communicate()
        finally:
            with self._lock:
                if self._handle is handle:
                    self._handle = None

        stderr = redact_tokens(stderr or "")
        for line in stderr.splitlines():
            if line.strip():
                logger.debug(wrap_container_log(job_id, "stderr", line))

        exit_code = proc.returncode
        if exit_code == 0:
            return AttemptOutcome.succeeded(stdout or "", stderr=stderr)

        message = f"{runtime} run {describe_exit(exit_code)}"
        tail = _stderr_tail(stderr)
        if tail:
            message = f"{message}: {tail}"
        return AttemptOutcome.failed(
            ExecutionFault(message, exit_code=exit_code, stderr=stderr),
            exit_code=exit_code,
            stderr=stderr,
        )

    def _is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def _cancelled_outcome(self, spec: JobSpec, *, exit_code: int | None = None) -> AttemptOutcome:
        message = f"{spec.container_runtime} run cancelled by stop request"
        return AttemptOutcome.failed(
            ExecutionFault(message, exit_code=exit_code),
            exit_code=exit_code,
        )
