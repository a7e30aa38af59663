"""
Job supervisor with bounded retry and cooperative cancellation.

Runs one containerized job through a ProcessRunner, retrying failed
attempts after a fixed delay until the retry policy is exhausted, and
reports lifecycle events through caller-supplied callbacks.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any
from typing import Callable

from transcode_runner.container.process import ProcessRunner
from transcode_runner.execution.supervisor_errors import RetriesExhausted
from transcode_runner.execution.supervisor_errors import classify_failure_reason
from transcode_runner.execution.supervisor_types import AttemptOutcome
from transcode_runner.execution.supervisor_types import AttemptState
from transcode_runner.execution.supervisor_types import ProcessResult
from transcode_runner.jobs.models import JobSpec
from transcode_runner.log_format import format_log
from transcode_runner.log_format import logging_level
from transcode_runner.security.token_redaction import redact_exception
from transcode_runner.security.token_redaction import register_secret
from transcode_runner.security.token_redaction import unregister_secret


logger = logging.getLogger(__name__)


def default_job_id() -> str:
    return f"run-{int(time.time() * 1000)}"


class RetrySupervisor:
    """Supervises one job with retry and stop capabilities.

    Event ordering per start() call:
    - on_start fires exactly once, first
    - on_retry(attempt_index, error) fires once per scheduled retry, before
      the next attempt launches
    - exactly one of on_success(output) / on_error(error) fires, last

    start() blocks the calling thread; stop() is meant to be called from
    another thread. Overlapping start() calls on one instance are not
    supported; use one supervisor per concurrent job.
    """

    def __init__(
        self,
        spec: JobSpec,
        on_start: Callable[[], None] | None = None,
        on_success: Callable[[str], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
        on_retry: Callable[[int, BaseException], None] | None = None,
        on_log: Callable[[str], None] | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            spec: Immutable job configuration, including the retry policy
            on_start: Callback when processing starts
            on_success: Callback with the container's stdout on success
            on_error: Callback with the final error on failure
            on_retry: Callback for scheduled retries (attempt_index, error)
            on_log: Optional sink for formatted log lines
            runner: Process runner (a fresh ProcessRunner by default)
        """
        self._spec = spec
        self._on_start = on_start
        self._on_success = on_success
        self._on_error = on_error
        self._on_retry = on_retry
        self._on_log = on_log
        self._runner = runner or ProcessRunner()

        self._state = AttemptState()
        self._stop = threading.Event()

    @property
    def spec(self) -> JobSpec:
        return self._spec

    @property
    def is_processing(self) -> bool:
        return self._state.is_processing

    @property
    def current_attempt(self) -> int:
        return self._state.current_attempt

    @property
    def last_error(self) -> BaseException | None:
        return self._state.last_error

    def stop(self) -> None:
        """Kill the in-flight attempt and suppress further retries.

        Idempotent; does nothing beyond clearing is_processing when idle.
        """
        if self._state.is_processing:
            self._stop.set()
            self._log("stop", "INFO", "stop requested")
        self._runner.kill()
        self._state.is_processing = False

    def start(self, job_id: str | None = None) -> ProcessResult:
        """Run the job until it succeeds or the retry policy is exhausted.

        Never raises; failures are returned as ProcessResult(success=False).

        Args:
            job_id: Identifier handed to the workflow script (generated
                when omitted)

        Returns:
            ProcessResult with output or error, attempt count and history
        """
        secrets = (self._spec.secret_access_key, self._spec.aes_key)
        for secret in secrets:
            register_secret(secret)
        try:
            return self._run_job(job_id or default_job_id())
        finally:
            for secret in secrets:
                unregister_secret(secret)

    def _run_job(self, job_id: str) -> ProcessResult:
        max_retries = self._spec.max_retries
        delay_s = self._spec.retry_delay_seconds

        self._stop.clear()
        self._runner.reset()
        state = AttemptState(is_processing=True)
        self._state = state
        self._emit("on_start", self._on_start)
        history: list[dict[str, Any]] = []

        self._log(
            "task",
            "INFO",
            f"job {job_id}: {self._spec.source_uri} -> {self._spec.destination_uri} "
            f"(max_retries={max_retries}, retry_delay_ms={self._spec.retry_delay_ms})",
        )

        while state.current_attempt <= max_retries:
            if self._stop.is_set():
                self._log("task", "INFO", "attempt skipped due to stop")
                break

            attempt = state.current_attempt
            self._log("attempt", "INFO", f"attempt {attempt + 1}/{max_retries + 1} started")
            outcome = self._run_attempt(job_id)

            if outcome.success:
                output = outcome.output or ""
                history.append(
                    {
                        "attempt_number": attempt,
                        "exit_code": outcome.exit_code,
                    }
                )
                self._log("attempt", "INFO", f"attempt {attempt + 1} succeeded")
                self._emit("on_success", self._on_success, output)
                state.is_processing = False
                return ProcessResult(
                    success=True,
                    output=output,
                    attempts=attempt + 1,
                    attempt_history=history,
                )

            state.last_error = outcome.error
            failure = classify_failure_reason(outcome.error)
            history.append(
                {
                    "attempt_number": attempt,
                    "exit_code": outcome.exit_code,
                    "failure_category": failure.failure_category,
                    "failure_message": failure.failure_message,
                    "matched_signals": list(failure.matched_signals),
                }
            )
            self._log(
                "attempt",
                "WARN",
                f"attempt {attempt + 1} failed ({failure.failure_category}): "
                f"{redact_exception(outcome.error)}",
            )

            if self._stop.is_set():
                self._log("task", "INFO", "retry skipped due to stop")
                break

            if attempt >= max_retries:
                break

            self._emit("on_retry", self._on_retry, attempt, outcome.error)
            self._log("retry", "INFO", f"retrying in {delay_s:g}s")
            if self._stop.wait(delay_s):
                self._log("retry", "INFO", "retry delay aborted by stop")
                break
            state.current_attempt += 1

        final_error = state.last_error
        if final_error is None:
            if self._stop.is_set():
                final_error = RetriesExhausted("Stopped before any attempt completed")
            else:
                final_error = RetriesExhausted("Max retries reached")
        self._log(
            "task",
            "ERROR",
            f"job {job_id} failed after {state.current_attempt + 1} attempt(s): "
            f"{redact_exception(final_error)}",
        )
        self._emit("on_error", self._on_error, final_error)
        state.is_processing = False
        return ProcessResult(
            success=False,
            error=final_error,
            attempts=state.current_attempt + 1,
            attempt_history=history,
        )

    def _run_attempt(self, job_id: str) -> AttemptOutcome:
        try:
            outcome = self._runner.execute(self._spec, job_id)
        except Exception as exc:
            return AttemptOutcome.failed(exc)
        return outcome

    def _emit(self, name: str, callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as exc:
            self._log("events", "ERROR", f"{name} callback raised: {redact_exception(exc)}")

    def _log(self, subscope: str, level: str, message: str) -> None:
        line = format_log("supervisor", subscope, level, message)
        if not line:
            return
        logger.log(logging_level(line), line)
        if self._on_log is None:
            return
        try:
            self._on_log(line)
        except Exception:
            logger.exception("on_log callback raised")
