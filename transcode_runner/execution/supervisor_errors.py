"""
Error taxonomy and failure analysis for the retry supervisor.

Every failure feeds the same retry path. classify_failure_reason() only
labels failures for attempt history and log lines.
"""

from __future__ import annotations

import re
import signal

from transcode_runner.execution.supervisor_types import FailureReason


class SupervisorError(Exception):
    """Base class for failures surfaced through ProcessResult.error."""


class LaunchFault(SupervisorError):
    """The external process could not be started at all."""


class ExecutionFault(SupervisorError):
    """The process started but exited non-zero."""

    def __init__(self, message: str, *, exit_code: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class RetriesExhausted(SupervisorError):
    """The attempt loop ended without a recorded cause."""


def describe_exit(exit_code: int) -> str:
    """Human-readable description of a process return code."""
    if exit_code < 0:
        try:
            name = signal.Signals(-exit_code).name
        except ValueError:
            name = f"signal {-exit_code}"
        return f"terminated by {name}"
    return f"exited with status {exit_code}"


def classify_failure_reason(error: BaseException | None) -> FailureReason:
    """Classify a failed attempt for diagnostics.

    Args:
        error: The error recorded for the attempt

    Returns:
        FailureReason with category, message, and matched signals
    """
    if error is None:
        return FailureReason(
            failure_category="unknown",
            failure_message="no error recorded",
        )

    if isinstance(error, LaunchFault):
        return FailureReason(
            failure_category="launch",
            failure_message="process could not be launched",
            matched_signals=(type(error).__name__,),
        )

    exit_code = getattr(error, "exit_code", None)
    stderr = str(getattr(error, "stderr", "") or "")
    combined_lower = f"{error}\n{stderr}".lower()

    # Runtime OOM kill surfaces as 137 from the container, SIGKILL locally
    if exit_code == 137 or "oomkilled" in combined_lower or "out of memory" in combined_lower:
        return FailureReason(
            failure_category="oom",
            failure_message="container killed (memory limit or SIGKILL)",
            matched_signals=(f"exit_code={exit_code}",),
        )

    if exit_code is not None and (exit_code < 0 or exit_code == 143):
        return FailureReason(
            failure_category="killed",
            failure_message=describe_exit(exit_code),
            matched_signals=(f"exit_code={exit_code}",),
        )

    storage_patterns = [
        (r"nosuchkey|no such key", "no such key"),
        (r"nosuchbucket|bucket does not exist", "no such bucket"),
        (r"access.?denied|forbidden|\b403\b", "access denied"),
        (r"signaturedoesnotmatch|invalidaccesskeyid", "bad credentials"),
        (r"could not connect to the endpoint|connection (refused|reset)", "endpoint unreachable"),
        (r"timed? out", "timeout"),
    ]
    storage_hits: list[str] = []
    for pattern, label in storage_patterns:
        if re.search(pattern, combined_lower):
            storage_hits.append(label)
    if storage_hits:
        return FailureReason(
            failure_category="storage",
            failure_message="object storage failure detected",
            matched_signals=tuple(storage_hits),
        )

    return FailureReason(
        failure_category="unknown",
        failure_message="unknown failure",
        matched_signals=(),
    )
