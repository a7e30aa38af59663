"""
Unit tests for supervisor failure classification.
"""

from transcode_runner.execution.supervisor_errors import ExecutionFault
from transcode_runner.execution.supervisor_errors import LaunchFault
from transcode_runner.execution.supervisor_errors import classify_failure_reason
from transcode_runner.execution.supervisor_errors import describe_exit


def test_classify_launch_fault():
    """Test that launch faults are labelled as such."""
    reason = classify_failure_reason(LaunchFault("failed to launch podman"))
    assert reason.failure_category == "launch"


def test_classify_oom_exit_137():
    """Test container OOM / SIGKILL exit code."""
    reason = classify_failure_reason(ExecutionFault("podman run exited with status 137", exit_code=137))
    assert reason.failure_category == "oom"


def test_classify_local_signal():
    """Test a locally terminated runtime process."""
    reason = classify_failure_reason(ExecutionFault("terminated", exit_code=-15))
    assert reason.failure_category == "killed"
    assert reason.failure_message == "terminated by SIGTERM"


def test_classify_storage_from_stderr():
    """Test storage failure detection from captured stderr."""
    error = ExecutionFault(
        "podman run exited with status 1",
        exit_code=1,
        stderr="fatal error: An error occurred (NoSuchKey) when calling the GetObject operation",
    )
    reason = classify_failure_reason(error)
    assert reason.failure_category == "storage"
    assert "no such key" in reason.matched_signals


def test_classify_storage_access_denied():
    """Test access denied detection from the message alone."""
    reason = classify_failure_reason(RuntimeError("AccessDenied: Access Denied"))
    assert reason.failure_category == "storage"


def test_classify_status_403_as_storage():
    reason = classify_failure_reason(
        ExecutionFault("podman run exited with status 1", exit_code=1, stderr="upload failed: HTTP 403")
    )
    assert reason.failure_category == "storage"
    assert reason.matched_signals == ("access denied",)


def test_classify_digits_containing_403_as_unknown():
    """Test that 403 inside a pid or byte count is not an access failure."""
    reason = classify_failure_reason(
        ExecutionFault(
            "podman run exited with status 1",
            exit_code=1,
            stderr="worker pid 14032 exited after writing 94031 bytes",
        )
    )
    assert reason.failure_category == "unknown"


def test_classify_unknown_generic():
    """Test that plain failures fall through to unknown."""
    reason = classify_failure_reason(RuntimeError("Permanent failure"))
    assert reason.failure_category == "unknown"
    assert reason.matched_signals == ()


def test_classify_none():
    reason = classify_failure_reason(None)
    assert reason.failure_category == "unknown"


def test_describe_exit():
    assert describe_exit(3) == "exited with status 3"
    assert describe_exit(-9) == "terminated by SIGKILL"
