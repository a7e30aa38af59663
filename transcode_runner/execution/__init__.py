"""
Job execution supervision module.

Provides the result types, error taxonomy and failure classification used
by the retry supervisor. The supervisor itself lives in
transcode_runner.execution.supervisor.
"""

from transcode_runner.execution.supervisor_errors import ExecutionFault
from transcode_runner.execution.supervisor_errors import LaunchFault
from transcode_runner.execution.supervisor_errors import RetriesExhausted
from transcode_runner.execution.supervisor_errors import SupervisorError
from transcode_runner.execution.supervisor_errors import classify_failure_reason
from transcode_runner.execution.supervisor_types import AttemptOutcome
from transcode_runner.execution.supervisor_types import AttemptState
from transcode_runner.execution.supervisor_types import FailureReason
from transcode_runner.execution.supervisor_types import ProcessResult

__all__ = [
    "AttemptOutcome",
    "AttemptState",
    "ExecutionFault",
    "FailureReason",
    "LaunchFault",
    "ProcessResult",
    "RetriesExhausted",
    "SupervisorError",
    "classify_failure_reason",
]
