"""
Type definitions and data classes for the retry supervisor.

Contains per-run state, per-attempt outcomes, and the final result type
used throughout the supervision system.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Literal


@dataclass
class AttemptState:
    """Mutable loop state owned by one RetrySupervisor.start() call."""

    current_attempt: int = 0
    is_processing: bool = False
    last_error: BaseException | None = None


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one ProcessRunner execution.

    Exactly one of output/error is meaningful: output on success, error on
    failure. exit_code and stderr are kept for diagnostics when known.
    """

    output: str | None = None
    error: BaseException | None = None
    exit_code: int | None = None
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(cls, output: str, *, stderr: str = "") -> AttemptOutcome:
        return cls(output=output, exit_code=0, stderr=stderr)

    @classmethod
    def failed(
        cls,
        error: BaseException,
        *,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> AttemptOutcome:
        return cls(error=error, exit_code=exit_code, stderr=stderr)


@dataclass
class ProcessResult:
    """Final result of a supervised job."""

    success: bool
    attempts: int
    output: str | None = None
    error: BaseException | None = None
    attempt_history: list[dict[str, Any]] = field(default_factory=list)


FailureCategory = Literal["launch", "killed", "oom", "storage", "unknown"]


@dataclass(frozen=True, slots=True)
class FailureReason:
    failure_category: FailureCategory
    failure_message: str
    matched_signals: tuple[str, ...] = ()
