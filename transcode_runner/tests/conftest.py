"""Shared test fixtures and utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from typing import Callable

import pytest

from transcode_runner.jobs.models import JobSpec
from transcode_runner.security.token_redaction import clear_registered_secrets


@pytest.fixture(autouse=True)
def _reset_registered_secrets():
    yield
    clear_registered_secrets()


@pytest.fixture
def workflow_script(tmp_path: Path) -> Path:
    """Create a stand-in workflow script on disk."""
    script = tmp_path / "podman_workflow.sh"
    script.write_text("#!/bin/sh\necho done\n", encoding="utf-8")
    return script


@pytest.fixture
def make_spec(workflow_script: Path) -> Callable[..., JobSpec]:
    """Build a JobSpec with test defaults, overridable per test."""

    def _make(**overrides: Any) -> JobSpec:
        values: dict[str, Any] = {
            "endpoint_url": "http://localhost:9000",
            "access_key_id": "minioadmin",
            "secret_access_key": "minioadmin-secret",
            "source_bucket": "test-bucket",
            "source_path": "source/test.jpg",
            "destination_bucket": "test-bucket",
            "destination_path": "output/",
            "aes_key": "fedcba9876543210fedcba9876543210",
            "aes_iv": "0123456789abcdef0123456789abcdef",
            "container_image": "test-image",
            "workflow_script": workflow_script,
            "max_retries": 1,
            "retry_delay_ms": 0,
        }
        values.update(overrides)
        return JobSpec(**values)

    return _make


class EventRecorder:
    """Records supervisor callbacks in call order."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def on_start(self) -> None:
        self.events.append(("start",))

    def on_success(self, output: str) -> None:
        self.events.append(("success", output))

    def on_error(self, error: BaseException) -> None:
        self.events.append(("error", error))

    def on_retry(self, attempt: int, error: BaseException) -> None:
        self.events.append(("retry", attempt, error))

    def names(self) -> list[str]:
        return [event[0] for event in self.events]

    def retries(self) -> list[tuple[Any, ...]]:
        return [event for event in self.events if event[0] == "retry"]

    def callbacks(self) -> dict[str, Callable[..., None]]:
        return {
            "on_start": self.on_start,
            "on_success": self.on_success,
            "on_error": self.on_error,
            "on_retry": self.on_retry,
        }


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
