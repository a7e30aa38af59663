from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from transcode_runner.jobs.models import DEFAULT_CONTAINER_IMAGE
from transcode_runner.jobs.models import JobSpec


def test_defaults_apply() -> None:
    spec = JobSpec(
        endpoint_url="http://localhost:9000",
        access_key_id="a",
        secret_access_key="b",
        source_bucket="src",
        source_path="in.jpg",
        destination_bucket="dst",
        destination_path="out/",
        aes_key="k",
        aes_iv="iv",
    )

    assert spec.region == "us-east-1"
    assert spec.clear_lead == 0
    assert spec.max_retries == 3
    assert spec.retry_delay_ms == 1000
    assert spec.retry_delay_seconds == 1.0
    assert spec.container_image == DEFAULT_CONTAINER_IMAGE
    assert spec.container_runtime == "podman"


def test_locators(make_spec) -> None:
    spec = make_spec(source_path="/images/a.jpg", destination_path="dash/a/")

    assert spec.source_uri == "s3://test-bucket/images/a.jpg"
    assert spec.destination_uri == "s3://test-bucket/dash/a/"


def test_spec_is_immutable(make_spec) -> None:
    spec = make_spec()

    with pytest.raises(ValidationError):
        spec.max_retries = 10


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_retries": -1},
        {"retry_delay_ms": -5},
        {"clear_lead": -1},
        {"source_bucket": "  "},
        {"unknown_option": True},
    ],
)
def test_invalid_values_rejected(make_spec, overrides) -> None:
    with pytest.raises(ValidationError):
        make_spec(**overrides)


def test_relative_workflow_script_resolves_against_cwd(make_spec, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    spec = make_spec(workflow_script=Path("podman_workflow.sh"))

    assert spec.resolved_workflow_script() == tmp_path / "podman_workflow.sh"
