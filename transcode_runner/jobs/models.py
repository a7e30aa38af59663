"""Pydantic model describing one supervised transcoding job.

A JobSpec is built once, handed to a RetrySupervisor, and never mutated.
It carries everything the external container needs (storage locations,
credentials, encryption parameters) plus the retry policy that bounds how
often the supervisor relaunches it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REGION = "us-east-1"
DEFAULT_CONTAINER_IMAGE = "localhost/image-to-dash:latest"
DEFAULT_CONTAINER_RUNTIME = "podman"
DEFAULT_WORKFLOW_SCRIPT = Path("podman_workflow.sh")


class JobSpec(BaseModel):
    """Immutable configuration for one supervised job.

    Attributes:
        endpoint_url: S3-compatible endpoint the container talks to.
        access_key_id: Storage access key id.
        secret_access_key: Storage secret access key.
        region: Storage region (default: "us-east-1").
        source_bucket: Bucket holding the source object.
        source_path: Object path of the source inside source_bucket.
        destination_bucket: Bucket receiving the result.
        destination_path: Object path (or prefix) of the result.
        aes_key: Content encryption key, hex encoded.
        aes_iv: Content encryption IV, hex encoded.
        clear_lead: Seconds of unencrypted content before encryption starts.
        max_retries: Additional attempts after the first failure.
        retry_delay_ms: Fixed delay between attempts in milliseconds.
        container_image: Image the job runs in.
        container_runtime: CLI used to launch the container (podman or docker).
        workflow_script: Host path of the entry-point script mounted into the
            container. Relative paths resolve against the working directory
            at launch time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    region: str = DEFAULT_REGION
    source_bucket: str
    source_path: str
    destination_bucket: str
    destination_path: str
    aes_key: str
    aes_iv: str
    clear_lead: int = Field(0, ge=0)
    max_retries: int = Field(3, ge=0)
    retry_delay_ms: int = Field(1000, ge=0)
    container_image: str = DEFAULT_CONTAINER_IMAGE
    container_runtime: str = DEFAULT_CONTAINER_RUNTIME
    workflow_script: Path = DEFAULT_WORKFLOW_SCRIPT

    @field_validator("source_bucket", "destination_bucket", "container_image", "container_runtime")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject names that would produce a malformed locator or command."""
        v = v.strip()
        if not v:
            raise ValueError("value must not be empty")
        return v

    @field_validator("source_path", "destination_path")
    @classmethod
    def strip_leading_slash(cls, v: str) -> str:
        """Keep locators in scheme://bucket/path form without a double slash."""
        return v.lstrip("/")

    @property
    def source_uri(self) -> str:
        return f"s3://{self.source_bucket}/{self.source_path}"

    @property
    def destination_uri(self) -> str:
        return f"s3://{self.destination_bucket}/{self.destination_path}"

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    def resolved_workflow_script(self) -> Path:
        path = self.workflow_script.expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
        return path
