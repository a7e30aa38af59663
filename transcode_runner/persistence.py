import os
import tempfile

import tomli
import tomli_w

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from transcode_runner.jobs.models import JobSpec


JOB_FILE_VERSION = 1

# JobSpec fields that may be omitted from the file and taken from the
# environment instead, so credentials need not be stored on disk.
_ENV_FALLBACKS = {
    "access_key_id": "AWS_ACCESS_KEY_ID",
    "secret_access_key": "AWS_SECRET_ACCESS_KEY",
    "endpoint_url": "AWS_ENDPOINT_URL",
    "region": "AWS_DEFAULT_REGION",
    "aes_key": "TRANSCODE_RUNNER_AES_KEY",
}


class JobFileError(ValueError):
    """Raised when a job file is missing, unreadable, or invalid."""


def strip_none_for_toml(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            str(key): strip_none_for_toml(item)
            for key, item in value.items()
            if item is not None
        }
    if isinstance(value, (list, tuple)):
        return [strip_none_for_toml(item) for item in value if item is not None]
    if isinstance(value, Path):
        return str(value)
    return value


def default_job_path() -> str:
    override = str(os.environ.get("TRANSCODE_RUNNER_JOB_PATH") or "").strip()
    if override:
        override = os.path.expanduser(override)
        # Anything not ending in .toml is treated as a directory.
        if override.lower().endswith(".toml"):
            return override
        return os.path.join(override, "job.toml")
    return os.path.join(os.getcwd(), "job.toml")


def load_job_spec(path: str | None = None, *, env: dict[str, str] | None = None) -> JobSpec:
    """Load a JobSpec from a TOML job file.

    The file holds a top-level ``version`` key and a ``[job]`` table whose
    keys are JobSpec field names. Credentials, endpoint and region missing
    from the table fall back to the standard AWS environment variables; a
    missing aes_key falls back to TRANSCODE_RUNNER_AES_KEY.
    """
    path = path or default_job_path()
    env = os.environ if env is None else env
    if not os.path.exists(path):
        raise JobFileError(f"job file not found: {path}")
    try:
        with open(path, "rb") as f:
            payload = tomli.load(f)
    except tomli.TOMLDecodeError as exc:
        raise JobFileError(f"invalid TOML in {path}: {exc}") from exc

    version = payload.get("version", JOB_FILE_VERSION)
    if version != JOB_FILE_VERSION:
        raise JobFileError(f"unsupported job file version {version!r} in {path}")

    job = payload.get("job")
    if not isinstance(job, dict):
        raise JobFileError(f"missing [job] table in {path}")

    job = dict(job)
    for field_name, env_name in _ENV_FALLBACKS.items():
        if job.get(field_name) in (None, ""):
            value = str(env.get(env_name) or "").strip()
            if value:
                job[field_name] = value

    try:
        return JobSpec(**job)
    except ValidationError as exc:
        raise JobFileError(f"invalid job in {path}: {exc}") from exc


def save_job_spec(path: str, spec: JobSpec, *, include_secrets: bool = False) -> None:
    """Atomically write a JobSpec as a TOML job file.

    Credentials and the AES key are left out unless include_secrets is set;
    load_job_spec() picks them up from the environment.
    """
    job = spec.model_dump()
    if not include_secrets:
        job.pop("access_key_id", None)
        job.pop("secret_access_key", None)
        job.pop("aes_key", None)
    payload = {"version": JOB_FILE_VERSION, "job": job}

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix="job-", suffix=".toml", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            tomli_w.dump(strip_none_for_toml(payload), f)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
