import logging
import os
import shutil
import tempfile

from pathlib import Path


logger = logging.getLogger(__name__)

SCRIPT_FILE_NAME = "workflow.sh"


def _provision_workflow_script(source: Path, job_id: str) -> tuple[str, str]:
    """Copy the entry-point script into a fresh private temp directory.

    Returns (tmp_dir, script_path). The directory is 0700 and the script is
    owner read/execute only; callers remove the directory with
    _remove_workflow_dir() once the attempt settles.
    """
    if not source.is_file():
        raise FileNotFoundError(f"workflow script not found: {source}")

    tmp_dir = tempfile.mkdtemp(prefix=f"image-to-dash-{job_id or 'job'}-")
    try:
        script_path = os.path.join(tmp_dir, SCRIPT_FILE_NAME)
        shutil.copyfile(source, script_path)
        os.chmod(script_path, 0o500)
    except Exception:
        _remove_workflow_dir(tmp_dir)
        raise
    return tmp_dir, script_path


def _remove_workflow_dir(tmp_dir: str | None) -> None:
    if not tmp_dir:
        return
    try:
        shutil.rmtree(tmp_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning(f"failed to remove workflow dir {tmp_dir}: {exc}")
