"""
Filesystem-backed job store.

A job has no record anywhere except its output directory:

    <hls_dir>/<job_id>/              exists -> processing
    <hls_dir>/<job_id>/master.m3u8   exists -> ready

Nothing here takes a lock. Every read is a point-in-time probe and may be
stale by the time the caller acts on it; a background conversion can wipe
or finalize the directory at any moment.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import List, Tuple

from api.enums import JobStatus
from config import MASTER_PLAYLIST_NAME

logger = logging.getLogger(__name__)

# Letters, digits, dot, underscore, hyphen. Must not start with a dot.
_SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")
MAX_NAME_LENGTH = 255


class InvalidNameError(ValueError):
    """Raised when a job ID or upload name is not a safe path component."""


def validate_name(name: str) -> str:
    """
    Check that a job ID or upload file name is a single safe path component.

    Prevents path traversal: names come straight from form fields and are
    joined onto the storage roots.

    Returns:
        The name, unchanged.

    Raises:
        InvalidNameError: if the name is empty, too long, or contains
            anything other than letters, digits, '.', '_' and '-'.
    """
    if not name or len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(f"Invalid name length: {len(name or '')}")
    if name in (".", "..") or not _SAFE_NAME_PATTERN.match(name):
        raise InvalidNameError(f"Invalid name: {name!r}")
    return name


class JobStore:
    """Upload area plus per-job HLS output directories."""

    def __init__(self, hls_dir: Path, uploads_dir: Path):
        self.hls_dir = Path(hls_dir)
        self.uploads_dir = Path(uploads_dir)

    def ensure_dirs(self) -> None:
        self.hls_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def output_dir(self, job_id: str) -> Path:
        return self.hls_dir / job_id

    def master_playlist_path(self, job_id: str) -> Path:
        return self.output_dir(job_id) / MASTER_PLAYLIST_NAME

    def upload_path(self, filename: str) -> Path:
        return self.uploads_dir / filename

    @staticmethod
    def job_id_for_upload(filename: str) -> str:
        """Job ID for an upload: the file name minus its last extension."""
        return Path(filename).stem

    def status(self, job_id: str) -> JobStatus:
        """Derive a job's status from its output directory."""
        if not self.output_dir(job_id).is_dir():
            return JobStatus.ABSENT
        if self.master_playlist_path(job_id).is_file():
            return JobStatus.READY
        return JobStatus.PROCESSING

    def has_output(self, job_id: str) -> bool:
        """True if an output directory exists, in any state."""
        return self.output_dir(job_id).exists()

    def list_jobs(self) -> List[Tuple[str, JobStatus]]:
        """All job directories under the output root with their status, sorted by ID."""
        if not self.hls_dir.is_dir():
            return []
        jobs = []
        for entry in sorted(self.hls_dir.iterdir(), key=lambda p: p.name):
            if not entry.is_dir():
                continue
            jobs.append((entry.name, self.status(entry.name)))
        return jobs

    def list_unconverted_uploads(self) -> List[str]:
        """Upload file names that have no job directory yet."""
        if not self.uploads_dir.is_dir():
            return []
        job_ids = {job_id for job_id, _ in self.list_jobs()}
        names = []
        for entry in sorted(self.uploads_dir.iterdir(), key=lambda p: p.name):
            if not entry.is_file():
                continue
            if self.job_id_for_upload(entry.name) not in job_ids:
                names.append(entry.name)
        return names

    def delete_job(self, job_id: str) -> bool:
        """
        Remove a job's output directory.

        Idempotent: a missing directory is not an error. Returns True if a
        directory was removed.
        """
        output_dir = self.output_dir(job_id)
        if not output_dir.exists():
            return False
        try:
            shutil.rmtree(output_dir)
        except FileNotFoundError:
            # Removed concurrently (failure cleanup or another delete)
            return False
        except OSError as e:
            logger.error(f"Failed to delete HLS directory {output_dir}: {e}")
            return False
        logger.info(f"Deleted HLS content for ID: {job_id}")
        return True

    def delete_upload(self, filename: str) -> bool:
        """Remove an uploaded source file. Idempotent; returns True if a file was removed."""
        upload_path = self.upload_path(filename)
        try:
            upload_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete upload file {upload_path}: {e}")
            return False
        logger.info(f"Deleted original upload file: {filename}")
        return True
