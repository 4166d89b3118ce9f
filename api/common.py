"""
Shared HTTP-layer helpers: name validation, upload streaming, storage
health, and static serving for HLS output.
"""

import asyncio
import logging
import uuid
from pathlib import Path

from fastapi import HTTPException, Response, UploadFile
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import MAX_UPLOAD_SIZE, STORAGE_CHECK_TIMEOUT, UPLOAD_CHUNK_SIZE
from worker.job_store import InvalidNameError, JobStore, validate_name

logger = logging.getLogger(__name__)


def require_form_value(value: str, detail: str) -> str:
    """Reject a missing/blank form field with 400."""
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=detail)
    return value.strip()


def require_valid_name(name: str) -> str:
    """Validate a job ID or upload name, mapping failures to 400."""
    try:
        return validate_name(name)
    except InvalidNameError as e:
        logger.warning(f"Rejected request with unsafe name: {e}")
        raise HTTPException(status_code=400, detail="Invalid name") from e


async def save_upload_with_size_limit(file: UploadFile, upload_path: Path, max_size: int = MAX_UPLOAD_SIZE) -> int:
    """
    Stream upload to disk with size validation.
    Returns the total bytes written.
    Raises HTTPException if file exceeds max_size or storage fails.
    """
    total_size = 0
    try:
        with open(upload_path, "wb") as f:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_size:
                    # Clean up partial file
                    f.close()
                    upload_path.unlink(missing_ok=True)
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large. Maximum upload size is {max_size} bytes",
                    )
                f.write(chunk)
    except HTTPException:
        raise
    except OSError as e:
        # Storage-related errors - clean up and return 503
        upload_path.unlink(missing_ok=True)
        logger.warning(f"Storage error during upload to {upload_path}: {e}")
        raise HTTPException(
            status_code=503,
            detail="Video storage temporarily unavailable. Please try again later.",
            headers={"Retry-After": "30"},
        )

    return total_size


def _check_storage_sync(store: JobStore) -> bool:
    """
    Verify both storage roots exist and are writable.

    Runs in a thread pool so a stale mount can't block the event loop.
    """
    try:
        for directory in (store.uploads_dir, store.hls_dir):
            if not directory.is_dir():
                return False
            test_file = directory / f".health_check_{uuid.uuid4().hex}"
            test_file.write_text("health check")
            test_file.unlink()
        return True
    except OSError:
        return False


async def check_health(store: JobStore) -> dict:
    """
    Check storage accessibility with a timeout.

    Returns a dict with:
        - checks: dict of individual check results
        - healthy: bool indicating overall health
        - status_code: HTTP status code (200 if healthy, 503 if not)
    """
    checks = {"storage": False}

    try:
        loop = asyncio.get_running_loop()
        checks["storage"] = await asyncio.wait_for(
            loop.run_in_executor(None, _check_storage_sync, store),
            timeout=STORAGE_CHECK_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning("Storage health check timed out - possible stale mount")

    healthy = all(checks.values())
    return {
        "checks": checks,
        "healthy": healthy,
        "status_code": 200 if healthy else 503,
    }


class HLSStaticFiles(StaticFiles):
    """
    Static files handler for HLS output with streaming MIME types and
    cache headers.
    """

    async def get_response(self, path: str, scope) -> Response:
        try:
            response = await super().get_response(path, scope)

            # CORS headers for cross-origin playback (needed for some players)
            response.headers["Access-Control-Allow-Origin"] = "*"
            response.headers["Access-Control-Expose-Headers"] = "Content-Length,Content-Range"

            if path.endswith(".ts"):
                # Segments never change once written
                response.headers["Content-Type"] = "video/mp2t"
                response.headers["Cache-Control"] = "public, max-age=31536000"
            elif path.endswith(".m3u8"):
                # Playlists disappear or get rebuilt on reconversion
                response.headers["Content-Type"] = "application/vnd.apple.mpegurl"
                response.headers["Cache-Control"] = "no-cache"

            return response

        except OSError as e:
            logger.warning(f"Storage unavailable for streaming file {path}: {e}")
            return JSONResponse(
                status_code=503,
                content={"detail": "Video storage temporarily unavailable. Please try again later."},
                headers={"Retry-After": "30"},
            )
