"""
HTTP API for the HLS streamer.

Uploads are stored as-is; conversion is a separate, explicit request that
starts a background job and returns immediately. Job state is read straight
from the output directories on every request.

Run with: python -m api.app  (or uvicorn api.app:app)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

import config
from api.common import (
    HLSStaticFiles,
    check_health,
    require_form_value,
    require_valid_name,
    save_upload_with_size_limit,
)
from api.enums import JobStatus
from api.ids import IdGenerator
from api.schemas import HealthResponse, JobListResponse, JobResponse
from worker.job_store import JobStore
from worker.orchestrator import ConversionRunner

logger = logging.getLogger(__name__)

router = APIRouter()


def _redirect_home() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


def _job_response(job_id: str, status: JobStatus) -> JobResponse:
    ready = status == JobStatus.READY
    return JobResponse(
        id=job_id,
        status=status,
        ready=ready,
        processing=status == JobStatus.PROCESSING,
        master_url=f"/hls/{job_id}/{config.MASTER_PLAYLIST_NAME}" if ready else None,
    )


@router.get("/", response_model=JobListResponse)
async def list_videos(request: Request):
    """List every job directory with its status, plus uploads not yet converted."""
    store: JobStore = request.app.state.store

    videos = [_job_response(job_id, status) for job_id, status in store.list_jobs()]
    return JobListResponse(
        videos=videos,
        uploaded_files=store.list_unconverted_uploads(),
        has_processing=any(v.processing for v in videos),
    )


@router.get("/api/videos/{job_id}", response_model=JobResponse)
async def get_video(request: Request, job_id: str):
    store: JobStore = request.app.state.store
    require_valid_name(job_id)
    return _job_response(job_id, store.status(job_id))


@router.post("/upload")
async def upload_video(request: Request, video: Optional[UploadFile] = File(None)):
    """Save a new upload as <id><ext>. Does not start conversion."""
    store: JobStore = request.app.state.store

    if video is None:
        raise HTTPException(status_code=400, detail="Cannot read file")

    file_ext = Path(video.filename).suffix.lower() if video.filename else ""
    if not file_ext:
        file_ext = config.DEFAULT_VIDEO_EXTENSION
    if file_ext not in config.SUPPORTED_VIDEO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type '{file_ext}'. Allowed: {', '.join(sorted(config.SUPPORTED_VIDEO_EXTENSIONS))}",
        )

    job_id = request.app.state.id_generator.new_id()
    upload_path = store.upload_path(f"{job_id}{file_ext}")
    size = await save_upload_with_size_limit(video, upload_path, max_size=config.MAX_UPLOAD_SIZE)
    logger.info(f"Stored upload {upload_path.name} ({size} bytes)")

    return _redirect_home()


@router.post("/reconvert")
async def reconvert_video(request: Request, uploaded_file: str = Form("")):
    """Start a background conversion for an upload that has no job yet."""
    store: JobStore = request.app.state.store
    runner: ConversionRunner = request.app.state.runner

    filename = require_valid_name(require_form_value(uploaded_file, "No file selected"))
    job_id = store.job_id_for_upload(filename)

    # Best-effort duplicate suppression; not atomic with the job's own mkdir
    if store.has_output(job_id):
        logger.info(f"Conversion for {job_id} already exists, not starting another")
        return _redirect_home()

    input_path = store.upload_path(filename)
    if not input_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    runner.start(input_path, job_id)
    return _redirect_home()


@router.post("/delete_hls")
async def delete_hls(request: Request, id: str = Form("")):
    """Delete a job's HLS output. Missing output is not an error."""
    store: JobStore = request.app.state.store
    job_id = require_valid_name(require_form_value(id, "No ID provided"))
    store.delete_job(job_id)
    return _redirect_home()


@router.post("/delete_upload")
async def delete_upload(request: Request, filename: str = Form("")):
    """Delete an uploaded source file. Missing file is not an error."""
    store: JobStore = request.app.state.store
    name = require_valid_name(require_form_value(filename, "No filename provided"))
    store.delete_upload(name)
    return _redirect_home()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check for monitoring. Returns 503 if storage is not writable."""
    result = await check_health(request.app.state.store)
    return JSONResponse(
        status_code=result["status_code"],
        content={
            "status": "healthy" if result["healthy"] else "unhealthy",
            "checks": result["checks"],
        },
    )


def create_app(
    store: Optional[JobStore] = None,
    runner: Optional[ConversionRunner] = None,
    id_generator: Optional[IdGenerator] = None,
) -> FastAPI:
    """
    Build the application around explicitly constructed components.

    Defaults come from config; tests pass their own store/runner.
    """
    if store is None:
        store = JobStore(config.HLS_DIR, config.UPLOADS_DIR)
    if runner is None:
        runner = ConversionRunner(store)
    if id_generator is None:
        id_generator = IdGenerator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create storage roots on startup; let running conversions finish on shutdown."""
        store.ensure_dirs()
        logger.info(f"Serving uploads from {store.uploads_dir}, HLS output from {store.hls_dir}")
        yield
        active = runner.active_job_ids()
        if active:
            logger.info(f"Waiting for {len(active)} conversion(s) to finish: {', '.join(active)}")
        await runner.wait_all()

    app = FastAPI(title="HLS Streamer", description="Multi-quality HLS video conversion", lifespan=lifespan)
    app.state.store = store
    app.state.runner = runner
    app.state.id_generator = id_generator

    app.include_router(router)

    # check_dir=False: the directories are created by the lifespan hook
    app.mount("/hls", HLSStaticFiles(directory=str(store.hls_dir), check_dir=False), name="hls")
    app.mount("/uploads", StaticFiles(directory=str(store.uploads_dir), check_dir=False), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host=config.HOST, port=config.PORT)
