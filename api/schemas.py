from typing import List, Optional

from pydantic import BaseModel

from api.enums import JobStatus


class JobResponse(BaseModel):
    id: str
    status: JobStatus
    ready: bool = False
    processing: bool = False
    master_url: Optional[str] = None  # only set once the job is ready


class JobListResponse(BaseModel):
    videos: List[JobResponse] = []
    uploaded_files: List[str] = []  # uploads with no job directory yet
    has_processing: bool = False  # lets the UI decide whether to auto-refresh


class HealthResponse(BaseModel):
    status: str  # healthy, unhealthy
    checks: dict
