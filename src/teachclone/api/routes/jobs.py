"""
Job status routes
Handles background analysis job monitoring
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from teachclone.api.dependencies import CurrentUser, DBSession
from teachclone.models.database_models import WorkflowJob

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])

STALE_AFTER = timedelta(minutes=30)


class JobStatus(BaseModel):
    job_id: str
    status: str  # queued, processing, completed, failed
    progress: float = 0.0
    message: Optional[str] = None
    result: Optional[Dict] = None


@router.get("/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str, current_user: CurrentUser, db: DBSession):
    """
    Get the status of a video analysis job

    - **job_id**: Job ID returned by the analyze/jobs endpoint
    """
    job = db.query(WorkflowJob).filter(WorkflowJob.id == job_id).first()
    if not job or (job.created_by_id and job.created_by_id != current_user.id):
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")

    status = (job.status or "queued").lower()
    if status not in {"queued", "processing", "completed", "failed"}:
        status = "queued"

    message = job.message
    if status == "processing" and job.updated_at:
        updated_at = job.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - updated_at > STALE_AFTER:
            status = "failed"
            message = "Job appears stale (worker may have restarted). Please retry."

    return JobStatus(
        job_id=str(job.id),
        status=status,
        progress=job.progress or 0.0,
        message=message,
        result=job.result_json if isinstance(job.result_json, dict) else None,
    )
