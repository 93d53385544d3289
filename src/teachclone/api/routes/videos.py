"""
Teacher video routes
Upload, analysis and personality generation
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from loguru import logger

from teachclone.api.dependencies import Blobs, DBSession, Gateway, TeacherUser
from teachclone.api.queue import get_queue
from teachclone.api.responses import raise_for_result
from teachclone.models.database_service import get_analysis_by_video_id, get_video_by_id, get_videos_by_teacher, upsert_workflow_job
from teachclone.models.teachclone_models import (
    AnalysisResult,
    PersonalityResult,
    PersonalitySchema,
    VideoAnalysisSchema,
    VideoSchema,
    VideoUploadResult,
)
from teachclone.services.jobs import run_video_analysis_job
from teachclone.services.personality import generate_personality, get_personality_for_teacher
from teachclone.services.uploads import upload_video
from teachclone.services.video_analysis import analyze

router = APIRouter(prefix="/api/videos", tags=["Videos"])


def _own_video(db, video_id: int, teacher_id: int):
    video = get_video_by_id(db, video_id)
    if video is None or video.teacher_id != teacher_id:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


@router.post("/upload", response_model=VideoUploadResult)
async def upload(
    current_user: TeacherUser,
    db: DBSession,
    blobs: Blobs,
    file: UploadFile = File(...),
    title: str = Form(...),
    subject: str = Form(...),
    grade_level: str = Form(...),
    description: Optional[str] = Form(None),
):
    """
    Upload a teaching video

    - **file**: MP4, AVI, MOV, MKV or WebM, up to 100MB
    - **title**, **subject**, **grade_level**: metadata used when the video itself cannot be analyzed
    """
    data = await file.read()
    await file.close()
    result = upload_video(
        db, blobs, current_user.id, title, subject, grade_level,
        file.filename or "", data, file.content_type, description=description,
    )
    return raise_for_result(result)


@router.get("", response_model=List[VideoSchema])
async def list_my_videos(current_user: TeacherUser, db: DBSession):
    return [VideoSchema.model_validate(v) for v in get_videos_by_teacher(db, current_user.id)]


@router.get("/personality/me", response_model=Optional[PersonalitySchema])
async def my_personality(current_user: TeacherUser, db: DBSession):
    """Current AI personality of the logged-in teacher, with review status and feedback"""
    return get_personality_for_teacher(db, current_user.id)


@router.get("/{video_id}", response_model=VideoSchema)
async def get_video(video_id: int, current_user: TeacherUser, db: DBSession):
    return VideoSchema.model_validate(_own_video(db, video_id, current_user.id))


@router.get("/{video_id}/analysis", response_model=VideoAnalysisSchema)
async def get_video_analysis(video_id: int, current_user: TeacherUser, db: DBSession):
    _own_video(db, video_id, current_user.id)
    analysis = get_analysis_by_video_id(db, video_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Video has not been analyzed yet")
    return VideoAnalysisSchema.model_validate(analysis)


@router.post("/{video_id}/analyze", response_model=AnalysisResult)
async def analyze_video(video_id: int, current_user: TeacherUser, db: DBSession, blobs: Blobs, gateway: Gateway):
    """Analyze the video in-process and return the stored style profile"""
    _own_video(db, video_id, current_user.id)
    return raise_for_result(await analyze(db, blobs, gateway, video_id))


@router.post("/{video_id}/analyze/jobs")
async def enqueue_video_analysis(video_id: int, current_user: TeacherUser, db: DBSession):
    """
    Queue the analysis for the background worker

    Returns: Job ID to track with /api/jobs/{job_id}
    """
    _own_video(db, video_id, current_user.id)
    job_id = str(uuid.uuid4())
    upsert_workflow_job(
        db,
        job_id,
        status="queued",
        progress=0.0,
        message="Queued for analysis",
        created_by_id=current_user.id,
    )
    q = get_queue()
    rq_job = q.enqueue(run_video_analysis_job, job_id, video_id, job_timeout=30 * 60, job_id=job_id)
    logger.info(f"Enqueued analysis job: rq_id={rq_job.id}, queue={q.name}, video={video_id}")
    return {
        "job_id": job_id,
        "status": "queued",
        "message": "Video analysis started. Use /api/jobs/{job_id} to check status.",
    }


@router.post("/{video_id}/personality", response_model=PersonalityResult)
async def generate_video_personality(video_id: int, current_user: TeacherUser, db: DBSession):
    """Create or regenerate the teacher's AI personality from this video's analysis"""
    _own_video(db, video_id, current_user.id)
    return raise_for_result(await generate_personality(db, video_id))
