"""
Background job entry points executed by the RQ worker
"""
import asyncio
from typing import Optional

from loguru import logger

from teachclone.llm.gateway import InferenceGateway
from teachclone.models.database_service import upsert_workflow_job
from teachclone.services.video_analysis import analyze
from teachclone.utils.blob_storage import get_blob_store


async def process_video_analysis(job_id: str, video_id: int, gateway: Optional[InferenceGateway] = None) -> None:
    """Analyze a video inside its own session and record progress on the job row"""
    from teachclone.models.database import SessionLocal

    db = SessionLocal()
    try:
        upsert_workflow_job(db, job_id, status="processing", progress=0.1, message=f"Analyzing video {video_id}")
        result = await analyze(db, get_blob_store(), gateway or InferenceGateway(), video_id)
        if result.success:
            upsert_workflow_job(
                db,
                job_id,
                status="completed",
                progress=1.0,
                message=result.message,
                result_json={"video_id": video_id, "source": result.source, "errors": []},
            )
        else:
            upsert_workflow_job(
                db,
                job_id,
                status="failed",
                progress=1.0,
                message=result.message,
                result_json={"video_id": video_id, "errors": [result.message]},
            )
        logger.info(f"Job {job_id} finished: {result.message}")
    except Exception as e:
        logger.exception(f"Job {job_id} crashed: {e}")
        db.rollback()
        upsert_workflow_job(db, job_id, status="failed", progress=1.0, message=str(e),
                            result_json={"video_id": video_id, "errors": [str(e)]})
    finally:
        db.close()


def run_video_analysis_job(job_id: str, video_id: int) -> None:
    try:
        asyncio.run(process_video_analysis(job_id, video_id))
    except RuntimeError:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            loop.run_until_complete(process_video_analysis(job_id, video_id))
        finally:
            loop.close()
