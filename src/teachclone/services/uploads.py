"""
Video upload: validate, store the bytes, register the video row
"""
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teachclone.errors import StorageFailure, ValidationFailure
from teachclone.models.database_service import create_video, get_user_by_id, get_videos_by_file_path
from teachclone.models.database_models import UserRole
from teachclone.models.teachclone_models import VideoSchema, VideoUploadResult
from teachclone.utils.blob_storage import BlobStore, content_key
from teachclone.utils.config_loader import AppSettings, get_settings
from teachclone.utils.workflow_helpers import ALLOWED_VIDEO_TYPES, resolve_mime_type


def validate_upload(title: str, subject: str, grade_level: str, data: Optional[bytes],
                    mime_type: str, max_bytes: int) -> None:
    if not data:
        raise ValidationFailure("Please select a video file.")
    if not (title or "").strip() or not (subject or "").strip() or not (grade_level or "").strip():
        raise ValidationFailure("Title, subject and grade level are required.")
    if mime_type not in ALLOWED_VIDEO_TYPES:
        raise ValidationFailure("Invalid file type. Please upload MP4, AVI, MOV, MKV, or WebM.")
    if len(data) > max_bytes:
        raise ValidationFailure(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")


def discard_unreferenced_blob(db: Session, blobs: BlobStore, key: str) -> None:
    """Delete a freshly stored blob unless an existing video already points at it"""
    try:
        if get_videos_by_file_path(db, key):
            return
        blobs.delete_blob(key)
        logger.info(f"Discarded orphan blob {key}")
    except (SQLAlchemyError, StorageFailure) as e:
        logger.error(f"Could not discard orphan blob {key}: {e}")


def upload_video(db: Session, blobs: BlobStore, teacher_id: int, title: str, subject: str,
                 grade_level: str, filename: str, data: bytes, mime_type: Optional[str] = None,
                 description: Optional[str] = None,
                 settings: Optional[AppSettings] = None) -> VideoUploadResult:
    settings = settings or get_settings()
    resolved_type = resolve_mime_type(filename, mime_type)
    try:
        teacher = get_user_by_id(db, teacher_id)
        if teacher is None or teacher.role != UserRole.TEACHER:
            raise ValidationFailure("Only teachers can upload videos.")
        validate_upload(title, subject, grade_level, data, resolved_type, settings.max_upload_bytes)

        key, digest = content_key(data, filename)
        blobs.put_blob(key, data, content_type=resolved_type)
        try:
            video = create_video(
                db,
                teacher_id=teacher_id,
                title=title.strip(),
                subject=subject.strip(),
                grade_level=grade_level.strip(),
                file_path=key,
                file_size=len(data),
                mime_type=resolved_type,
                original_filename=filename,
                content_hash=digest,
                description=description,
            )
        except StorageFailure:
            discard_unreferenced_blob(db, blobs, key)
            raise
    except ValidationFailure as e:
        return VideoUploadResult(success=False, message=e.message, error_code=e.code)
    except StorageFailure as e:
        logger.error(f"Upload storage failure for teacher {teacher_id}: {e.message}")
        return VideoUploadResult(success=False, message=f"Storage error: {e.message}", error_code=e.code)

    return VideoUploadResult(
        success=True,
        message="Video uploaded successfully! Analyze it to build your AI personality.",
        video=VideoSchema.model_validate(video),
    )
