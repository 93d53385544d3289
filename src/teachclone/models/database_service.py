"""
Database service functions for CRUD operations
"""
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teachclone.errors import StorageFailure

from .database_models import (
    User, Video, VideoAnalysis, AIPersonality, Conversation, Message, WorkflowJob,
    UserRole, ApprovalStatus, VideoStatus, SenderType, utcnow
)

def commit_or_fail(db: Session, action: str) -> None:
    """Commit the session, turning any database error into a StorageFailure"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not {action}: {e}")
        raise StorageFailure(f"Could not {action}") from e

# User operations
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, email: str, hashed_password: str, full_name: str,
                role: UserRole = UserRole.STUDENT, status: ApprovalStatus = ApprovalStatus.PENDING) -> User:
    user = User(
        email=email.strip(),
        hashed_password=hashed_password,
        full_name=full_name,
        role=role,
        status=status
    )
    db.add(user)
    commit_or_fail(db, f"save user {email.strip()}")
    db.refresh(user)
    logger.info(f"User created: {user.email} (ID: {user.id}, role: {role.value}, status: {status.value})")
    return user

def get_users_by_role(db: Session, role: UserRole) -> List[User]:
    return db.query(User).filter(User.role == role).order_by(User.id.desc()).all()

def count_users(db: Session, role: UserRole, status: Optional[ApprovalStatus] = None) -> int:
    query = db.query(User).filter(User.role == role)
    if status is not None:
        query = query.filter(User.status == status)
    return query.count()

# Video operations
def create_video(db: Session, teacher_id: int, title: str, subject: str, grade_level: str,
                 file_path: str, file_size: int, mime_type: str, original_filename: str = None,
                 content_hash: str = None, description: str = None) -> Video:
    video = Video(
        teacher_id=teacher_id,
        title=title,
        subject=subject,
        grade_level=grade_level,
        file_path=file_path,
        file_size=file_size,
        mime_type=mime_type,
        original_filename=original_filename,
        content_hash=content_hash,
        description=description,
        upload_status=VideoStatus.UPLOADED
    )
    db.add(video)
    commit_or_fail(db, "save video")
    db.refresh(video)
    logger.info(f"Video created: {video.title} (ID: {video.id}) for teacher {teacher_id}")
    return video

def get_videos_by_file_path(db: Session, file_path: str) -> List[Video]:
    return db.query(Video).filter(Video.file_path == file_path).all()

def get_video_by_id(db: Session, video_id: int) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id).first()

def get_videos_by_teacher(db: Session, teacher_id: int) -> List[Video]:
    return db.query(Video).filter(Video.teacher_id == teacher_id).order_by(Video.id).all()

def update_video_status(db: Session, video_id: int, status: VideoStatus) -> Optional[Video]:
    video = get_video_by_id(db, video_id)
    if video:
        video.upload_status = status
        commit_or_fail(db, f"update status of video {video_id}")
        db.refresh(video)
    return video

# Analysis operations
def get_analysis_by_video_id(db: Session, video_id: int) -> Optional[VideoAnalysis]:
    return db.query(VideoAnalysis).filter(VideoAnalysis.video_id == video_id).first()

def upsert_video_analysis(db: Session, video_id: int, analysis_source: str, **fields) -> VideoAnalysis:
    """Replace the current analysis of a video, keeping at most one row per video"""
    analysis = get_analysis_by_video_id(db, video_id)
    if analysis is None:
        analysis = VideoAnalysis(video_id=video_id)
        db.add(analysis)
    for key, value in fields.items():
        setattr(analysis, key, value)
    analysis.analysis_source = analysis_source
    analysis.analyzed_at = utcnow()
    commit_or_fail(db, f"save analysis of video {video_id}")
    db.refresh(analysis)
    return analysis

def get_latest_analysis_for_teacher(db: Session, teacher_id: int) -> Optional[VideoAnalysis]:
    return (
        db.query(VideoAnalysis)
        .join(Video, Video.id == VideoAnalysis.video_id)
        .filter(Video.teacher_id == teacher_id)
        .order_by(VideoAnalysis.analyzed_at.desc(), VideoAnalysis.id.desc())
        .first()
    )

# Personality operations
def get_personality_by_id(db: Session, personality_id: int) -> Optional[AIPersonality]:
    return db.query(AIPersonality).filter(AIPersonality.id == personality_id).first()

def get_personality_by_teacher_id(db: Session, teacher_id: int) -> Optional[AIPersonality]:
    return db.query(AIPersonality).filter(AIPersonality.teacher_id == teacher_id).first()

def upsert_personality(db: Session, teacher_id: int, personality_name: str, system_prompt: str) -> AIPersonality:
    """
    Write the single personality of a teacher. Regeneration always goes back
    to pending review and hides the personality from students.
    """
    personality = get_personality_by_teacher_id(db, teacher_id)
    if personality is None:
        personality = AIPersonality(teacher_id=teacher_id)
        db.add(personality)
    personality.personality_name = personality_name
    personality.system_prompt = system_prompt
    personality.approval_status = ApprovalStatus.PENDING
    personality.is_active = False
    personality.admin_feedback = None
    personality.created_at = utcnow()
    commit_or_fail(db, f"save personality of teacher {teacher_id}")
    db.refresh(personality)
    return personality

def get_personalities(db: Session, status: Optional[ApprovalStatus] = None) -> List[AIPersonality]:
    query = db.query(AIPersonality)
    if status is not None:
        query = query.filter(AIPersonality.approval_status == status)
    return query.order_by(AIPersonality.id.desc()).all()

def get_visible_personalities(db: Session) -> List[AIPersonality]:
    return (
        db.query(AIPersonality)
        .filter(AIPersonality.approval_status == ApprovalStatus.APPROVED, AIPersonality.is_active.is_(True))
        .order_by(AIPersonality.id)
        .all()
    )

# Conversation operations
def get_conversation_by_id(db: Session, conversation_id: int) -> Optional[Conversation]:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()

def get_conversation(db: Session, student_id: int, personality_id: int) -> Optional[Conversation]:
    return (
        db.query(Conversation)
        .filter(Conversation.student_id == student_id, Conversation.personality_id == personality_id)
        .first()
    )

def create_conversation(db: Session, student_id: int, personality_id: int) -> Conversation:
    now = utcnow()
    conversation = Conversation(
        student_id=student_id,
        personality_id=personality_id,
        started_at=now,
        last_message_at=now,
        message_count=0
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    logger.info(f"Conversation created: ID {conversation.id} (student {student_id}, personality {personality_id})")
    return conversation

def refresh_conversation_stats(db: Session, conversation_id: int) -> Optional[Conversation]:
    conversation = get_conversation_by_id(db, conversation_id)
    if conversation:
        conversation.last_message_at = utcnow()
        conversation.message_count = db.query(Message).filter(Message.conversation_id == conversation_id).count()
        commit_or_fail(db, f"update conversation {conversation_id}")
        db.refresh(conversation)
    return conversation

# Message operations
def create_message(db: Session, conversation_id: int, sender_type: SenderType, message_text: str,
                   voice_profile: dict = None, audio_base64: str = None) -> Message:
    message = Message(
        conversation_id=conversation_id,
        sender_type=sender_type,
        message_text=message_text,
        voice_profile=voice_profile,
        audio_base64=audio_base64,
        created_at=utcnow()
    )
    db.add(message)
    commit_or_fail(db, f"save message in conversation {conversation_id}")
    db.refresh(message)
    return message

def get_conversation_messages(db: Session, conversation_id: int) -> List[Message]:
    """Full transcript, oldest first"""
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
        .all()
    )

# Workflow job operations
def upsert_workflow_job(db: Session, job_id: str, **fields) -> WorkflowJob:
    job_record = db.query(WorkflowJob).filter(WorkflowJob.id == job_id).first()
    if not job_record:
        job_record = WorkflowJob(id=job_id, **fields)
        db.add(job_record)
    else:
        for key, value in fields.items():
            setattr(job_record, key, value)
    commit_or_fail(db, f"update job {job_id}")
    return job_record

# Whole-collection record access
RECORD_TYPES = {
    "users": User,
    "videos": Video,
    "analyses": VideoAnalysis,
    "personalities": AIPersonality,
    "conversations": Conversation,
    "messages": Message,
}

def _record_model(record_type: str):
    try:
        return RECORD_TYPES[record_type]
    except KeyError:
        raise ValueError(f"Unknown record type: {record_type}") from None

def _row_to_record(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}

def list_records(db: Session, record_type: str) -> List[Dict[str, Any]]:
    model = _record_model(record_type)
    return [_row_to_record(row) for row in db.query(model).order_by(model.id).all()]

def put_records(db: Session, record_type: str, records: List[Dict[str, Any]]) -> int:
    """Overwrite the whole collection of a record type with the given records"""
    model = _record_model(record_type)
    try:
        db.query(model).delete()
        for record in records:
            db.add(model(**record))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Could not write {record_type}: {e}") from e
    logger.info(f"Replaced {record_type} collection with {len(records)} records")
    return len(records)

