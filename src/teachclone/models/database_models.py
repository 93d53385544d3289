"""
SQLAlchemy database models for TeachClone
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Float, Boolean, JSON, Enum, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class ApprovalStatus(str, enum.Enum):
    """Shared by teacher accounts and AI personalities"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VideoStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class SenderType(str, enum.Enum):
    STUDENT = "student"
    AI = "ai"


# ============= USER MANAGEMENT =============

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    videos = relationship("Video", back_populates="teacher")
    personality = relationship("AIPersonality", back_populates="teacher", uselist=False)

# ============= VIDEOS =============

class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    subject = Column(String(100), nullable=False)
    grade_level = Column(String(50), nullable=False)
    description = Column(Text)
    original_filename = Column(String(500))
    file_path = Column(String(1000), nullable=False)
    content_hash = Column(String(64))
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    upload_status = Column(Enum(VideoStatus), nullable=False, default=VideoStatus.UPLOADED)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)

    teacher = relationship("User", back_populates="videos")
    analysis = relationship("VideoAnalysis", back_populates="video", uselist=False, cascade="all, delete-orphan")


class VideoAnalysis(Base):
    __tablename__ = "video_analyses"

    id = Column(Integer, primary_key=True, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, unique=True)
    teaching_style = Column(Text, nullable=False)
    common_phrases = Column(Text, nullable=False, default="")
    tone_description = Column(Text, nullable=False)
    language_mix = Column(String(100), nullable=False, default="English Only")
    pacing = Column(String(255), nullable=False)
    teaching_methodology = Column(Text)
    example_types = Column(Text)
    key_characteristics = Column(Text)
    teacher_gender = Column(String(10))
    voice_characteristics = Column(Text)
    student_interaction_style = Column(Text)
    explanation_structure = Column(Text)
    analysis_source = Column(String(20), nullable=False)
    analyzed_at = Column(DateTime(timezone=True), default=utcnow)

    video = relationship("Video", back_populates="analysis")

# ============= AI PERSONALITIES =============

class AIPersonality(Base):
    __tablename__ = "ai_personalities"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    personality_name = Column(String(255), nullable=False)
    system_prompt = Column(Text, nullable=False)
    approval_status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    admin_feedback = Column(Text)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    teacher = relationship("User", back_populates="personality")
    conversations = relationship("Conversation", back_populates="personality")

# ============= CONVERSATIONS =============

class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("student_id", "personality_id", name="uq_conversation_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    personality_id = Column(Integer, ForeignKey("ai_personalities.id"), nullable=False)
    started_at = Column(DateTime(timezone=True), default=utcnow)
    last_message_at = Column(DateTime(timezone=True), default=utcnow)
    message_count = Column(Integer, nullable=False, default=0)

    student = relationship("User")
    personality = relationship("AIPersonality", back_populates="conversations")
    messages = relationship("Message", back_populates="conversation", order_by="Message.id")


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False, index=True)
    sender_type = Column(Enum(SenderType), nullable=False)
    message_text = Column(Text, nullable=False)
    voice_profile = Column(JSON)
    audio_base64 = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    conversation = relationship("Conversation", back_populates="messages")

# ============= WORKFLOW JOBS =============

class WorkflowJob(Base):
    __tablename__ = "workflow_jobs"

    id = Column(String(100), primary_key=True, index=True)
    kind = Column(String(50), default="video_analysis")
    status = Column(String(50), default="queued")
    progress = Column(Float, default=0.0)
    message = Column(String(500))
    result_json = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
