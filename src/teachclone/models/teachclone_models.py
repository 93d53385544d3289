"""
Pydantic models for the TeachClone pipeline
Gateway payloads, derived profiles, API schemas and structured results
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from teachclone.models.database_models import ApprovalStatus, SenderType, UserRole, VideoStatus

Gender = Literal["Male", "Female"]


# ============= GATEWAY MODELS =============

class ChatTurn(BaseModel):
    """One prior message in the two-party vocabulary of the inference service"""
    role: Literal["user", "model"]
    text: str


class GatewayResponse(BaseModel):
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None


# ============= DERIVED PROFILES =============

class VideoAnalysisData(BaseModel):
    """Normalized style profile, ready to be stored"""
    teaching_style: str = Field(description="How the teacher teaches")
    common_phrases: str = Field(default="", description="Comma-joined signature phrases")
    tone_description: str = Field(default="Neutral", description="Tone with energy level")
    language_mix: str = "English Only"
    pacing: str = "Moderate"
    teaching_methodology: Optional[str] = None
    example_types: Optional[str] = None
    key_characteristics: Optional[str] = Field(default=None, description="Comma-joined unique traits")
    teacher_gender: Gender = "Male"
    voice_characteristics: Optional[str] = None
    student_interaction_style: Optional[str] = None
    explanation_structure: Optional[str] = None


class VoiceProfile(BaseModel):
    """Speech synthesis parameters for one AI reply"""
    model_config = ConfigDict(frozen=True)

    pitch: float = Field(description="Semitone offset, -2.0 to 2.0")
    rate: float = Field(description="Speaking rate multiplier")
    lang: str
    gender: Gender
    voice_name: str


# ============= API SCHEMAS =============

class UserSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    role: UserRole
    status: ApprovalStatus
    created_at: Optional[datetime] = None


class VideoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    teacher_id: int
    title: str
    subject: str
    grade_level: str
    description: Optional[str] = None
    original_filename: Optional[str] = None
    file_path: str
    file_size: int
    mime_type: str
    upload_status: VideoStatus
    uploaded_at: Optional[datetime] = None


class VideoAnalysisSchema(VideoAnalysisData):
    model_config = ConfigDict(from_attributes=True)

    id: int
    video_id: int
    analysis_source: str
    analyzed_at: Optional[datetime] = None


class PersonalitySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    teacher_id: int
    personality_name: str
    system_prompt: str
    approval_status: ApprovalStatus
    admin_feedback: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    teacher_name: Optional[str] = None


class ConversationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    personality_id: int
    started_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    message_count: int


class MessageSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_type: SenderType
    message_text: str
    voice_profile: Optional[VoiceProfile] = None
    audio_base64: Optional[str] = None
    created_at: Optional[datetime] = None


class AdminStats(BaseModel):
    pending_teachers: int
    approved_teachers: int
    total_students: int
    pending_personalities: int


# ============= RESULTS =============

class OperationResult(BaseModel):
    """Success flag plus a message the calling layer can show as-is"""
    success: bool
    message: str = ""
    error_code: Optional[str] = None


class VideoUploadResult(OperationResult):
    video: Optional[VideoSchema] = None


class AnalysisResult(OperationResult):
    analysis: Optional[VideoAnalysisSchema] = None
    source: Optional[Literal["media", "metadata", "template"]] = None


class PersonalityResult(OperationResult):
    personality: Optional[PersonalitySchema] = None


class ApprovalResult(OperationResult):
    status: Optional[ApprovalStatus] = None
    is_active: Optional[bool] = None
    admin_feedback: Optional[str] = None


class TurnResult(OperationResult):
    ai_response: Optional[str] = None
    timestamp: Optional[datetime] = None
    voice_profile: Optional[VoiceProfile] = None
    audio_base64: Optional[str] = None


class RegisterResult(OperationResult):
    user: Optional[UserSchema] = None


class AuthResult(OperationResult):
    user: Optional[UserSchema] = None


class TranscriptResult(OperationResult):
    conversation: Optional[ConversationSchema] = None
    messages: List[MessageSchema] = Field(default_factory=list)
