"""
Conversation engine: student <-> AI teacher chat turns
"""
import re
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from teachclone.errors import NotFound, StorageFailure, TeachCloneError, ValidationFailure
from teachclone.llm.gateway import InferenceGateway
from teachclone.models import database_service as store
from teachclone.models.database_models import Conversation, Message, SenderType
from teachclone.models.teachclone_models import (
    ChatTurn,
    ConversationSchema,
    MessageSchema,
    PersonalitySchema,
    TranscriptResult,
    TurnResult,
)
from teachclone.services.personality import to_personality_schema
from teachclone.services.voice_profile import derive_voice_profile, latest_teacher_analysis
from teachclone.utils.config_loader import AppSettings, get_settings
from teachclone.utils.keyed_locks import conversation_locks

FILLER_PHRASES = ("thanks for the click", "thanks for clicking", "thank you for the click")

_MARKDOWN_CHARS = re.compile(r"[*#_`~]")
_WHITESPACE = re.compile(r"\s+")
_FILLERS = re.compile(
    "|".join(r"\s+".join(map(re.escape, phrase.split())) for phrase in FILLER_PHRASES) + r"[,.!?;:]?",
    re.IGNORECASE,
)

ROLE_BY_SENDER = {SenderType.STUDENT: "user", SenderType.AI: "model"}


def sanitize_reply(text: Optional[str]) -> str:
    """Strip markdown characters and rote filler phrases from a model reply"""
    cleaned = _MARKDOWN_CHARS.sub("", text or "")
    while True:
        collapsed = _WHITESPACE.sub(" ", cleaned)
        stripped = _FILLERS.sub("", collapsed)
        if stripped == cleaned:
            break
        cleaned = stripped
    return _WHITESPACE.sub(" ", cleaned).strip()


def get_or_create_conversation(db: Session, student_id: int, personality_id: int) -> Conversation:
    conversation = store.get_conversation(db, student_id, personality_id)
    if conversation is not None:
        return conversation
    try:
        return store.create_conversation(db, student_id, personality_id)
    except IntegrityError:
        # Created concurrently by another session
        db.rollback()
        return store.get_conversation(db, student_id, personality_id)


def build_history(messages: List[Message], window: int) -> List[ChatTurn]:
    recent = messages[-window:] if window > 0 else []
    return [ChatTurn(role=ROLE_BY_SENDER[m.sender_type], text=m.message_text) for m in recent]


async def post_message(db: Session, gateway: InferenceGateway, conversation_id: int, personality_id: int,
                       text: str, settings: Optional[AppSettings] = None) -> TurnResult:
    """
    Run one chat turn.

    The student message is stored before the model is called, so a failed
    call still leaves it in the transcript with no AI reply.
    """
    settings = settings or get_settings()
    if not text or not text.strip():
        e = ValidationFailure("Message cannot be empty")
        return TurnResult(success=False, message=e.message, error_code=e.code)
    text = text.strip()

    async with conversation_locks.hold(conversation_id):
        try:
            conversation = store.get_conversation_by_id(db, conversation_id)
            if conversation is None:
                raise NotFound("Conversation not found")

            prior = store.get_conversation_messages(db, conversation_id)
            store.create_message(db, conversation_id, SenderType.STUDENT, text)
            store.refresh_conversation_stats(db, conversation_id)

            personality = store.get_personality_by_id(db, personality_id)
            if personality is None:
                raise NotFound("Personality not found")
        except TeachCloneError as e:
            return TurnResult(success=False, message=e.message, error_code=e.code)

        history = build_history(prior, settings.history_window)
        response = await gateway.generate_chat(personality.system_prompt, history, text)
        if not response.success:
            logger.warning(f"Chat turn failed in conversation {conversation_id}: {response.error}")
            return TurnResult(
                success=False,
                message=response.error or "AI did not respond",
                error_code="gateway_failure",
            )

        reply = sanitize_reply(response.text)
        if not reply:
            logger.warning(f"Chat turn in conversation {conversation_id} had nothing left after cleanup")
            return TurnResult(success=False, message="Empty response from AI", error_code="gateway_failure")

        analysis = latest_teacher_analysis(db, personality.teacher_id)
        voice = derive_voice_profile(personality, analysis)
        try:
            ai_message = store.create_message(
                db, conversation_id, SenderType.AI, reply, voice_profile=voice.model_dump()
            )
            store.refresh_conversation_stats(db, conversation_id)
        except StorageFailure as e:
            return TurnResult(success=False, message=e.message, error_code=e.code)

    logger.info(f"Conversation {conversation_id}: AI replied ({len(reply)} chars, voice {voice.voice_name})")
    return TurnResult(
        success=True,
        ai_response=reply,
        timestamp=ai_message.created_at,
        voice_profile=voice,
        audio_base64=ai_message.audio_base64,
    )


# ============= READ OPERATIONS =============

def list_available_personalities(db: Session) -> List[PersonalitySchema]:
    return [to_personality_schema(p) for p in store.get_visible_personalities(db)]


def get_conversation(db: Session, student_id: int, personality_id: int) -> Optional[ConversationSchema]:
    conversation = store.get_conversation(db, student_id, personality_id)
    return ConversationSchema.model_validate(conversation) if conversation else None


def get_conversation_messages(db: Session, conversation_id: int) -> List[MessageSchema]:
    return [MessageSchema.model_validate(m) for m in store.get_conversation_messages(db, conversation_id)]


def get_transcript(db: Session, conversation_id: int) -> TranscriptResult:
    conversation = store.get_conversation_by_id(db, conversation_id)
    if conversation is None:
        return TranscriptResult(success=False, message="Conversation not found", error_code=NotFound.code)
    return TranscriptResult(
        success=True,
        conversation=ConversationSchema.model_validate(conversation),
        messages=get_conversation_messages(db, conversation_id),
    )
