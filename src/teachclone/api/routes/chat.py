"""
Student chat routes
"""
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from teachclone.api.dependencies import DBSession, Gateway, StudentUser
from teachclone.api.responses import raise_for_result
from teachclone.models.database_models import ApprovalStatus
from teachclone.models.database_service import get_conversation_by_id, get_personality_by_id
from teachclone.models.teachclone_models import PersonalitySchema, TranscriptResult, TurnResult
from teachclone.services.conversation import (
    get_or_create_conversation,
    get_transcript,
    list_available_personalities,
    post_message,
)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


class StartConversationRequest(BaseModel):
    personality_id: int


class PostMessageRequest(BaseModel):
    text: str


def _own_conversation(db, conversation_id: int, student_id: int):
    conversation = get_conversation_by_id(db, conversation_id)
    if conversation is None or conversation.student_id != student_id:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.get("/personalities", response_model=List[PersonalitySchema])
async def available_personalities(current_user: StudentUser, db: DBSession):
    """Approved and active AI teachers"""
    return list_available_personalities(db)


@router.post("/conversations", response_model=TranscriptResult)
async def start_conversation(body: StartConversationRequest, current_user: StudentUser, db: DBSession):
    """Open (or resume) the conversation with an AI teacher and return its transcript"""
    personality = get_personality_by_id(db, body.personality_id)
    if personality is None or personality.approval_status != ApprovalStatus.APPROVED or not personality.is_active:
        raise HTTPException(status_code=404, detail="Personality not available")
    conversation = get_or_create_conversation(db, current_user.id, body.personality_id)
    return raise_for_result(get_transcript(db, conversation.id))


@router.get("/conversations/{conversation_id}", response_model=TranscriptResult)
async def transcript(conversation_id: int, current_user: StudentUser, db: DBSession):
    _own_conversation(db, conversation_id, current_user.id)
    return raise_for_result(get_transcript(db, conversation_id))


@router.post("/conversations/{conversation_id}/messages", response_model=TurnResult)
async def send_message(conversation_id: int, body: PostMessageRequest, current_user: StudentUser,
                       db: DBSession, gateway: Gateway):
    conversation = _own_conversation(db, conversation_id, current_user.id)
    result = await post_message(db, gateway, conversation_id, conversation.personality_id, body.text)
    return raise_for_result(result)
