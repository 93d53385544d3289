"""
Admin routes
Teacher account approval, personality review and test chat
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from teachclone.api.dependencies import AdminUser, DBSession, Gateway
from teachclone.api.responses import raise_for_result
from teachclone.models.database_models import ApprovalStatus
from teachclone.models.database_service import get_personality_by_id
from teachclone.models.teachclone_models import AdminStats, ApprovalResult, PersonalitySchema, UserSchema
from teachclone.services import approval

router = APIRouter(prefix="/api/admin", tags=["Admin"])


class ApproveRequest(BaseModel):
    edited_prompt: Optional[str] = None


class FeedbackRequest(BaseModel):
    feedback: Optional[str] = None


class ActiveRequest(BaseModel):
    is_active: bool


class TestChatRequest(BaseModel):
    message: str
    system_prompt: Optional[str] = None


class TestChatResponse(BaseModel):
    response: str


@router.get("/stats", response_model=AdminStats)
async def stats(current_user: AdminUser, db: DBSession):
    return approval.get_admin_stats(db)


# ============= TEACHERS =============

@router.get("/teachers", response_model=List[UserSchema])
async def teachers(current_user: AdminUser, db: DBSession):
    return approval.list_teachers(db)


@router.post("/teachers/{user_id}/approve", response_model=ApprovalResult)
async def approve_teacher(user_id: int, current_user: AdminUser, db: DBSession):
    return raise_for_result(approval.approve_teacher(db, user_id))


@router.post("/teachers/{user_id}/reject", response_model=ApprovalResult)
async def reject_teacher(user_id: int, current_user: AdminUser, db: DBSession):
    return raise_for_result(approval.reject_teacher(db, user_id))


@router.post("/teachers/{user_id}/rereview", response_model=ApprovalResult)
async def rereview_teacher(user_id: int, current_user: AdminUser, db: DBSession):
    return raise_for_result(approval.rereview_teacher(db, user_id))


# ============= PERSONALITIES =============

@router.get("/personalities", response_model=List[PersonalitySchema])
async def personalities(current_user: AdminUser, db: DBSession, status: Optional[ApprovalStatus] = None):
    return approval.list_personalities(db, status)


@router.get("/personalities/pending", response_model=List[PersonalitySchema])
async def pending_personalities(current_user: AdminUser, db: DBSession):
    return approval.list_pending_personalities(db)


@router.post("/personalities/{personality_id}/approve", response_model=ApprovalResult)
async def approve_personality(personality_id: int, current_user: AdminUser, db: DBSession,
                              body: Optional[ApproveRequest] = None):
    edited_prompt = body.edited_prompt if body else None
    return raise_for_result(approval.approve_personality(db, personality_id, edited_prompt))


@router.post("/personalities/{personality_id}/reject", response_model=ApprovalResult)
async def reject_personality(personality_id: int, body: FeedbackRequest, current_user: AdminUser, db: DBSession):
    """Reject with feedback; an empty feedback leaves the personality untouched"""
    return raise_for_result(approval.reject_personality(db, personality_id, body.feedback))


@router.post("/personalities/{personality_id}/rereview", response_model=ApprovalResult)
async def rereview_personality(personality_id: int, body: FeedbackRequest, current_user: AdminUser, db: DBSession):
    return raise_for_result(approval.rereview_personality(db, personality_id, body.feedback))


@router.post("/personalities/{personality_id}/active", response_model=ApprovalResult)
async def toggle_personality(personality_id: int, body: ActiveRequest, current_user: AdminUser, db: DBSession):
    return raise_for_result(approval.set_personality_active(db, personality_id, body.is_active))


@router.post("/personalities/{personality_id}/test-chat", response_model=TestChatResponse)
async def test_chat(personality_id: int, body: TestChatRequest, current_user: AdminUser,
                    db: DBSession, gateway: Gateway):
    """Try the persona before approving it; an edited prompt can be passed in place of the stored one"""
    personality = get_personality_by_id(db, personality_id)
    if personality is None:
        raise HTTPException(status_code=404, detail="Personality not found")
    response = await approval.preview_personality_reply(
        gateway, body.system_prompt or personality.system_prompt, body.message
    )
    if not response.success:
        raise HTTPException(status_code=502, detail=response.error)
    return TestChatResponse(response=response.text)
