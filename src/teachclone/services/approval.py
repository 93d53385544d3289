"""
Approval state machine for AI personalities and teacher accounts, plus the
admin dashboard queries that sit next to it.

Allowed moves:
    pending  -> approved | rejected
    rejected -> approved
    approved -> rejected   (only through an explicit re-review)
"""
from typing import Dict, FrozenSet, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from teachclone.data.prompts.chat_prompts import PERSONA_PREVIEW_TEMPLATE
from teachclone.errors import InvalidTransition, NotFound, StorageFailure, TeachCloneError, ValidationFailure
from teachclone.llm.gateway import InferenceGateway
from teachclone.models.database_models import AIPersonality, ApprovalStatus, User, UserRole
from teachclone.models.database_service import (
    commit_or_fail,
    count_users,
    get_personalities,
    get_personality_by_id,
    get_user_by_id,
    get_users_by_role,
)
from teachclone.models.teachclone_models import AdminStats, ApprovalResult, GatewayResponse, PersonalitySchema, UserSchema
from teachclone.services.personality import to_personality_schema

TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.REJECTED: frozenset({ApprovalStatus.APPROVED}),
    ApprovalStatus.APPROVED: frozenset(),
}

REREVIEW_TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.APPROVED: frozenset({ApprovalStatus.REJECTED}),
}


def check_transition(current: ApprovalStatus, target: ApprovalStatus, rereview: bool = False) -> None:
    table = REREVIEW_TRANSITIONS if rereview else TRANSITIONS
    if target not in table.get(current, frozenset()):
        action = "re-review" if rereview else "change"
        raise InvalidTransition(f"Cannot {action} status from {current.value} to {target.value}")


def _personality_result(personality: AIPersonality, message: str) -> ApprovalResult:
    return ApprovalResult(
        success=True,
        message=message,
        status=personality.approval_status,
        is_active=personality.is_active,
        admin_feedback=personality.admin_feedback,
    )


def _load_personality(db: Session, personality_id: int) -> AIPersonality:
    personality = get_personality_by_id(db, personality_id)
    if personality is None:
        raise NotFound("Personality not found")
    return personality


def _failure(e: TeachCloneError, status: Optional[ApprovalStatus] = None) -> ApprovalResult:
    return ApprovalResult(success=False, message=e.message, error_code=e.code, status=status)


# ============= PERSONALITIES =============

def approve_personality(db: Session, personality_id: int, edited_prompt: Optional[str] = None) -> ApprovalResult:
    try:
        personality = _load_personality(db, personality_id)
        check_transition(personality.approval_status, ApprovalStatus.APPROVED)
    except TeachCloneError as e:
        return _failure(e)

    if edited_prompt is not None and edited_prompt.strip():
        personality.system_prompt = edited_prompt.strip()
    personality.approval_status = ApprovalStatus.APPROVED
    personality.is_active = True
    personality.admin_feedback = None
    try:
        commit_or_fail(db, f"update personality {personality_id}")
    except StorageFailure as e:
        return _failure(e)
    db.refresh(personality)
    logger.info(f"Personality {personality_id} approved")
    return _personality_result(personality, "Personality approved and activated!")


def _reject(db: Session, personality_id: int, feedback: Optional[str], rereview: bool) -> ApprovalResult:
    try:
        personality = _load_personality(db, personality_id)
    except TeachCloneError as e:
        return _failure(e)

    # Cancelled feedback prompt: nothing changes
    if feedback is None or not feedback.strip():
        logger.info(f"Rejection of personality {personality_id} dropped: no feedback given")
        return ApprovalResult(
            success=False,
            message="",
            status=personality.approval_status,
            is_active=personality.is_active,
            admin_feedback=personality.admin_feedback,
        )

    try:
        check_transition(personality.approval_status, ApprovalStatus.REJECTED, rereview=rereview)
    except InvalidTransition as e:
        return _failure(e, personality.approval_status)

    personality.approval_status = ApprovalStatus.REJECTED
    personality.is_active = False
    personality.admin_feedback = feedback.strip()
    try:
        commit_or_fail(db, f"update personality {personality_id}")
    except StorageFailure as e:
        return _failure(e)
    db.refresh(personality)
    logger.info(f"Personality {personality_id} rejected{' on re-review' if rereview else ''}")
    return _personality_result(personality, "Personality rejected.")


def reject_personality(db: Session, personality_id: int, feedback: Optional[str]) -> ApprovalResult:
    return _reject(db, personality_id, feedback, rereview=False)


def rereview_personality(db: Session, personality_id: int, feedback: Optional[str]) -> ApprovalResult:
    """Withdraw an approved personality back to rejected"""
    return _reject(db, personality_id, feedback, rereview=True)


def set_personality_active(db: Session, personality_id: int, is_active: bool) -> ApprovalResult:
    try:
        personality = _load_personality(db, personality_id)
        if personality.approval_status != ApprovalStatus.APPROVED:
            raise InvalidTransition("Only approved personalities can be activated or deactivated")
    except TeachCloneError as e:
        return _failure(e)

    personality.is_active = bool(is_active)
    try:
        commit_or_fail(db, f"update personality {personality_id}")
    except StorageFailure as e:
        return _failure(e)
    db.refresh(personality)
    logger.info(f"Personality {personality_id} {'activated' if is_active else 'deactivated'}")
    return _personality_result(personality, "Personality activated." if is_active else "Personality deactivated.")


# ============= TEACHER ACCOUNTS =============

def _set_teacher_status(db: Session, user_id: int, target: ApprovalStatus, rereview: bool = False) -> ApprovalResult:
    try:
        user = get_user_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found")
        if user.role != UserRole.TEACHER:
            raise ValidationFailure("Only teacher accounts go through approval")
        check_transition(user.status, target, rereview=rereview)
    except TeachCloneError as e:
        return _failure(e)

    user.status = target
    try:
        commit_or_fail(db, f"update teacher {user_id}")
    except StorageFailure as e:
        return _failure(e)
    db.refresh(user)
    logger.info(f"Teacher {user.email} is now {target.value}")
    return ApprovalResult(success=True, message=f"Teacher {target.value}.", status=user.status)


def approve_teacher(db: Session, user_id: int) -> ApprovalResult:
    return _set_teacher_status(db, user_id, ApprovalStatus.APPROVED)


def reject_teacher(db: Session, user_id: int) -> ApprovalResult:
    return _set_teacher_status(db, user_id, ApprovalStatus.REJECTED)


def rereview_teacher(db: Session, user_id: int) -> ApprovalResult:
    return _set_teacher_status(db, user_id, ApprovalStatus.REJECTED, rereview=True)


# ============= ADMIN QUERIES =============

def get_admin_stats(db: Session) -> AdminStats:
    return AdminStats(
        pending_teachers=count_users(db, UserRole.TEACHER, ApprovalStatus.PENDING),
        approved_teachers=count_users(db, UserRole.TEACHER, ApprovalStatus.APPROVED),
        total_students=count_users(db, UserRole.STUDENT),
        pending_personalities=len(get_personalities(db, ApprovalStatus.PENDING)),
    )


def list_teachers(db: Session) -> List[UserSchema]:
    teachers: List[User] = get_users_by_role(db, UserRole.TEACHER)
    return [UserSchema.model_validate(teacher) for teacher in teachers]


def list_personalities(db: Session, status: Optional[ApprovalStatus] = None) -> List[PersonalitySchema]:
    return [to_personality_schema(p) for p in get_personalities(db, status)]


def list_pending_personalities(db: Session) -> List[PersonalitySchema]:
    return list_personalities(db, ApprovalStatus.PENDING)


async def preview_personality_reply(gateway: InferenceGateway, system_prompt: str, message: str) -> GatewayResponse:
    """Test chat for the review screen; nothing is persisted"""
    if not message or not message.strip():
        return GatewayResponse(success=False, error="Message is empty")
    prompt = PERSONA_PREVIEW_TEMPLATE.format(system_prompt=system_prompt, message=message.strip())
    return await gateway.generate_text(prompt)
