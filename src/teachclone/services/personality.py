"""
Personality synthesis: compile a teacher's latest analysis into a system prompt
"""
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from teachclone.data.prompts.chat_prompts import PERSONALITY_PROMPT_TEMPLATE
from teachclone.errors import NotFound, PrerequisiteMissing, TeachCloneError
from teachclone.models.database_models import AIPersonality, VideoAnalysis
from teachclone.models.database_service import (
    get_analysis_by_video_id,
    get_personality_by_teacher_id,
    get_video_by_id,
    upsert_personality,
)
from teachclone.models.teachclone_models import PersonalityResult, PersonalitySchema
from teachclone.utils.keyed_locks import personality_locks

DEFAULT_TEACHER_NAME = "Teacher"


def build_system_prompt(teacher_name: str, analysis: VideoAnalysis) -> str:
    return PERSONALITY_PROMPT_TEMPLATE.format(
        teacher_name=teacher_name,
        tone_description=analysis.tone_description or "Neutral",
        teaching_style=analysis.teaching_style or "Not specified",
        common_phrases=analysis.common_phrases or "",
        pacing=analysis.pacing or "Moderate",
        example_types=analysis.example_types or "relatable examples",
        teaching_methodology=analysis.teaching_methodology or "Not specified",
        key_characteristics=analysis.key_characteristics or "Not specified",
    )


def personality_name_for(teacher_name: str) -> str:
    return f"{teacher_name}'s AI Clone"


def to_personality_schema(personality: AIPersonality) -> PersonalitySchema:
    schema = PersonalitySchema.model_validate(personality)
    if personality.teacher is not None:
        schema.teacher_name = personality.teacher.full_name
    return schema


async def generate_personality(db: Session, video_id: int) -> PersonalityResult:
    """
    Create or overwrite the personality of the video's teacher.

    Regeneration resets the personality to pending and inactive so the new
    prompt goes back through admin review.
    """
    try:
        video = get_video_by_id(db, video_id)
        if video is None:
            raise NotFound("Video not found")
        analysis = get_analysis_by_video_id(db, video_id)
        if analysis is None:
            raise PrerequisiteMissing("Please analyze the video first.")

        teacher_name = (video.teacher.full_name if video.teacher else None) or DEFAULT_TEACHER_NAME
        prompt = build_system_prompt(teacher_name, analysis)

        async with personality_locks.hold(video.teacher_id):
            personality = upsert_personality(db, video.teacher_id, personality_name_for(teacher_name), prompt)
    except TeachCloneError as e:
        logger.warning(f"Personality generation for video {video_id} refused: {e.message}")
        return PersonalityResult(success=False, message=e.message, error_code=e.code)

    logger.info(f"Personality {personality.id} generated for teacher {video.teacher_id}, awaiting review")
    return PersonalityResult(
        success=True,
        message="AI personality generated! Waiting for admin approval.",
        personality=to_personality_schema(personality),
    )


def get_personality_for_teacher(db: Session, teacher_id: int) -> Optional[PersonalitySchema]:
    personality = get_personality_by_teacher_id(db, teacher_id)
    return to_personality_schema(personality) if personality else None
