"""
Voice profile derivation for AI replies
"""
from typing import Optional

from sqlalchemy.orm import Session

from teachclone.models.database_models import VideoAnalysis
from teachclone.models.database_service import get_latest_analysis_for_teacher
from teachclone.models.teachclone_models import VoiceProfile

VOICE_LANG = "en-US"
VOICE_NAMES = {"Female": "en-US-Neural2-F", "Male": "en-US-Neural2-D"}

FEMALE_NAME_HINTS = (
    "fatima", "ayesha", "sarah", "maria", "emily", "jessica",
    "linda", "jennifer", "khadija", "maryam", "zainab", "aisha",
)


def _gender_from_text(text: Optional[str]) -> Optional[str]:
    lowered = (text or "").lower()
    if "female" in lowered or "woman" in lowered:
        return "Female"
    if "male" in lowered or "man" in lowered:
        return "Male"
    return None


def resolve_gender(personality, analysis=None) -> str:
    if analysis is not None:
        explicit = (analysis.teacher_gender or "").strip().lower()
        if explicit in ("female", "male"):
            return explicit.capitalize()
        from_voice = _gender_from_text(analysis.voice_characteristics)
        if from_voice:
            return from_voice

    teacher = getattr(personality, "teacher", None)
    full_name = (getattr(teacher, "full_name", None) or "").lower()
    if any(hint in full_name for hint in FEMALE_NAME_HINTS):
        return "Female"
    return "Male"


def derive_voice_profile(personality, analysis=None) -> VoiceProfile:
    """Pure function of the personality and (optionally) its teacher's analysis"""
    gender = resolve_gender(personality, analysis)
    pitch, rate = 0.0, 1.0
    if analysis is not None:
        tone = (analysis.tone_description or "").lower()
        if "energetic" in tone or "enthusiastic" in tone:
            pitch = 2.0
        elif "calm" in tone or "serious" in tone:
            pitch = -2.0

        pacing = (analysis.pacing or "").lower()
        if "fast" in pacing:
            rate = 1.15
        elif "slow" in pacing:
            rate = 0.90

    return VoiceProfile(pitch=pitch, rate=rate, lang=VOICE_LANG, gender=gender, voice_name=VOICE_NAMES[gender])


def latest_teacher_analysis(db: Session, teacher_id: int) -> Optional[VideoAnalysis]:
    return get_latest_analysis_for_teacher(db, teacher_id)
