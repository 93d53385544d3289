"""
Workflow Helper Functions
Parsing and normalization used by the analysis and upload workflows
"""
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from teachclone.errors import MalformedAnalysis
from teachclone.models.teachclone_models import VideoAnalysisData

ALLOWED_VIDEO_TYPES = {
    "video/mp4",
    "video/avi",
    "video/x-msvideo",
    "video/quicktime",
    "video/x-matroska",
    "video/webm",
}

EXTENSION_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".wmv": "video/x-ms-wmv",
    ".webm": "video/webm",
    ".flv": "video/x-flv",
}

DEFAULT_MIME_TYPE = "video/mp4"

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def resolve_mime_type(filename: Optional[str], declared: Optional[str] = None) -> str:
    """Declared type wins, otherwise infer from the file extension"""
    if declared and declared != "application/octet-stream":
        return declared
    suffix = Path(filename or "").suffix.lower()
    return EXTENSION_MIME_TYPES.get(suffix, DEFAULT_MIME_TYPE)


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Code fences are stripped and everything between the first '{' and the
    last '}' is parsed.

    Raises:
        MalformedAnalysis: If no JSON object can be recovered
    """
    if not text:
        raise MalformedAnalysis("Empty analysis response")

    cleaned = _FENCE_PATTERN.sub("", text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise MalformedAnalysis("No JSON object in analysis response")

    try:
        data = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedAnalysis(f"Invalid JSON in analysis response: {e}") from e

    if not isinstance(data, dict):
        raise MalformedAnalysis("Analysis response is not a JSON object")
    return data


def format_tone(raw: Dict[str, Any]) -> str:
    tone = raw.get("tone_and_energy")
    if isinstance(tone, dict):
        return f"{tone.get('description', '')} (Level: {tone.get('level', '')})"
    if isinstance(tone, str) and tone.strip():
        return tone.strip()
    return raw.get("tone_description") or "Neutral"


def join_field(value: Any) -> Optional[str]:
    """Lists become comma-joined text, scalars pass through as strings"""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if str(item).strip())
    return str(value)


def normalize_gender(value: Any) -> str:
    return "Female" if "female" in str(value or "").lower() else "Male"


def build_analysis_data(raw: Dict[str, Any]) -> VideoAnalysisData:
    """Normalize a raw analysis object into the stored profile shape"""
    data = VideoAnalysisData(
        teaching_style=join_field(raw.get("teaching_style")) or "Not specified",
        common_phrases=join_field(raw.get("common_phrases")) or "",
        tone_description=format_tone(raw),
        pacing=join_field(raw.get("pacing")) or "Moderate",
        teaching_methodology=join_field(raw.get("teaching_methodology")),
        example_types=join_field(raw.get("example_types")),
        key_characteristics=join_field(raw.get("unique_traits") or raw.get("key_characteristics")),
        teacher_gender=normalize_gender(raw.get("teacher_gender")),
        voice_characteristics=join_field(raw.get("voice_characteristics")),
        student_interaction_style=join_field(raw.get("student_interaction_style")),
        explanation_structure=join_field(raw.get("explanation_structure")),
    )
    logger.debug(f"Normalized analysis: style={data.teaching_style[:40]!r}, gender={data.teacher_gender}")
    return data
