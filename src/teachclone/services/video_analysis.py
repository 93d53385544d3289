"""
Video analysis engine.

Turns a stored teaching video into a normalized style profile. The gateway is
tried through an ordered chain of strategies that degrade from full media
understanding, to a metadata-only prompt, to a hardcoded template, so a video
with metadata always ends up analyzed unless the reply is unparseable.
"""
import json
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from teachclone.data.prompts.analysis_prompts import (
    GENERAL_TEMPLATE_PROFILE,
    MATH_KEYWORDS,
    MATH_TEMPLATE_PROFILE,
    METADATA_ANALYSIS_PROMPT,
    VIDEO_ANALYSIS_PROMPT,
)
from teachclone.errors import GatewayFailure, NotFound, StorageFailure, TeachCloneError
from teachclone.llm.gateway import InferenceGateway
from teachclone.models.database_models import Video, VideoStatus
from teachclone.models.database_service import get_video_by_id, update_video_status, upsert_video_analysis
from teachclone.models.teachclone_models import AnalysisResult, VideoAnalysisSchema
from teachclone.utils.blob_storage import BlobStore
from teachclone.utils.config_loader import AppSettings, get_settings
from teachclone.utils.keyed_locks import video_locks
from teachclone.utils.workflow_helpers import build_analysis_data, extract_json_object


@dataclass
class AnalysisContext:
    video: Video
    media: bytes
    max_media_bytes: int


class AnalysisStrategy:
    name = "base"

    def applies(self, context: AnalysisContext) -> bool:
        return True

    async def produce(self, gateway: InferenceGateway, context: AnalysisContext) -> str:
        raise NotImplementedError


class MediaAnalysis(AnalysisStrategy):
    name = "media"

    def applies(self, context: AnalysisContext) -> bool:
        return len(context.media) <= context.max_media_bytes

    async def produce(self, gateway: InferenceGateway, context: AnalysisContext) -> str:
        response = await gateway.generate_from_media(VIDEO_ANALYSIS_PROMPT, context.media, context.video.mime_type)
        if not response.success:
            raise GatewayFailure(response.error or "Media analysis failed")
        return response.text


class MetadataAnalysis(AnalysisStrategy):
    name = "metadata"

    def applies(self, context: AnalysisContext) -> bool:
        video = context.video
        return bool(video.title and video.subject and video.grade_level)

    async def produce(self, gateway: InferenceGateway, context: AnalysisContext) -> str:
        video = context.video
        prompt = METADATA_ANALYSIS_PROMPT.format(
            title=video.title, subject=video.subject, grade_level=video.grade_level
        )
        response = await gateway.generate_text(prompt)
        if not response.success:
            raise GatewayFailure(response.error or "Metadata analysis failed")
        return response.text


class TemplateAnalysis(AnalysisStrategy):
    name = "template"

    async def produce(self, gateway: InferenceGateway, context: AnalysisContext) -> str:
        subject = (context.video.subject or "").lower()
        is_math = any(keyword in subject for keyword in MATH_KEYWORDS)
        return json.dumps(MATH_TEMPLATE_PROFILE if is_math else GENERAL_TEMPLATE_PROFILE)


DEFAULT_STRATEGIES: Tuple[AnalysisStrategy, ...] = (MediaAnalysis(), MetadataAnalysis(), TemplateAnalysis())


async def run_fallback_chain(gateway: InferenceGateway, context: AnalysisContext,
                             strategies: Sequence[AnalysisStrategy] = DEFAULT_STRATEGIES) -> Tuple[str, str]:
    """
    Try each strategy in order and return (strategy name, raw reply text).

    A strategy whose precondition does not hold is skipped; one that fails
    hands over to the next.

    Raises:
        GatewayFailure: If every strategy was skipped or failed
    """
    video_id = context.video.id
    for strategy in strategies:
        if not strategy.applies(context):
            logger.info(f"Video {video_id}: skipping {strategy.name} analysis")
            continue
        try:
            text = await strategy.produce(gateway, context)
        except GatewayFailure as e:
            logger.warning(f"Video {video_id}: {strategy.name} analysis failed ({e.message}), falling back")
            continue
        logger.info(f"Video {video_id}: analysis produced by {strategy.name} strategy")
        return strategy.name, text
    raise GatewayFailure(f"No analysis strategy succeeded for video {video_id}")


def mark_failed(db: Session, video_id: int) -> None:
    try:
        update_video_status(db, video_id, VideoStatus.FAILED)
    except StorageFailure as e:
        logger.error(f"Video {video_id} could not be marked failed: {e.message}")


async def analyze(db: Session, blobs: BlobStore, gateway: InferenceGateway, video_id: int,
                  strategies: Sequence[AnalysisStrategy] = DEFAULT_STRATEGIES,
                  settings: Optional[AppSettings] = None) -> AnalysisResult:
    """Analyze one video and upsert its style profile"""
    settings = settings or get_settings()

    async with video_locks.hold(video_id):
        video = get_video_by_id(db, video_id)
        if video is None:
            return AnalysisResult(success=False, message="Video not found", error_code=NotFound.code)

        logger.info(f"Analyzing video {video_id} ({video.title})")
        try:
            update_video_status(db, video_id, VideoStatus.PROCESSING)
            media = blobs.get_blob(video.file_path)
            if media is None:
                raise NotFound(f"Video file missing from storage: {video.file_path}")

            context = AnalysisContext(video=video, media=media, max_media_bytes=settings.max_media_bytes)
            source, text = await run_fallback_chain(gateway, context, strategies)
            data = build_analysis_data(extract_json_object(text))
            analysis = upsert_video_analysis(db, video_id, source, **data.model_dump())
            update_video_status(db, video_id, VideoStatus.ANALYZED)
        except TeachCloneError as e:
            db.rollback()
            logger.error(f"Analysis of video {video_id} failed: {e.message}")
            mark_failed(db, video_id)
            return AnalysisResult(success=False, message=e.message, error_code=e.code)
        except Exception as e:
            db.rollback()
            logger.exception(f"Unexpected error analyzing video {video_id}: {e}")
            mark_failed(db, video_id)
            return AnalysisResult(success=False, message=f"Analysis failed: {e}", error_code="error")

    return AnalysisResult(
        success=True,
        message="Video analyzed successfully!",
        analysis=VideoAnalysisSchema.model_validate(analysis),
        source=source,
    )
