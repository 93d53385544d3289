"""
Tests for the video analysis engine and its fallback chain
"""
import asyncio
import json

import pytest

from teachclone.errors import StorageFailure
from teachclone.models.database_models import VideoStatus
from teachclone.models.database_service import get_analysis_by_video_id, get_video_by_id
from teachclone.services import video_analysis
from teachclone.services.video_analysis import (
    AnalysisStrategy,
    MetadataAnalysis,
    TemplateAnalysis,
    analyze,
)
from teachclone.utils.config_loader import get_settings

from conftest import FakeGateway, fail, ok

MEDIA_REPLY = json.dumps({
    "teacher_gender": "female",
    "teaching_style": "Story-driven and patient",
    "common_phrases": ["Picture this", "Who can tell me why?"],
    "tone_and_energy": {"level": 8, "description": "Energetic"},
    "pacing": "fast",
    "unique_traits": ["Draws diagrams"],
})

METADATA_REPLY = "```json\n" + json.dumps({
    "teacher_gender": "male",
    "teaching_style": "Worked examples on the board",
    "common_phrases": ["Let's solve this step by step"],
    "tone_and_energy": {"level": 6, "description": "Steady"},
}) + "\n```"


def run(coro):
    return asyncio.run(coro)


class TestFallbackChain:

    def test_large_algebra_video_never_sent_to_gateway(self, db, blobs, make_video):
        video = make_video(data=b"\x00" * (25 * 1024 * 1024), subject="Algebra")
        gateway = FakeGateway(text=[fail("quota exceeded")])

        result = run(analyze(db, blobs, gateway, video.id))

        assert result.success
        assert "media" not in gateway.kinds
        assert result.source == "template"
        assert result.analysis.teaching_style
        assert result.analysis.tone_description == "Calm and reassuring (Level: 6)"
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.ANALYZED

    def test_large_video_uses_metadata_prompt(self, db, blobs, make_video):
        video = make_video(data=b"\x00" * (get_settings().max_media_bytes + 1), subject="Algebra",
                           title="Quadratics", grade_level="Grade 9")
        gateway = FakeGateway(text=[ok(METADATA_REPLY)])

        result = run(analyze(db, blobs, gateway, video.id))

        assert result.source == "metadata"
        assert gateway.kinds == ["text"]
        prompt = gateway.calls[0][1]["prompt"]
        assert "Subject: Algebra" in prompt and "Grade Level: Grade 9" in prompt and "Title: Quadratics" in prompt
        assert result.analysis.teaching_style == "Worked examples on the board"
        assert result.analysis.pacing == "Moderate"

    def test_media_success(self, db, blobs, make_video):
        video = make_video(subject="History")
        gateway = FakeGateway(media=[ok(MEDIA_REPLY)])

        result = run(analyze(db, blobs, gateway, video.id))

        assert result.success and result.source == "media"
        assert gateway.kinds == ["media"]
        assert gateway.calls[0][1]["mime_type"] == "video/mp4"
        stored = get_analysis_by_video_id(db, video.id)
        assert stored.analysis_source == "media"
        assert stored.teacher_gender == "Female"
        assert stored.common_phrases == "Picture this, Who can tell me why?"
        assert stored.tone_description == "Energetic (Level: 8)"

    def test_media_failure_falls_back_to_metadata(self, db, blobs, make_video):
        video = make_video(subject="Algebra")
        gateway = FakeGateway(media=[fail("unsupported format")], text=[ok(METADATA_REPLY)])

        result = run(analyze(db, blobs, gateway, video.id))

        assert gateway.kinds == ["media", "text"]
        assert result.source == "metadata"

    def test_all_gateway_paths_fail_uses_narrative_template(self, db, blobs, make_video):
        video = make_video(subject="English Literature")
        gateway = FakeGateway(media=[fail()], text=[fail()])

        result = run(analyze(db, blobs, gateway, video.id))

        assert result.success and result.source == "template"
        assert result.analysis.teacher_gender == "Female"
        assert result.analysis.explanation_structure == "Context -> Concept -> Application"

    def test_math_subject_uses_math_template(self, db, blobs, make_video):
        video = make_video(subject="Mathematics")
        result = run(analyze(db, blobs, FakeGateway(), video.id))
        assert result.analysis.explanation_structure == "Definition -> Formula -> Example"
        assert result.analysis.teacher_gender == "Male"

    def test_exhausted_chain_marks_video_failed(self, db, blobs, make_video):
        video = make_video()
        result = run(analyze(db, blobs, FakeGateway(), video.id, strategies=(MetadataAnalysis(),)))

        assert not result.success
        assert result.error_code == "gateway_failure"
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.FAILED


class TestAnalysisOutcomes:

    def test_malformed_reply_marks_video_failed(self, db, blobs, make_video):
        video = make_video()
        gateway = FakeGateway(media=[ok("I could not watch the video, sorry.")])

        result = run(analyze(db, blobs, gateway, video.id))

        assert not result.success
        assert result.error_code == "malformed_analysis"
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.FAILED
        assert get_analysis_by_video_id(db, video.id) is None

    def test_unknown_video(self, db, blobs):
        result = run(analyze(db, blobs, FakeGateway(), 999))
        assert not result.success
        assert result.error_code == "not_found"

    def test_missing_blob_marks_video_failed(self, db, blobs, make_video):
        video = make_video()
        blobs.delete_blob(video.file_path)
        gateway = FakeGateway()

        result = run(analyze(db, blobs, gateway, video.id))

        assert result.error_code == "not_found"
        assert gateway.calls == []
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.FAILED

    def test_unexpected_error_never_leaves_processing(self, db, blobs, make_video):
        class Exploding(AnalysisStrategy):
            name = "exploding"

            async def produce(self, gateway, context):
                raise RuntimeError("boom")

        video = make_video()
        result = run(analyze(db, blobs, FakeGateway(), video.id, strategies=(Exploding(),)))

        assert not result.success
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.FAILED

    def test_status_write_failure_is_reported(self, db, blobs, make_video, failing_commit):
        video = make_video()
        gateway = FakeGateway(media=[ok(MEDIA_REPLY)])
        failing_commit()

        result = run(analyze(db, blobs, gateway, video.id))

        assert not result.success
        assert result.error_code == "storage_failure"
        assert gateway.calls == []
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.UPLOADED

    def test_analysis_write_failure_marks_video_failed(self, db, blobs, make_video, monkeypatch):
        def broken_upsert(*args, **kwargs):
            raise StorageFailure("Could not save analysis")

        monkeypatch.setattr(video_analysis, "upsert_video_analysis", broken_upsert)
        video = make_video()

        result = run(analyze(db, blobs, FakeGateway(media=[ok(MEDIA_REPLY)]), video.id))

        assert result.error_code == "storage_failure"
        assert get_video_by_id(db, video.id).upload_status == VideoStatus.FAILED

    def test_reanalysis_replaces_existing_row(self, db, blobs, make_video):
        video = make_video(subject="Algebra")
        first = run(analyze(db, blobs, FakeGateway(media=[ok(MEDIA_REPLY)]), video.id))
        second = run(analyze(db, blobs, FakeGateway(), video.id, strategies=(TemplateAnalysis(),)))

        assert first.analysis.id == second.analysis.id
        assert second.analysis.analysis_source == "template"
        assert get_analysis_by_video_id(db, video.id).teaching_style.startswith("Logical")

    @pytest.mark.parametrize("replies", [
        {"media": [ok(MEDIA_REPLY)]},
        {"media": [fail()], "text": [ok(METADATA_REPLY)]},
        {"media": [ok("{broken")]},
        {},
    ])
    def test_status_is_terminal_after_analyze(self, db, blobs, make_video, replies):
        video = make_video()
        run(analyze(db, blobs, FakeGateway(**replies), video.id))
        assert get_video_by_id(db, video.id).upload_status in (VideoStatus.ANALYZED, VideoStatus.FAILED)
