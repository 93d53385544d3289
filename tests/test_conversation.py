"""
Tests for the conversation engine
"""
import asyncio

import pytest

from teachclone.errors import StorageFailure
from teachclone.models import database_service
from teachclone.models.database_models import SenderType
from teachclone.models.database_service import create_message, upsert_personality, upsert_video_analysis
from teachclone.services.approval import approve_personality, set_personality_active
from teachclone.services.conversation import (
    get_conversation,
    get_conversation_messages,
    get_or_create_conversation,
    get_transcript,
    list_available_personalities,
    post_message,
)
from teachclone.data.prompts.chat_prompts import OUTPUT_RULES

from conftest import FakeGateway, fail, ok


@pytest.fixture
def personality(db, teacher):
    personality = upsert_personality(db, teacher.id, "Sarah Khan's AI Clone", "You are Sarah Khan.")
    approve_personality(db, personality.id)
    return personality


@pytest.fixture
def conversation(db, student, personality):
    return get_or_create_conversation(db, student.id, personality.id)


class TestConversationIdentity:

    def test_get_or_create_is_idempotent(self, db, student, personality):
        first = get_or_create_conversation(db, student.id, personality.id)
        second = get_or_create_conversation(db, student.id, personality.id)
        assert first.id == second.id
        assert get_conversation(db, student.id, personality.id).id == first.id

    def test_separate_pairs_get_separate_conversations(self, db, make_user, student, personality):
        other = make_user(full_name="Other Student")
        assert get_or_create_conversation(db, other.id, personality.id).id != \
            get_or_create_conversation(db, student.id, personality.id).id

    def test_available_personalities_are_approved_and_active(self, db, personality):
        assert [p.id for p in list_available_personalities(db)] == [personality.id]
        set_personality_active(db, personality.id, False)
        assert list_available_personalities(db) == []


class TestPostMessage:

    def test_gateway_failure_keeps_only_student_message(self, db, conversation, personality):
        gateway = FakeGateway(chat=[fail("network down")])

        result = asyncio.run(post_message(db, gateway, conversation.id, personality.id, "Hello"))

        assert not result.success
        messages = get_conversation_messages(db, conversation.id)
        assert [(m.sender_type, m.message_text) for m in messages] == [(SenderType.STUDENT, "Hello")]

    def test_successful_turn(self, db, conversation, personality):
        gateway = FakeGateway(chat=[ok("**Hello!** Thanks for the click, let's begin.")])

        result = asyncio.run(post_message(db, gateway, conversation.id, personality.id, "Hi teacher"))

        assert result.success
        assert result.ai_response == "Hello! let's begin."
        assert result.voice_profile.gender == "Female"
        assert result.timestamp is not None

        transcript = get_transcript(db, conversation.id)
        assert [m.sender_type for m in transcript.messages] == [SenderType.STUDENT, SenderType.AI]
        assert transcript.messages[1].message_text == "Hello! let's begin."
        assert transcript.messages[1].voice_profile.voice_name == "en-US-Neural2-F"
        assert transcript.conversation.message_count == 2

        call = gateway.calls[0][1]
        assert call["system_prompt"] == "You are Sarah Khan."
        assert call["history"] == []
        assert call["new_message"] == "Hi teacher"

    def test_voice_profile_uses_latest_teacher_analysis(self, db, make_video, conversation, personality):
        video = make_video()
        upsert_video_analysis(db, video.id, "media", teaching_style="Brisk", tone_description="Energetic (Level: 9)",
                              pacing="fast", teacher_gender="Male")

        result = asyncio.run(post_message(db, FakeGateway(chat=[ok("Go!")]), conversation.id, personality.id, "Hi"))

        assert result.voice_profile.gender == "Male"
        assert result.voice_profile.pitch == 2.0
        assert result.voice_profile.rate == 1.15

    def test_history_window_is_last_ten_messages(self, db, conversation, personality):
        for i in range(14):
            sender = SenderType.STUDENT if i % 2 == 0 else SenderType.AI
            create_message(db, conversation.id, sender, f"msg {i}")
        gateway = FakeGateway(chat=[ok("Sure.")])

        asyncio.run(post_message(db, gateway, conversation.id, personality.id, "newest"))

        history = gateway.calls[0][1]["history"]
        assert len(history) == 10
        assert [turn.text for turn in history] == [f"msg {i}" for i in range(4, 14)]
        assert history[0].role == "user"
        assert history[1].role == "model"

    def test_empty_text_stores_nothing(self, db, conversation, personality):
        gateway = FakeGateway()
        result = asyncio.run(post_message(db, gateway, conversation.id, personality.id, "   "))
        assert result.error_code == "validation_failure"
        assert get_conversation_messages(db, conversation.id) == []
        assert gateway.calls == []

    def test_unknown_conversation(self, db, personality):
        result = asyncio.run(post_message(db, FakeGateway(), 999, personality.id, "Hello"))
        assert result.error_code == "not_found"

    def test_unknown_personality_keeps_student_message(self, db, conversation):
        result = asyncio.run(post_message(db, FakeGateway(), conversation.id, 999, "Hello"))
        assert result.error_code == "not_found"
        assert len(get_conversation_messages(db, conversation.id)) == 1

    def test_reply_that_cleans_to_nothing_is_a_failed_turn(self, db, conversation, personality):
        gateway = FakeGateway(chat=[ok("**Thanks for the click!**")])

        result = asyncio.run(post_message(db, gateway, conversation.id, personality.id, "Hello"))

        assert not result.success
        assert result.error_code == "gateway_failure"
        assert [m.sender_type for m in get_conversation_messages(db, conversation.id)] == [SenderType.STUDENT]

    def test_student_message_write_failure_is_reported(self, db, conversation, personality, failing_commit):
        gateway = FakeGateway(chat=[ok("Hi")])
        failing_commit()

        result = asyncio.run(post_message(db, gateway, conversation.id, personality.id, "Hello"))

        assert result.error_code == "storage_failure"
        assert gateway.calls == []
        assert get_conversation_messages(db, conversation.id) == []

    def test_ai_message_write_failure_is_reported(self, db, conversation, personality, monkeypatch):
        original = database_service.create_message

        def create_message(db, conversation_id, sender_type, message_text, **kwargs):
            if sender_type == SenderType.AI:
                raise StorageFailure("Could not save message")
            return original(db, conversation_id, sender_type, message_text, **kwargs)

        monkeypatch.setattr(database_service, "create_message", create_message)
        result = asyncio.run(post_message(db, FakeGateway(chat=[ok("Hi")]), conversation.id, personality.id, "Hello"))

        assert not result.success
        assert result.error_code == "storage_failure"
        assert [m.sender_type for m in get_conversation_messages(db, conversation.id)] == [SenderType.STUDENT]

    def test_turns_on_one_conversation_are_serialized(self, db, conversation, personality):
        gateway = FakeGateway(chat=[ok("first reply"), ok("second reply")])

        async def two_turns():
            return await asyncio.gather(
                post_message(db, gateway, conversation.id, personality.id, "one"),
                post_message(db, gateway, conversation.id, personality.id, "two"),
            )

        asyncio.run(two_turns())

        texts = [m.message_text for m in get_conversation_messages(db, conversation.id)]
        assert texts == ["one", "first reply", "two", "second reply"]
        assert [turn.text for turn in gateway.calls[1][1]["history"]] == ["one", "first reply"]


class TestOutputRules:

    def test_rules_forbid_markdown_and_filler(self):
        assert "Do NOT use markdown formatting" in OUTPUT_RULES
        assert "Thanks for the click" in OUTPUT_RULES
