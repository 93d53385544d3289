"""
Tests for the inference gateway against pydantic-ai's FunctionModel
"""
import asyncio

from pydantic_ai import BinaryContent
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from teachclone.llm.gateway import InferenceGateway, to_message_history
from teachclone.models.teachclone_models import ChatTurn


def recording_model(reply="Plain answer"):
    seen = []

    def respond(messages, info: AgentInfo) -> ModelResponse:
        seen.append(messages)
        return ModelResponse(parts=[TextPart(content=reply)])

    return FunctionModel(respond), seen


def user_contents(messages):
    return [
        part.content
        for message in messages if isinstance(message, ModelRequest)
        for part in message.parts if isinstance(part, UserPromptPart)
    ]


class TestInferenceGateway:

    def test_generate_text_appends_english_instruction(self):
        model, seen = recording_model("Bonjour? No, hello!")
        response = asyncio.run(InferenceGateway(model).generate_text("Describe a teacher"))

        assert response.success
        assert response.text == "Bonjour? No, hello!"
        assert user_contents(seen[0]) == ["Describe a teacher\n\nRespond ONLY in English."]

    def test_generate_from_media_sends_bytes_before_prompt(self):
        model, seen = recording_model('{"teaching_style": "x"}')
        response = asyncio.run(InferenceGateway(model).generate_from_media("Analyze", b"\x00\x01", "video/mp4"))

        assert response.success
        content = user_contents(seen[0])[0]
        assert isinstance(content[0], BinaryContent)
        assert content[0].media_type == "video/mp4"
        assert content[1] == "Analyze"

    def test_generate_chat_passes_history_and_persona(self):
        model, seen = recording_model("Step by step!")
        history = [ChatTurn(role="user", text="Hi"), ChatTurn(role="model", text="Hello there")]

        response = asyncio.run(InferenceGateway(model).generate_chat("You are Mr. Lee.", history, "Help me"))

        assert response.text == "Step by step!"
        messages = seen[0]
        assert user_contents(messages) == ["Hi", "Help me"]
        assert any(isinstance(m, ModelResponse) for m in messages)
        assert "You are Mr. Lee." in messages[-1].instructions
        assert "IMPORTANT OUTPUT RULES" in messages[-1].instructions

    def test_model_error_becomes_failed_response(self):
        def explode(messages, info):
            raise RuntimeError("quota exceeded")

        response = asyncio.run(InferenceGateway(FunctionModel(explode)).generate_text("anything"))
        assert not response.success
        assert "quota exceeded" in response.error

    def test_empty_reply_is_failure(self):
        model, _ = recording_model("   ")
        response = asyncio.run(InferenceGateway(model).generate_text("anything"))
        assert not response.success


class TestMessageHistory:

    def test_roles_map_to_requests_and_responses(self):
        messages = to_message_history([
            ChatTurn(role="user", text="question"),
            ChatTurn(role="model", text="answer"),
        ])
        assert isinstance(messages[0], ModelRequest)
        assert messages[0].parts[0].content == "question"
        assert isinstance(messages[1], ModelResponse)
        assert messages[1].parts[0].content == "answer"

    def test_empty_history(self):
        assert to_message_history([]) == []
