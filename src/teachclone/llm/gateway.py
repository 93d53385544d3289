"""
Inference gateway: the only place that talks to the hosted model.

Every call returns a GatewayResponse. Transport, quota and model errors are
reported through ``success=False`` and never retried here; retry and
degradation policy belongs to the calling engine.
"""
from typing import List, Optional

from loguru import logger
from pydantic_ai import BinaryContent
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models import Model

from teachclone.data.prompts.chat_prompts import ENGLISH_ONLY_SUFFIX, OUTPUT_RULES
from teachclone.llm.base import AgentClient
from teachclone.models.teachclone_models import ChatTurn, GatewayResponse


def to_message_history(history: List[ChatTurn]) -> List[ModelMessage]:
    """Map prior chat turns onto pydantic-ai request/response messages"""
    messages: List[ModelMessage] = []
    for turn in history:
        if turn.role == "user":
            messages.append(ModelRequest(parts=[UserPromptPart(content=turn.text)]))
        else:
            messages.append(ModelResponse(parts=[TextPart(content=turn.text)]))
    return messages


class InferenceGateway:
    def __init__(self, model: Optional[Model] = None):
        self.model = model

    async def _run(self, user_prompt, instructions: Optional[str] = None,
                   message_history: Optional[List[ModelMessage]] = None) -> GatewayResponse:
        try:
            agent = AgentClient(instructions=instructions, model=self.model).create_agent()
            result = await agent.run(user_prompt, message_history=message_history or None)
        except Exception as e:
            logger.error(f"Inference call failed: {e}")
            return GatewayResponse(success=False, error=str(e) or e.__class__.__name__)

        text = result.output if isinstance(result.output, str) else str(result.output or "")
        if not text.strip():
            logger.warning("Inference call returned an empty response")
            return GatewayResponse(success=False, error="Empty response from AI")
        return GatewayResponse(success=True, text=text)

    async def generate_text(self, prompt: str) -> GatewayResponse:
        return await self._run(prompt + ENGLISH_ONLY_SUFFIX)

    async def generate_from_media(self, prompt: str, media_bytes: bytes, mime_type: str) -> GatewayResponse:
        logger.info(f"Submitting {len(media_bytes)} bytes of {mime_type} for analysis")
        return await self._run([BinaryContent(data=media_bytes, media_type=mime_type), prompt])

    async def generate_chat(self, system_prompt: str, history: List[ChatTurn], new_message: str) -> GatewayResponse:
        return await self._run(
            new_message,
            instructions=f"{system_prompt}\n{OUTPUT_RULES}",
            message_history=to_message_history(history),
        )
