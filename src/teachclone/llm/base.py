from typing import Callable, List, Optional, Type, TypeVar

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from teachclone.utils.config_loader import get_settings

T = TypeVar('T')


def build_google_model(model_name: Optional[str] = None, api_key: Optional[str] = None) -> GoogleModel:
    settings = get_settings()
    provider = GoogleProvider(api_key=api_key or settings.gemini_api_key)
    return GoogleModel(model_name or settings.gemini_model, provider=provider)


class AgentClient:
    def __init__(
        self, instructions: Optional[str] = None, tools: Optional[List[Callable]] = None, model: Optional[Model] = None
    ):
        self.model = model
        self.instructions = instructions
        self.tools = tools or []

    def create_agent(self, result_type: Optional[Type[T]] = None):
        """Creates and returns a PydanticAI Agent instance."""
        model = self.model or build_google_model()
        if result_type:
            agent: Agent[None, T] = Agent(
                model=model,
                instructions=self.instructions,
                tools=self.tools,
                output_type=result_type  # type: ignore
            )
            return agent
        return Agent(model=model, instructions=self.instructions, tools=self.tools)
