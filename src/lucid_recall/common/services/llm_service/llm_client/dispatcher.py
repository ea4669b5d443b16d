# dispatcher for LLM clients, currently only Google Gemini AI, but scalable to other LLM providers

from enum import Enum, auto
from .protocols import TypedLLMProtocol

# NOTE: to be expanded with more services if desired
class LLMProvider(Enum):
    GOOGLE_GENAI = auto() # just need a unique identifier

class TypedLLMClient:
    def __init__(self, provider: LLMProvider, client: TypedLLMProtocol):
        self.provider = provider
        self.client = client

    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        **kwargs
    ) -> str:
        return await self.client.acomplete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=max_tokens,
            **kwargs
        )
