# protocols for LLM clients

from typing import Protocol, runtime_checkable
from enum import Enum

# Ensures that all LLM clients implement this protocol
# NOTE: single-turn text completion only; callers own any parsing of the returned text
class TypedLLMProtocol(Protocol):
    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        **kwargs
    ) -> str: ...

class RateLimitProvider(str, Enum):
    """Enumeration of supported rate limit providers."""
    GOOGLE = "google"

@runtime_checkable
class ProvidesProviderInfo(Protocol):
    """Optional protocol for exposing provider/model metadata for reporting."""
    provider: RateLimitProvider
    model: str
