from .dispatcher import TypedLLMClient, LLMProvider
from .protocols import TypedLLMProtocol

__all__ = ["TypedLLMClient", "LLMProvider", "TypedLLMProtocol"]
