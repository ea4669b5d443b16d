# dispatcher for text embedding clients: Google Gemini by default, OpenAI as the alternate provider

from enum import Enum, auto
from lucid_recall.common.services.embedding_service.text_embedding.protocols import TypedTextEmbeddingProtocol

class TextEmbeddingProvider(Enum):
    GOOGLE_GENAI = auto() # just need a unique identifier
    OPENAI = auto()

class TypedTextEmbeddingClient:
    def __init__(self, provider: TextEmbeddingProvider, client: TypedTextEmbeddingProtocol):
        self.provider = provider
        self.client = client

    async def aembed_text(
        self,
        text: list[str],
        **kwargs
    ) -> list[list[float]]:
        return await self.client.aembed_text(
            text=text,
            **kwargs
        )
