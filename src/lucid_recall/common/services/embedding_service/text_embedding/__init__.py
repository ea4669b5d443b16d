# gemini and openai both offer text embedding APIs

from lucid_recall.common.services.embedding_service.text_embedding.dispatcher import TypedTextEmbeddingClient, TextEmbeddingProvider
from lucid_recall.common.services.embedding_service.text_embedding.protocols import TypedTextEmbeddingProtocol
from lucid_recall.common.services.embedding_service.text_embedding.errors import (
    EmbeddingError,
    EmptyEmbeddingInputError,
    EmbeddingQuotaExceededError,
    EmbeddingInvalidCredentialsError,
    EmbeddingRateLimitedError,
    EmbeddingDimensionMismatchError,
)

# NOTE: only supports the generic wrappers + error taxonomy here, import provider clients directly
__all__ = [
    "TypedTextEmbeddingClient",
    "TextEmbeddingProvider",
    "TypedTextEmbeddingProtocol",
    "EmbeddingError",
    "EmptyEmbeddingInputError",
    "EmbeddingQuotaExceededError",
    "EmbeddingInvalidCredentialsError",
    "EmbeddingRateLimitedError",
    "EmbeddingDimensionMismatchError",
]
