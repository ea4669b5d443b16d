from google import genai # officially recommended import path
from google.genai import types
from google.genai import errors as genai_errors
from google.genai.types import ContentEmbedding

from typing import List, Optional
# use tenacity to retry when desired
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from lucid_recall.common.services.embedding_service.text_embedding.protocols import TypedTextEmbeddingProtocol, ProvidesProviderInfo
from lucid_recall.common.services.embedding_service.text_embedding.protocols import RateLimitProvider
from lucid_recall.common.services.embedding_service.text_embedding.errors import (
    EmbeddingError,
    EmbeddingQuotaExceededError,
    EmbeddingInvalidCredentialsError,
    EmbeddingRateLimitedError,
    validate_embedding_input,
    validate_embedding_dimensions,
)
from lucid_recall.common.types.text_embedding_task_types import VALID_GEMINI_TASK_TYPES
from lucid_recall.common.logging.logger import logger

class AsyncGenAITextEmbeddingClient(TypedTextEmbeddingProtocol, ProvidesProviderInfo):
    """
    Core Google GenAI Embedding Client.
    """
    def __init__(
        self,
        model_name: str = "gemini-embedding-001", # google genai's default text embedding model
        content_type: str = "RETRIEVAL_DOCUMENT", # choose to differ embedding style, RETRIEVAL_QUERY is passed per call for search queries
        embedding_size: int = 1536, # NOTE: use at max 1536 embeddings for now, matches the Vector(1536) memory columns
        *,
        api_key: str | None = None,
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        retry_on: tuple[type[Exception], ...] = (genai_errors.ServerError,), # only retry transient server-side failures
    ):
        # Create shared client in __init__ for FastAPI (ASGI)
        # FastAPI runs in a single event loop, so sharing the client is safe and efficient
        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name
        self.content_type = content_type # content/task type to specialized embeddings
        self.embedding_size = embedding_size
        # Provider metadata for reporting
        self.provider = RateLimitProvider.GOOGLE
        self.model = model_name
        self.retryer = AsyncRetrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_wait, max=4),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )

    async def aembed_text(self, text: list[str], task_type: Optional[str] = None) -> list[list[float]]:
        """
        Converts list of text strings into embedding vectors.
        Returns one vector per input text, each of `embedding_size` dimensions.

        Args:
            text: List of text strings to embed.
            task_type: Optional override for the embedding task type.
            If None or not a recognized Gemini task type, falls back to the instance's content_type.

        Raises:
            EmptyEmbeddingInputError, EmbeddingQuotaExceededError, EmbeddingInvalidCredentialsError,
            EmbeddingRateLimitedError, EmbeddingDimensionMismatchError, or EmbeddingError for anything else.
        """
        contents = validate_embedding_input(text)
        resolved_task_type = task_type if task_type in VALID_GEMINI_TASK_TYPES else self.content_type

        try:
            async for attempt in self.retryer:
                with attempt:
                    result = await self.client.aio.models.embed_content(
                        model=self.model,
                        contents=contents, # type: ignore[arg-type] # GenAI SDK accepts list[str] at runtime
                        config=types.EmbedContentConfig(task_type=resolved_task_type, output_dimensionality=self.embedding_size),
                    )
                    embeddings: List[ContentEmbedding] | None = result.embeddings if result else None
                    vectors = [
                        embedding.values
                        for embedding in (embeddings or [])
                        if embedding is not None and embedding.values is not None
                    ]
                    if len(vectors) != len(contents):
                        raise EmbeddingError(f"Embedding count mismatch: expected {len(contents)}, got {len(vectors)}")
                    return validate_embedding_dimensions(vectors, self.embedding_size)
        except genai_errors.APIError as e:
            raise self._translate_api_error(e) from e

        raise EmbeddingError("aembed_text() reached unexpected fallthrough; retryer yielded no attempts")

    @staticmethod
    def _translate_api_error(error: genai_errors.APIError) -> EmbeddingError:
        """Map Gemini API errors onto the shared embedding error taxonomy."""
        message = str(error.message or error)
        logger.error(f"Gemini embedding request failed ({error.code}): {message}")
        if error.code == 429:
            if "quota" in message.lower():
                return EmbeddingQuotaExceededError("Gemini embedding quota exceeded")
            return EmbeddingRateLimitedError("Gemini embedding rate limit exceeded")
        if error.code in (401, 403) or "api key" in message.lower():
            return EmbeddingInvalidCredentialsError("Invalid Gemini API key")
        return EmbeddingError(f"Failed to generate embedding: {message}")
