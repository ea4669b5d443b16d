# OpenAI text embedding client, the alternate embedding provider
from openai import AsyncOpenAI, APIConnectionError, APIStatusError, AuthenticationError, InternalServerError, RateLimitError
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
from lucid_recall.common.logging.logger import logger

class AsyncOpenAITextEmbeddingClient(TypedTextEmbeddingProtocol, ProvidesProviderInfo):
    def __init__(
        self,
        model_name: str = "text-embedding-ada-002",
        embedding_size: int = 1536,
        *,
        api_key: str | None = None,
        request_timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        retry_on: tuple[type[Exception], ...] = (InternalServerError, APIConnectionError), # transient failures only
    ):
        # NOTE: SDK-level retries are disabled so tenacity is the single retry policy
        self.client = AsyncOpenAI(api_key=api_key, timeout=request_timeout, max_retries=0)
        self.model_name = model_name
        self.embedding_size = embedding_size
        # Provider metadata for reporting
        self.provider = RateLimitProvider.OPENAI
        self.model = model_name
        self.retryer = AsyncRetrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_wait, max=4),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )

    async def aembed_text(self, text: list[str], **kwargs) -> list[list[float]]:
        """
        Converts list of text strings into embedding vectors, one per input text.
        NOTE: extra kwargs (e.g. Gemini's task_type) are accepted and ignored.
        """
        contents = validate_embedding_input(text)

        try:
            async for attempt in self.retryer:
                with attempt:
                    response = await self.client.embeddings.create(
                        model=self.model_name,
                        input=contents,
                        encoding_format="float",
                    )
                    if not response.data or len(response.data) != len(contents):
                        raise EmbeddingError("Embedding count mismatch")
                    vectors = [item.embedding for item in response.data]
                    return validate_embedding_dimensions(vectors, self.embedding_size)
        except (RateLimitError, AuthenticationError, APIStatusError, APIConnectionError) as e:
            raise self._translate_api_error(e) from e

        raise EmbeddingError("aembed_text() reached unexpected fallthrough; retryer yielded no attempts")

    @staticmethod
    def _translate_api_error(error: Exception) -> EmbeddingError:
        logger.error(f"OpenAI embedding request failed: {error}")
        if getattr(error, "code", None) == "insufficient_quota":
            return EmbeddingQuotaExceededError("OpenAI API quota exceeded")
        if isinstance(error, AuthenticationError) or getattr(error, "code", None) == "invalid_api_key":
            return EmbeddingInvalidCredentialsError("Invalid OpenAI API key")
        if isinstance(error, RateLimitError):
            return EmbeddingRateLimitedError("OpenAI API rate limit exceeded")
        return EmbeddingError(f"Failed to generate embedding: {error}")
