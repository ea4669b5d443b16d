# The core async set up for Google's GenAI LLM client
# NOTE: Can be swapped for different LLM providers if necessary

# use tenacity to retry when desired
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from google import genai # officially recommended import path
from google.genai import types
from google.genai import errors as genai_errors

from .protocols import TypedLLMProtocol, ProvidesProviderInfo
from .protocols import RateLimitProvider

from lucid_recall.common.logging.logger import logger

# NOTE: this uses the public Gemini API with an API key, not Vertex AI.
# Set up this client with API key during app initialization
class AsyncGenAITypedClient(TypedLLMProtocol, ProvidesProviderInfo):
    def __init__(
        self,
        model_name: str = "gemini-2.5-flash-lite", # cheap + fast, the evaluator only needs a short JSON judgment
        *,
        api_key: str | None = None,
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        retry_on: tuple[type[Exception], ...] = (genai_errors.ServerError,), # retry overloaded/5xx responses only
    ):
        # Create shared client in __init__ for FastAPI (ASGI)
        # FastAPI runs in a single event loop, so sharing the client is safe and efficient
        # This enables connection pooling and reduces overhead compared to creating a new client per request
        self.client = genai.Client(api_key=api_key)
        self.model_name = model_name
        # Provider metadata for reporting
        self.provider = RateLimitProvider.GOOGLE
        self.model = model_name
        self.retryer = AsyncRetrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_wait, max=4),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )

    async def acomplete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        **kwargs,
    ) -> str:
        """
        Single-turn text completion.
        Returns the raw response text; the caller owns parsing (e.g. JSON judgments).
        Raises on provider errors after retries are exhausted, or on an empty response.
        """
        last_exception = None
        attempt_count = 0

        async for attempt in self.retryer:
            attempt_count += 1
            with attempt: # let tenacity see context of each attempt instead of swallowing until the last
                try:
                    resp = await self.client.aio.models.generate_content(
                        model=self.model_name,
                        contents=user_prompt, # auto-wrapped in a content object
                        config=types.GenerateContentConfig(
                            system_instruction=system_prompt,
                            max_output_tokens=max_tokens,
                        ),
                        **kwargs,
                    )
                    text = getattr(resp, "text", None)
                    if isinstance(text, str) and text.strip():
                        return text

                    raise ValueError("LLM response was empty.")
                except Exception as e:
                    last_exception = e
                    logger.debug(f"[acomplete] attempt {attempt_count} failed: {type(e).__name__}: {e}")
                    # Let tenacity handle retry/terminal re-raise
                    raise

        # NOTE: **IMPORTANT** If we get here, the loop ran zero times (misconfigured retryer) or exited cleanly without return.
        raise RuntimeError(
            f"acomplete() reached unexpected fallthrough after {attempt_count} attempts; "
            f"retryer likely yielded no final exception and no success. last_exc={type(last_exception).__name__ if last_exception else None}"
        )
