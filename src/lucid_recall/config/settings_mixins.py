# mixin settings for external services like db, llm, embeddings, and the context search engine
from typing import Literal, Optional
from pydantic import BaseModel, Field

class MainDBSettingsMixin(BaseModel):
    """
    Model for common SQLAlchemy connection pool settings.
    """
    MAIN_DB_POOL_SIZE: int = Field(default=5, description="Number of connections to keep in the pool.")
    MAIN_DB_MAX_OVERFLOW: int = Field(default=10, description="Max 'overflow' connections beyond pool_size.")
    MAIN_DB_POOL_TIMEOUT: int = Field(default=30, description="Seconds to wait before giving up on getting a connection.")
    MAIN_DB_POOL_RECYCLE: int = Field(default=1800, description="Recycle connections after this many seconds.")
    MAIN_DB_STATEMENT_TIMEOUT_MS: int = Field(default=5000, description="Server-side timeout for a single similarity query.")

    MAIN_DB_USER: str
    MAIN_DB_PW: str
    MAIN_DB_HOST: str
    MAIN_DB_PORT: str
    MAIN_DB_NAME: str

class GoogleGenAISettingsMixin(BaseModel):
    """
    Model for Google GenAI LLM + embedding client settings.
    """
    GOOGLE_GENAI_API_KEY: str
    GOOGLE_GENAI_REASONING_MODEL: str = "gemini-2.5-flash-lite"
    GOOGLE_GENAI_EMBEDDING_MODEL: str = "gemini-embedding-001"

class OpenAISettingsMixin(BaseModel):
    """
    Model for OpenAI embedding client settings.
    Only required when EMBEDDING_PROVIDER is "openai".
    """
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-ada-002"

class EmbeddingSettingsMixin(BaseModel):
    """
    Selects the text embedding provider used for query embeddings.
    NOTE: dimensions must match the Vector(...) columns of the memory tables.
    """
    EMBEDDING_PROVIDER: Literal["google_genai", "openai"] = "google_genai"
    EMBEDDING_DIMENSIONS: int = 1536
    EMBEDDING_CACHE_SIZE: int = Field(default=50, description="Max number of query texts kept in the exact match cache.")

class ContextSearchSettingsMixin(BaseModel):
    """
    Service-wide defaults for the recursive context search.
    Per-request overrides are merged on top of these when building a SearchConfig.
    """
    CONTEXT_SEARCH_MAX_DEPTH: int = 3
    CONTEXT_SEARCH_MAX_CHUNKS: int = 20
    CONTEXT_SEARCH_MIN_SIMILARITY: float = 0.4
    CONTEXT_SEARCH_SCOPE: Literal["conversation", "user", "all"] = "user"
    CONTEXT_SEARCH_TARGET_TOKEN_BUDGET: int = 4000
    CONTEXT_SEARCH_EVALUATION_MAX_TOKENS: int = 500
    CONTEXT_SEARCH_SOURCE_TIMEOUT_SECONDS: float = 10.0
    CONTEXT_SEARCH_EVALUATION_TIMEOUT_SECONDS: float = 20.0
