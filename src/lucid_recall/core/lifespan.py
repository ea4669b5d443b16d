from contextlib import asynccontextmanager, AsyncExitStack
from fastapi import FastAPI
from lucid_recall.config.app_config import get_service_settings, ServiceSettings
from lucid_recall.common.logging.logger import logger
from lucid_recall.common.db.session import create_db_engine_context, parse_db_settings_from_service, DBType
from lucid_recall.common.services.llm_service.llm_client import TypedLLMClient, LLMProvider
from lucid_recall.common.services.llm_service.llm_client.google_genai_client import AsyncGenAITypedClient
from lucid_recall.common.services.embedding_service.text_embedding import TypedTextEmbeddingClient, TextEmbeddingProvider
from lucid_recall.common.services.embedding_service.text_embedding.gemini_embedding_client import AsyncGenAITextEmbeddingClient
from lucid_recall.common.services.embedding_service.text_embedding.openai_embedding_client import AsyncOpenAITextEmbeddingClient
from lucid_recall.common.services.embedding_service.text_embedding.protocols import ProvidesProviderInfo
from lucid_recall.memory.context_search.types import SearchConfig
from lucid_recall.memory.context_search.query_embedder import QueryEmbedder
from lucid_recall.memory.context_search.similarity_store import PgVectorSimilarityStore
from lucid_recall.memory.context_search.searchers import build_default_searchers
from lucid_recall.memory.context_search.evaluator import SufficiencyEvaluator
from lucid_recall.memory.context_search.orchestrator import RecursiveContextSearch
from lucid_recall.memory.main_retriever import MainRetriever

def build_default_search_config(settings: ServiceSettings) -> SearchConfig:
    """Service-wide SearchConfig defaults, read once at startup."""
    return SearchConfig(
        max_depth=settings.CONTEXT_SEARCH_MAX_DEPTH,
        max_chunks=settings.CONTEXT_SEARCH_MAX_CHUNKS,
        min_similarity=settings.CONTEXT_SEARCH_MIN_SIMILARITY,
        search_scope=settings.CONTEXT_SEARCH_SCOPE,
        target_token_budget=settings.CONTEXT_SEARCH_TARGET_TOKEN_BUDGET,
        evaluation_max_tokens=settings.CONTEXT_SEARCH_EVALUATION_MAX_TOKENS,
        source_timeout_seconds=settings.CONTEXT_SEARCH_SOURCE_TIMEOUT_SECONDS,
        evaluation_timeout_seconds=settings.CONTEXT_SEARCH_EVALUATION_TIMEOUT_SECONDS,
    )

def build_text_embedding_client(settings: ServiceSettings) -> TypedTextEmbeddingClient:
    """Wraps the configured embedding provider in the generic dispatcher."""
    if settings.EMBEDDING_PROVIDER == "openai":
        if not settings.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY must be set when EMBEDDING_PROVIDER is 'openai'")
        openai_client = AsyncOpenAITextEmbeddingClient(
            model_name=settings.OPENAI_EMBEDDING_MODEL,
            embedding_size=settings.EMBEDDING_DIMENSIONS,
            api_key=settings.OPENAI_API_KEY,
        )
        return TypedTextEmbeddingClient(provider=TextEmbeddingProvider.OPENAI, client=openai_client)

    gemini_client = AsyncGenAITextEmbeddingClient(
        model_name=settings.GOOGLE_GENAI_EMBEDDING_MODEL,
        embedding_size=settings.EMBEDDING_DIMENSIONS,
        api_key=settings.GOOGLE_GENAI_API_KEY,
    )
    return TypedTextEmbeddingClient(provider=TextEmbeddingProvider.GOOGLE_GENAI, client=gemini_client)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the service's startup and shutdown events.
    Uses the AsyncExitStack to clean up resources.
    Register resources to the app state to be used as dependencies.

    NOTE:
    - Use stack.enter_async_context when the resource has __aenter__ and __aexit__ support
    - Use stack.push_async_callback to register the clean up method only
    """
    logger.info("Starting Lucid Recall service!")

    # initialize resources during start up
    logger.info("Initializing service resources...")
    settings = get_service_settings()

    async with AsyncExitStack() as stack:

        # Main db engine
        main_db_settings = parse_db_settings_from_service(settings, DBType.MainDB)
        app.state.main_db_engine = await stack.enter_async_context(
            create_db_engine_context(
                db_settings=main_db_settings
            )
        )
        logger.info("Main database engine initialized.")

        # Embedding + LLM clients (no need for resource clean up)
        text_embedding_client = build_text_embedding_client(settings)
        app.state.text_embedding_client = text_embedding_client
        if isinstance(text_embedding_client.client, ProvidesProviderInfo):
            logger.info(f"Text embedding client ({text_embedding_client.provider.name}, {text_embedding_client.client.model}) initialized.")

        google_llm_client = AsyncGenAITypedClient(
            model_name=settings.GOOGLE_GENAI_REASONING_MODEL,
            api_key=settings.GOOGLE_GENAI_API_KEY,
        )
        app.state.llm_client = TypedLLMClient(provider=LLMProvider.GOOGLE_GENAI, client=google_llm_client)
        logger.info("LLM client (GOOGLE GENAI) initialized.")

        # Context search engine, wired bottom-up
        query_embedder = QueryEmbedder(
            text_embedding_client=text_embedding_client,
            expected_dimensions=settings.EMBEDDING_DIMENSIONS,
            cache_max=settings.EMBEDDING_CACHE_SIZE,
        )
        similarity_store = PgVectorSimilarityStore(main_db_engine=app.state.main_db_engine)
        app.state.context_search = RecursiveContextSearch(
            searchers=build_default_searchers(query_embedder, similarity_store),
            evaluator=SufficiencyEvaluator(llm_client=app.state.llm_client),
            default_config=build_default_search_config(settings),
        )
        app.state.main_retriever = MainRetriever(context_search=app.state.context_search)
        logger.info("Recursive context search initialized.")

        try:
            # lets FastAPI process requests during yield
            yield
        finally:
            logger.info("Shutting down service resources...")

        # The AsyncExitStack will automatically call the __aexit__ or registered cleanup
        # methods for all resources entered or pushed to it, in reverse order.
        logger.info("All global resources have been gracefully closed.")
