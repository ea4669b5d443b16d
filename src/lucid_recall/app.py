from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Any
from lucid_recall.common.logging.logger import logger
from lucid_recall.config.app_config import get_service_settings
from lucid_recall.core.lifespan import lifespan
from lucid_recall.common.db.session import get_async_session_maker
from sqlalchemy import text
from lucid_recall.api.routes.context_search_route import router as context_search_router

# disable FastAPI docs for production/deployment
is_local = get_service_settings().INCLUDE_DOCS
logger.info(f"is_local (include FastAPI docs?): {is_local}")

docs_config: dict[str, Any] = {
    "docs_url": "/docs" if is_local else None,
    "redoc_url": "/redoc" if is_local else None,
    "openapi_url": "/openapi.json" if is_local else None,
}

# main app, asgi entrypoint
app = FastAPI(
    title="Lucid Recall Service",
    description="Recursive multi-source context retrieval over a user's conversational memory",
    version="0.1.0",
    lifespan=lifespan,
    **docs_config,
)

# add CORS middleware
# TODO: restrict allow_origins to the chat frontend once its deployed origin is fixed
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "Lucid Recall is running"}

# health endpoint
@app.get("/health")
async def health():
    main_db_engine = app.state.main_db_engine
    main_session_maker = get_async_session_maker(main_db_engine)

    try:
        # simple test query to verify db connection
        async with main_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.info(f"error: {e}")
        return {"status": "error", "database": "unable to connect to main database"}

    return {"status": "ok", "database": "connected to main database"}

app.include_router(context_search_router)
