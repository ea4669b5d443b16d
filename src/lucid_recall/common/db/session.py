# async engine + session helpers for the main (postgres/pgvector) database

from contextlib import asynccontextmanager
from enum import Enum
from functools import lru_cache
from typing import AsyncIterator

from pydantic import BaseModel
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lucid_recall.common.logging.logger import logger

class DBType(str, Enum):
    """Databases the service knows how to connect to."""
    MainDB = "main_db"

class DBSettings(BaseModel):
    """
    Connection + pool settings for a single database.
    Parsed out of the flat service settings by parse_db_settings_from_service.
    """
    user: str
    password: str
    host: str
    port: int
    name: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    statement_timeout_ms: int = 5000

    def async_url(self) -> URL:
        return URL.create(
            drivername="postgresql+asyncpg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.name,
        )

def parse_db_settings_from_service(settings, db_type: DBType) -> DBSettings:
    """
    Helper to map the prefixed service settings (e.g. MAIN_DB_USER) onto a DBSettings model.
    """
    prefix = db_type.value.upper()
    return DBSettings(
        user=getattr(settings, f"{prefix}_USER"),
        password=getattr(settings, f"{prefix}_PW"),
        host=getattr(settings, f"{prefix}_HOST"),
        port=int(getattr(settings, f"{prefix}_PORT")),
        name=getattr(settings, f"{prefix}_NAME"),
        pool_size=getattr(settings, f"{prefix}_POOL_SIZE"),
        max_overflow=getattr(settings, f"{prefix}_MAX_OVERFLOW"),
        pool_timeout=getattr(settings, f"{prefix}_POOL_TIMEOUT"),
        pool_recycle=getattr(settings, f"{prefix}_POOL_RECYCLE"),
        statement_timeout_ms=getattr(settings, f"{prefix}_STATEMENT_TIMEOUT_MS"),
    )

@asynccontextmanager
async def create_db_engine_context(db_settings: DBSettings) -> AsyncIterator[AsyncEngine]:
    """
    Creates the async engine for the app lifetime and disposes of the pool on exit.
    Meant to be entered via AsyncExitStack in the lifespan.
    """
    engine = create_async_engine(
        db_settings.async_url(),
        pool_size=db_settings.pool_size,
        max_overflow=db_settings.max_overflow,
        pool_timeout=db_settings.pool_timeout,
        pool_recycle=db_settings.pool_recycle,
        pool_pre_ping=True,
        # every statement carries its own server-side timeout
        connect_args={"server_settings": {"statement_timeout": str(db_settings.statement_timeout_ms)}},
    )
    logger.info(f"Created async engine for {db_settings.host}:{db_settings.port}/{db_settings.name}")
    try:
        yield engine
    finally:
        await engine.dispose()
        logger.info("Disposed async engine.")

@lru_cache(maxsize=8)
def get_async_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Returns a cached sessionmaker bound to the given engine.
    NOTE: engines are hashable by identity, so one sessionmaker per engine.
    """
    return async_sessionmaker(engine, expire_on_commit=False)
