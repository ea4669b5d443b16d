# read-only CRUD for owner-scoped pgvector similarity search over the memory tables
# NOTE: every query builder takes owner_id as a required argument and filters on it;
# there is no code path that builds an unscoped similarity query.

from typing import Any, Optional

from sqlalchemy import Select, extract, func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from lucid_recall.common.db.models.memory.conversations import Conversation, ConversationTurn
from lucid_recall.common.db.models.memory.facts import Fact
from lucid_recall.common.db.models.memory.library_entries import LibraryEntry
from lucid_recall.common.db.models.memory.summaries import ConversationSummary
from lucid_recall.common.db.session import get_async_session_maker
from lucid_recall.common.logging.logger import logger

# entries lose half their ranking weight after ~60 days
ENTRY_RECENCY_HALF_LIFE_DAYS = 60.0

def _require_owner(owner_id: Optional[str]) -> str:
    if not owner_id or not str(owner_id).strip():
        raise ValueError("owner_id is required for every similarity query")
    return owner_id

def _cosine_similarity(embedding_column, query_vector: list[float]):
    # pgvector's <=> is cosine distance; flip to similarity so higher is better
    return 1 - embedding_column.cosine_distance(query_vector)

def build_turn_similarity_query(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
    conversation_id: Optional[str] = None,
) -> Select:
    """
    Top conversation turns by cosine similarity for one owner.
    Optionally narrowed to a single conversation.
    """
    owner_id = _require_owner(owner_id)
    similarity = _cosine_similarity(ConversationTurn.embedding, query_vector)
    stmt = (
        select(ConversationTurn, similarity.label("similarity"))
        .where(ConversationTurn.user_id == owner_id)
        .where(ConversationTurn.embedding.is_not(None))
        .where(similarity >= min_similarity)
    )
    if conversation_id:
        stmt = stmt.where(ConversationTurn.conversation_id == conversation_id)
    return stmt.order_by(similarity.desc()).limit(limit)

def build_fact_similarity_query(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
) -> Select:
    """Top active facts by cosine similarity for one owner."""
    owner_id = _require_owner(owner_id)
    similarity = _cosine_similarity(Fact.embedding, query_vector)
    return (
        select(Fact, similarity.label("similarity"))
        .where(Fact.user_id == owner_id)
        .where(Fact.is_active.is_(True))
        .where(Fact.embedding.is_not(None))
        .where(similarity >= min_similarity)
        .order_by(similarity.desc())
        .limit(limit)
    )

def build_entry_similarity_query(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
) -> Select:
    """
    Top library entries for one owner, ranked by recency-decayed similarity:

        recency_score = similarity * 1 / (1 + age_days / 60)

    Every entry above the similarity floor is a candidate; the raw similarity is returned alongside.
    """
    owner_id = _require_owner(owner_id)
    similarity = _cosine_similarity(LibraryEntry.embedding, query_vector)
    # created_at is timestamptz, so the age is computed against the db clock in UTC
    age_days = func.greatest(extract("epoch", func.now() - LibraryEntry.created_at), 0) / 86400.0
    recency_score = similarity * (1.0 / (1.0 + age_days / ENTRY_RECENCY_HALF_LIFE_DAYS))
    return (
        select(LibraryEntry, similarity.label("similarity"))
        .where(LibraryEntry.user_id == owner_id)
        .where(LibraryEntry.embedding.is_not(None))
        .where(similarity >= min_similarity)
        .order_by(recency_score.desc())
        .limit(limit)
    )

def build_summary_similarity_query(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
) -> Select:
    """
    Top conversation summaries by cosine similarity for one owner.
    Summaries carry no owner column of their own, so ownership comes from the joined conversation.
    """
    owner_id = _require_owner(owner_id)
    similarity = _cosine_similarity(ConversationSummary.embedding, query_vector)
    return (
        select(ConversationSummary, similarity.label("similarity"), Conversation.user_id)
        .join(Conversation, ConversationSummary.conversation_id == Conversation.id)
        .where(Conversation.user_id == owner_id)
        .where(ConversationSummary.embedding.is_not(None))
        .where(similarity >= min_similarity)
        .order_by(similarity.desc())
        .limit(limit)
    )

async def _execute_similarity_query(stmt: Select, main_db_engine: AsyncEngine, table_name: str) -> list[Any]:
    session_maker = get_async_session_maker(main_db_engine)
    try:
        async with session_maker() as session:
            result = await session.execute(stmt)
            rows = result.all()
            logger.debug(f"Found {len(rows)} similar rows in {table_name}")
            return list(rows)
    except Exception as e:
        logger.error(f"Failed similarity search on {table_name}: {e}")
        raise

async def find_similar_turns(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
    main_db_engine: AsyncEngine,
    conversation_id: Optional[str] = None,
) -> list[tuple[ConversationTurn, float]]:
    """
    Find the conversation turns most similar to the query vector.

    Returns:
        List of tuples (ConversationTurn, cosine similarity)
    """
    stmt = build_turn_similarity_query(query_vector, owner_id, min_similarity, limit, conversation_id=conversation_id)
    rows = await _execute_similarity_query(stmt, main_db_engine, "messages")
    return [(row[0], float(row[1])) for row in rows]

async def find_similar_facts(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
    main_db_engine: AsyncEngine,
) -> list[tuple[Fact, float]]:
    stmt = build_fact_similarity_query(query_vector, owner_id, min_similarity, limit)
    rows = await _execute_similarity_query(stmt, main_db_engine, "facts")
    return [(row[0], float(row[1])) for row in rows]

async def find_similar_entries(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
    main_db_engine: AsyncEngine,
) -> list[tuple[LibraryEntry, float]]:
    stmt = build_entry_similarity_query(query_vector, owner_id, min_similarity, limit)
    rows = await _execute_similarity_query(stmt, main_db_engine, "library_entries")
    return [(row[0], float(row[1])) for row in rows]

async def find_similar_summaries(
    query_vector: list[float],
    owner_id: str,
    min_similarity: float,
    limit: int,
    main_db_engine: AsyncEngine,
) -> list[tuple[ConversationSummary, float, str]]:
    """
    Returns:
        List of tuples (ConversationSummary, cosine similarity, owning user id)
    """
    stmt = build_summary_similarity_query(query_vector, owner_id, min_similarity, limit)
    rows = await _execute_similarity_query(stmt, main_db_engine, "summaries")
    return [(row[0], float(row[1]), row[2]) for row in rows]
