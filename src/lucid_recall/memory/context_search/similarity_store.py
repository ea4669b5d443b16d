# similarity store boundary: the searchers talk to this protocol, never to the db directly

from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncEngine

from lucid_recall.common.db.crud.memory.similarity_search_crud import (
    ENTRY_RECENCY_HALF_LIFE_DAYS,
    find_similar_turns,
    find_similar_facts,
    find_similar_entries,
    find_similar_summaries,
)
from lucid_recall.memory.context_search.types import ChunkSource

class StoreScope(BaseModel):
    """
    Access scope for one store query, built by the searchers from the caller's OwnerScope.
    owner_id is mandatory; conversation_id further narrows sources that support it (turns).
    """
    model_config = ConfigDict(frozen=True)

    owner_id: str
    conversation_id: Optional[str] = None

class SimilarityRecord(BaseModel):
    """A raw store hit, before normalization into a ContextChunk."""
    record_id: str
    owner_id: str
    content: str
    similarity: float
    created_at: Optional[datetime] = None
    attributes: dict[str, Any] = Field(default_factory=dict)

def recency_score(similarity: float, created_at: Optional[datetime], now: datetime) -> float:
    """
    Python mirror of the entry ranking the db applies in build_entry_similarity_query.
    Naive timestamps are read as UTC; future timestamps count as age 0.
    """
    if created_at is None:
        return similarity
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    age_days = max((now - created_at).total_seconds(), 0.0) / 86400.0
    return similarity * (1.0 / (1.0 + age_days / ENTRY_RECENCY_HALF_LIFE_DAYS))

class SimilarityStore(Protocol):
    """
    Returns at most `limit` owner-scoped records at or above min_similarity, best first.
    "Best" is raw similarity for every source except ENTRY, which is ordered by recency_score.
    """
    async def search(
        self,
        source: ChunkSource,
        embedding: list[float],
        scope: StoreScope,
        min_similarity: float,
        limit: int,
    ) -> list[SimilarityRecord]: ...

class PgVectorSimilarityStore():
    """
    Postgres + pgvector implementation of the similarity store.
    Read-only: dispatches each source to its owner-scoped CRUD query.
    """

    def __init__(self, main_db_engine: AsyncEngine):
        self.main_db_engine = main_db_engine

    async def search(
        self,
        source: ChunkSource,
        embedding: list[float],
        scope: StoreScope,
        min_similarity: float,
        limit: int,
    ) -> list[SimilarityRecord]:
        if source == ChunkSource.TURN:
            return await self._search_turns(embedding, scope, min_similarity, limit)
        if source == ChunkSource.FACT:
            return await self._search_facts(embedding, scope, min_similarity, limit)
        if source == ChunkSource.ENTRY:
            return await self._search_entries(embedding, scope, min_similarity, limit)
        if source == ChunkSource.SUMMARY:
            return await self._search_summaries(embedding, scope, min_similarity, limit)
        raise ValueError(f"Unsupported chunk source: {source}")

    async def _search_turns(self, embedding, scope: StoreScope, min_similarity: float, limit: int) -> list[SimilarityRecord]:
        rows = await find_similar_turns(
            query_vector=embedding,
            owner_id=scope.owner_id,
            min_similarity=min_similarity,
            limit=limit,
            main_db_engine=self.main_db_engine,
            conversation_id=scope.conversation_id,
        )
        return [
            SimilarityRecord(
                record_id=str(turn.id),
                owner_id=str(turn.user_id),
                content=turn.content,
                similarity=similarity,
                created_at=turn.created_at,
                attributes={"role": turn.role, "conversation_id": str(turn.conversation_id)},
            )
            for turn, similarity in rows
        ]

    async def _search_facts(self, embedding, scope: StoreScope, min_similarity: float, limit: int) -> list[SimilarityRecord]:
        rows = await find_similar_facts(
            query_vector=embedding,
            owner_id=scope.owner_id,
            min_similarity=min_similarity,
            limit=limit,
            main_db_engine=self.main_db_engine,
        )
        return [
            SimilarityRecord(
                record_id=str(fact.id),
                owner_id=str(fact.user_id),
                content=fact.content,
                similarity=similarity,
                created_at=fact.created_at,
                attributes={"category": fact.category, "confidence": fact.confidence},
            )
            for fact, similarity in rows
        ]

    async def _search_entries(self, embedding, scope: StoreScope, min_similarity: float, limit: int) -> list[SimilarityRecord]:
        rows = await find_similar_entries(
            query_vector=embedding,
            owner_id=scope.owner_id,
            min_similarity=min_similarity,
            limit=limit,
            main_db_engine=self.main_db_engine,
        )
        return [
            SimilarityRecord(
                record_id=str(entry.id),
                owner_id=str(entry.user_id),
                content=entry.content,
                similarity=similarity,
                created_at=entry.created_at,
                attributes={"title": entry.title, "entry_type": entry.entry_type},
            )
            for entry, similarity in rows
        ]

    async def _search_summaries(self, embedding, scope: StoreScope, min_similarity: float, limit: int) -> list[SimilarityRecord]:
        rows = await find_similar_summaries(
            query_vector=embedding,
            owner_id=scope.owner_id,
            min_similarity=min_similarity,
            limit=limit,
            main_db_engine=self.main_db_engine,
        )
        return [
            SimilarityRecord(
                record_id=str(summary.id),
                owner_id=str(owner_id),
                content=summary.content,
                similarity=similarity,
                created_at=summary.created_at,
                attributes={
                    "conversation_id": str(summary.conversation_id),
                    "user_perspective": summary.user_perspective,
                    "model_perspective": summary.model_perspective,
                },
            )
            for summary, similarity, owner_id in rows
        ]
