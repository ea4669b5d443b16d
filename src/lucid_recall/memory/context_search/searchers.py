# per-source searchers: embed a query, run an owner-scoped store lookup, normalize hits into ContextChunks

import asyncio
from typing import Any, Protocol

from lucid_recall.memory.context_search.errors import ContextSearchContractError
from lucid_recall.memory.context_search.query_embedder import QueryEmbedder
from lucid_recall.memory.context_search.similarity_store import SimilarityRecord, SimilarityStore, StoreScope
from lucid_recall.memory.context_search.types import (
    ChunkSource,
    ContextChunk,
    OwnerScope,
    SearchConfig,
    SearchScope,
    SourceSearchOutcome,
)
from lucid_recall.common.logging.logger import logger

class SourceSearcher(Protocol):
    source: ChunkSource

    async def search(self, query: str, owner_scope: OwnerScope, config: SearchConfig) -> list[ContextChunk]: ...

    async def try_search(self, query: str, owner_scope: OwnerScope, config: SearchConfig) -> SourceSearchOutcome: ...

class BaseSourceSearcher():
    """
    Shared search flow for every memory source.
    Retrieval is best-effort per source: any provider or store failure (including timeouts)
    is logged and degrades to an empty result instead of aborting the round.
    Scope violations are caller errors and are raised before any I/O.
    """
    source: ChunkSource
    result_limit: int = 10

    def __init__(self, query_embedder: QueryEmbedder, similarity_store: SimilarityStore):
        self.query_embedder = query_embedder
        self.similarity_store = similarity_store

    async def search(self, query: str, owner_scope: OwnerScope, config: SearchConfig) -> list[ContextChunk]:
        outcome = await self.try_search(query, owner_scope, config)
        return outcome.chunks

    async def try_search(self, query: str, owner_scope: OwnerScope, config: SearchConfig) -> SourceSearchOutcome:
        """Like search(), but also reports whether the source failed so the orchestrator can tell failure from no matches."""
        store_scope = self._store_scope(owner_scope, config)
        try:
            chunks = await asyncio.wait_for(
                self._search(query, store_scope, config),
                timeout=config.source_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = f"timed out after {config.source_timeout_seconds}s"
            logger.warning(f"Error searching {self.source.value} source: {error}")
            return SourceSearchOutcome(source=self.source, error=error)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.warning(f"Error searching {self.source.value} source: {error}")
            return SourceSearchOutcome(source=self.source, error=error)
        return SourceSearchOutcome(source=self.source, chunks=chunks)

    async def _search(self, query: str, store_scope: StoreScope, config: SearchConfig) -> list[ContextChunk]:
        embedding = await self.query_embedder.embed_query(query)
        records = await self.similarity_store.search(
            source=self.source,
            embedding=embedding,
            scope=store_scope,
            min_similarity=config.min_similarity,
            limit=self.result_limit,
        )
        owned = [record for record in records if record.owner_id == store_scope.owner_id]
        if len(owned) < len(records):
            logger.warning(f"{self.source.value} store returned {len(records) - len(owned)} record(s) outside owner scope; dropped")
        return [self._to_chunk(record) for record in owned[: self.result_limit]]

    def _store_scope(self, owner_scope: OwnerScope, config: SearchConfig) -> StoreScope:
        if not owner_scope.owner_id or not owner_scope.owner_id.strip():
            raise ContextSearchContractError("owner_id is required to search memory")
        return StoreScope(owner_id=owner_scope.owner_id)

    def _chunk_id(self, record: SimilarityRecord) -> str:
        return f"{self.source.value}_{record.record_id}"

    def _render_content(self, record: SimilarityRecord) -> str:
        return record.content

    def _metadata(self, record: SimilarityRecord) -> dict[str, Any]:
        return {"created_at": record.created_at}

    def _to_chunk(self, record: SimilarityRecord) -> ContextChunk:
        return ContextChunk(
            id=self._chunk_id(record),
            source=self.source,
            content=self._render_content(record),
            # float error can push 1 - distance just past the [-1, 1] bounds
            similarity=max(-1.0, min(1.0, record.similarity)),
            metadata=self._metadata(record),
        )

class TurnSearcher(BaseSourceSearcher):
    """Searches conversation turns; the only source narrowed to the current conversation under conversation scope."""
    source = ChunkSource.TURN
    result_limit = 10

    def _store_scope(self, owner_scope: OwnerScope, config: SearchConfig) -> StoreScope:
        store_scope = super()._store_scope(owner_scope, config)
        if config.search_scope == SearchScope.CONVERSATION:
            if not owner_scope.conversation_id:
                raise ContextSearchContractError("conversation scope requires a conversation_id")
            return StoreScope(owner_id=store_scope.owner_id, conversation_id=owner_scope.conversation_id)
        return store_scope

    def _metadata(self, record: SimilarityRecord) -> dict[str, Any]:
        return {
            "role": record.attributes.get("role"),
            "created_at": record.created_at,
            "conversation_id": record.attributes.get("conversation_id"),
        }

class FactSearcher(BaseSourceSearcher):
    source = ChunkSource.FACT
    result_limit = 10

    def _metadata(self, record: SimilarityRecord) -> dict[str, Any]:
        return {
            "category": record.attributes.get("category"),
            "confidence": record.attributes.get("confidence"),
        }

class EntrySearcher(BaseSourceSearcher):
    """
    Searches long-form library entries.
    The store ranks entries by a recency-decayed score rather than raw similarity
    (see similarity_store.recency_score), so the top entries it returns are the fresh relevant ones.
    Each chunk keeps its raw similarity, so the global ranking stays comparable across sources.
    """
    source = ChunkSource.ENTRY
    result_limit = 5

    def _metadata(self, record: SimilarityRecord) -> dict[str, Any]:
        return {
            "title": record.attributes.get("title"),
            "created_at": record.created_at,
        }

class SummarySearcher(BaseSourceSearcher):
    source = ChunkSource.SUMMARY
    result_limit = 5

    def _render_content(self, record: SimilarityRecord) -> str:
        user_perspective = record.attributes.get("user_perspective")
        model_perspective = record.attributes.get("model_perspective")
        if not user_perspective and not model_perspective:
            return record.content
        return f"User perspective: {user_perspective or 'N/A'}\nModel perspective: {model_perspective or 'N/A'}"

    def _metadata(self, record: SimilarityRecord) -> dict[str, Any]:
        return {
            "conversation_id": record.attributes.get("conversation_id"),
            "created_at": record.created_at,
        }

def build_default_searchers(
    query_embedder: QueryEmbedder,
    similarity_store: SimilarityStore,
) -> list[BaseSourceSearcher]:
    """The four memory sources, in the order their results are logged."""
    return [
        TurnSearcher(query_embedder, similarity_store),
        FactSearcher(query_embedder, similarity_store),
        EntrySearcher(query_embedder, similarity_store),
        SummarySearcher(query_embedder, similarity_store),
    ]
