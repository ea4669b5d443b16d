# single-query embedding front for the source searchers

import asyncio
from collections import OrderedDict
from typing import Optional

import numpy as np

from lucid_recall.common.services.embedding_service.text_embedding import (
    TypedTextEmbeddingClient,
    EmbeddingError,
    EmptyEmbeddingInputError,
    EmbeddingDimensionMismatchError,
)
from lucid_recall.common.logging.logger import logger

class QueryEmbedder():
    """
    Embeds search queries for the source searchers.
    - Rejects blank queries before any provider call.
    - Exact match cache: identical query texts skip the embedding client entirely (LRU via OrderedDict).
    - In-flight dedupe: the four searchers of one query fan out concurrently, so concurrent
      requests for the same text await a single provider call instead of four.

    NOTE: the cache only holds query vectors, never retrieved records, so it cannot serve stale memory.
    """

    def __init__(
        self,
        text_embedding_client: TypedTextEmbeddingClient,
        expected_dimensions: Optional[int] = None,
        cache_max: int = 50,
    ):
        self.text_embedding_client = text_embedding_client
        self.expected_dimensions = expected_dimensions
        self._exact_cache: OrderedDict[str, list[float]] = OrderedDict()
        self._exact_cache_max = cache_max
        self._in_flight: dict[str, asyncio.Task] = {}

    async def embed_query(self, query: str) -> list[float]:
        normalized = query.strip() if query else ""
        if not normalized:
            raise EmptyEmbeddingInputError("Query text cannot be empty")

        if normalized in self._exact_cache:
            logger.debug(f"Query embedding cache hit: {normalized[:50]}")
            self._exact_cache.move_to_end(normalized)
            return self._exact_cache[normalized]

        task = self._in_flight.get(normalized)
        if task is None:
            task = asyncio.ensure_future(self._embed_uncached(normalized))
            self._in_flight[normalized] = task
            task.add_done_callback(lambda t, key=normalized: self._on_embed_done(key, t))

        # shield so one searcher timing out does not cancel the call the others are waiting on
        return await asyncio.shield(task)

    async def _embed_uncached(self, normalized: str) -> list[float]:
        vectors = await self.text_embedding_client.aembed_text(text=[normalized], task_type="RETRIEVAL_QUERY")
        if not vectors:
            raise EmbeddingError(f"No embedding returned for query: {normalized[:50]}")
        vector = list(vectors[0])

        if self.expected_dimensions is not None and len(vector) != self.expected_dimensions:
            raise EmbeddingDimensionMismatchError(
                f"Expected {self.expected_dimensions} dimensions, got {len(vector)}"
            )
        # a NaN/inf component would poison every cosine distance computed against it
        if not np.all(np.isfinite(np.asarray(vector, dtype=float))):
            raise EmbeddingError("Query embedding contains non-finite values")

        self._set_exact_cache(normalized, vector)
        return vector

    def _on_embed_done(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # mark the exception as retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    def _set_exact_cache(self, key: str, value: list[float]) -> None:
        """
        Simple helper to insert or update elements in LRU exact cache, evicting the oldest entry if at capacity.
        """
        if key in self._exact_cache:
            self._exact_cache.move_to_end(key)
        self._exact_cache[key] = value
        if len(self._exact_cache) > self._exact_cache_max:
            self._exact_cache.popitem(last=False) # evict LRU
