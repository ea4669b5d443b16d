# shared fakes for the context search tests: embedding client, similarity stores and LLM client

import asyncio
import hashlib
from datetime import datetime, timezone
from typing import Callable, Optional, Union

import numpy as np
import pytest

from lucid_recall.common.services.embedding_service.text_embedding import TypedTextEmbeddingClient, TextEmbeddingProvider
from lucid_recall.common.services.llm_service.llm_client import TypedLLMClient, LLMProvider
from lucid_recall.memory.context_search.query_embedder import QueryEmbedder
from lucid_recall.memory.context_search.similarity_store import SimilarityRecord, StoreScope, recency_score
from lucid_recall.memory.context_search.types import ChunkSource, ContextChunk

EMBEDDING_DIM = 8

def hashed_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit vector per text."""
    seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:8], 16)
    vector = np.random.default_rng(seed).normal(size=dim)
    return (vector / np.linalg.norm(vector)).tolist()

class FakeEmbeddingClient:
    """
    Stands in for a provider client behind TypedTextEmbeddingClient.
    Explicit vectors win over hashed ones; every call is recorded.
    """

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None, delay: float = 0.0, error: Optional[Exception] = None):
        self.vectors = vectors or {}
        self.delay = delay
        self.error = error
        self.calls: list[tuple[list[str], dict]] = []

    def vector_for(self, text: str) -> list[float]:
        return self.vectors.get(text) or hashed_vector(text)

    def text_for(self, vector: list[float]) -> Optional[str]:
        for text, known in self.vectors.items():
            if np.allclose(known, vector):
                return text
        return None

    async def aembed_text(self, text: list[str], **kwargs) -> list[list[float]]:
        self.calls.append((list(text), kwargs))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return [self.vector_for(item) for item in text]

class StoredRecord:
    def __init__(
        self,
        record_id: str,
        owner_id: str,
        content: str,
        embedding: list[float],
        created_at: Optional[datetime] = None,
        conversation_id: Optional[str] = None,
        attributes: Optional[dict] = None,
    ):
        self.record_id = record_id
        self.owner_id = owner_id
        self.content = content
        self.embedding = embedding
        self.created_at = created_at
        self.conversation_id = conversation_id
        self.attributes = attributes or {}

class InMemorySimilarityStore:
    """
    Cosine similarity over in-memory records, honoring owner and conversation scope
    the same way the pgvector queries do. Entries are ordered by recency_score against `clock`.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.records: dict[ChunkSource, list[StoredRecord]] = {source: [] for source in ChunkSource}
        self.calls: list[tuple[ChunkSource, StoreScope, int]] = []

    def add(self, source: ChunkSource, record: StoredRecord) -> None:
        self.records[source].append(record)

    async def search(self, source, embedding, scope, min_similarity, limit):
        self.calls.append((source, scope, limit))
        query = np.asarray(embedding, dtype=float)
        hits = []
        for record in self.records[source]:
            if record.owner_id != scope.owner_id:
                continue
            if scope.conversation_id and source == ChunkSource.TURN and record.conversation_id != scope.conversation_id:
                continue
            stored = np.asarray(record.embedding, dtype=float)
            similarity = float(np.dot(query, stored) / (np.linalg.norm(query) * np.linalg.norm(stored)))
            if similarity < min_similarity:
                continue
            attributes = dict(record.attributes)
            if record.conversation_id:
                attributes.setdefault("conversation_id", record.conversation_id)
            hits.append(SimilarityRecord(
                record_id=record.record_id,
                owner_id=record.owner_id,
                content=record.content,
                similarity=similarity,
                created_at=record.created_at,
                attributes=attributes,
            ))
        if source == ChunkSource.ENTRY:
            now = self.clock()
            hits.sort(key=lambda hit: recency_score(hit.similarity, hit.created_at, now), reverse=True)
        else:
            hits.sort(key=lambda hit: hit.similarity, reverse=True)
        return hits[:limit]

class ScriptedSimilarityStore:
    """
    Returns fixed hits per (source, query text), so tests control similarities exactly.
    The query text is recovered from the embedding through the fake embedding client.
    """

    def __init__(self, embedding_client: FakeEmbeddingClient, hits: Optional[dict[tuple[ChunkSource, str], list[SimilarityRecord]]] = None):
        self.embedding_client = embedding_client
        self.hits = hits or {}
        self.failing_sources: set[ChunkSource] = set()
        self.calls: list[tuple[ChunkSource, Optional[str]]] = []

    async def search(self, source, embedding, scope, min_similarity, limit):
        query_text = self.embedding_client.text_for(embedding)
        self.calls.append((source, query_text))
        if source in self.failing_sources:
            raise ConnectionError(f"{source.value} store unavailable")
        records = [
            record for record in self.hits.get((source, query_text), [])
            if record.owner_id == scope.owner_id and record.similarity >= min_similarity
        ]
        return sorted(records, key=lambda record: record.similarity, reverse=True)[:limit]

class FakeLLMClient:
    """Returns scripted responses in order; an Exception entry is raised instead of returned."""

    def __init__(self, responses: Optional[list[Union[str, Exception]]] = None, responder: Optional[Callable[[str], str]] = None, delay: float = 0.0):
        self.responses = list(responses or [])
        self.responder = responder
        self.delay = delay
        self.calls: list[dict] = []

    async def acomplete(self, system_prompt: str, user_prompt: str, max_tokens: int, **kwargs) -> str:
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt, "max_tokens": max_tokens})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.responder:
            return self.responder(user_prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

def record(record_id: str, content: str, similarity: float, owner_id: str = "user-1", **attributes) -> SimilarityRecord:
    created_at = attributes.pop("created_at", None)
    return SimilarityRecord(
        record_id=record_id,
        owner_id=owner_id,
        content=content,
        similarity=similarity,
        created_at=created_at,
        attributes=attributes,
    )

def chunk(chunk_id: str, similarity: float, content: str = "x", source: ChunkSource = ChunkSource.FACT, **metadata) -> ContextChunk:
    return ContextChunk(id=chunk_id, source=source, content=content, similarity=similarity, metadata=metadata)

def unit(index: int, dim: int = EMBEDDING_DIM) -> list[float]:
    vector = [0.0] * dim
    vector[index] = 1.0
    return vector

@pytest.fixture
def fake_embedding_client():
    return FakeEmbeddingClient()

@pytest.fixture
def text_embedding_client(fake_embedding_client):
    return TypedTextEmbeddingClient(provider=TextEmbeddingProvider.GOOGLE_GENAI, client=fake_embedding_client)

@pytest.fixture
def query_embedder(text_embedding_client):
    return QueryEmbedder(text_embedding_client=text_embedding_client, expected_dimensions=EMBEDDING_DIM)

@pytest.fixture
def fake_llm_client():
    return FakeLLMClient()

@pytest.fixture
def llm_client(fake_llm_client):
    return TypedLLMClient(provider=LLMProvider.GOOGLE_GENAI, client=fake_llm_client)
